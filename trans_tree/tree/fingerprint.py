# trans_tree/tree/fingerprint.py
"""
指纹计算：对线格式树（以及可选的上下文与显式 id）做 RFC 8785 规范化后取 SHA-256。

规范化保证字典键顺序无关，结构与文本相同的两棵树总是得到相同的指纹。
"""

from __future__ import annotations

import hashlib
from typing import Any

import rfc8785

from trans_tree.core.types import DataFormat, SourceIdentity


class CanonicalizationError(RuntimeError):
    """当输入不满足 I-JSON 约束或规范化失败时抛出。"""


def _assert_i_json_compat(value: Any, path: str = "$") -> None:
    """I-JSON 守卫：只允许字符串键、字符串、整数、布尔与 None。"""
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise CanonicalizationError(
                    f"{path}: object key must be str, got {type(k)}"
                )
            _assert_i_json_compat(v, f"{path}.{k}")
        return
    if isinstance(value, list):
        for i, v in enumerate(value):
            _assert_i_json_compat(v, f"{path}[{i}]")
        return
    if isinstance(value, (str, int, bool)) or value is None:
        return
    if isinstance(value, float):
        raise CanonicalizationError(f"{path}: float is not allowed in hashed sources")
    raise CanonicalizationError(f"{path}: unsupported type {type(value)}")


def canonical_bytes(payload: Any) -> bytes:
    """将对象按 RFC 8785 (JCS) 规范化为 UTF-8 字节串。"""
    _assert_i_json_compat(payload)
    try:
        return rfc8785.dumps(payload)
    except Exception as e:
        raise CanonicalizationError(f"JCS canonicalization failed: {e}") from e


def fingerprint(
    source: Any,
    context: str | None = None,
    explicit_id: str | None = None,
    data_format: DataFormat = DataFormat.JSX,
) -> str:
    """计算源内容的指纹（64 位十六进制 SHA-256）。"""
    payload: dict[str, Any] = {"source": source, "dataFormat": data_format.value}
    if context:
        payload["context"] = context
    if explicit_id:
        payload["id"] = explicit_id
    return hashlib.sha256(canonical_bytes(payload)).hexdigest()


def identify(
    source: Any,
    context: str | None = None,
    explicit_id: str | None = None,
    data_format: DataFormat = DataFormat.JSX,
) -> SourceIdentity:
    """计算指纹并打包成 `SourceIdentity`；查找时优先使用显式 id。"""
    return SourceIdentity(
        hash=fingerprint(source, context, explicit_id, data_format),
        id=explicit_id or None,
        context=context or None,
    )
