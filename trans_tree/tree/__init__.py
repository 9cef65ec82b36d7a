"""UI 树：节点类型、标记、序列化与指纹。"""

from .fingerprint import CanonicalizationError, canonical_bytes, fingerprint, identify
from .nodes import (
    PLURAL_FORMS,
    Branch,
    Element,
    Fragment,
    Node,
    Plural,
    TaggedChild,
    TaggedChildren,
    TaggedNode,
    Text,
    Translate,
    Variable,
)
from .serializer import content_props, fallback_variable_name, serialize, variable_key
from .tagger import tag

__all__ = [
    "PLURAL_FORMS",
    "Branch",
    "CanonicalizationError",
    "Element",
    "Fragment",
    "Node",
    "Plural",
    "TaggedChild",
    "TaggedChildren",
    "TaggedNode",
    "Text",
    "Translate",
    "Variable",
    "canonical_bytes",
    "content_props",
    "fallback_variable_name",
    "fingerprint",
    "identify",
    "serialize",
    "tag",
]
