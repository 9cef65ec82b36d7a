# tests/unit/tree/test_serializer.py
"""测试线格式序列化与指纹计算。"""

import pytest

from trans_tree.core.types import DataFormat, VariableType
from trans_tree.tree import (
    Branch,
    CanonicalizationError,
    Element,
    Plural,
    Translate,
    Variable,
    canonical_bytes,
    fingerprint,
    identify,
    serialize,
    tag,
)


def _wire(tree):
    tagged, _ = tag(tree)
    return serialize(tagged)


def test_serialize_elements_and_text() -> None:
    wire = _wire(["Hello ", Element("b", ["world"])])
    assert wire == ["Hello ", {"t": "b", "i": 1, "c": ["world"]}]


def test_single_child_serializes_to_single_node() -> None:
    assert _wire(Element("br")) == {"t": "br", "i": 1}
    assert _wire("plain") == "plain"


def test_variables_carry_no_runtime_values() -> None:
    wire = _wire(
        [
            Variable(42, name="count", type=VariableType.NUMBER),
            Variable(9.99, type=VariableType.CURRENCY),
            Variable("Ada"),
        ]
    )
    assert wire == [
        {"i": 1, "k": "count", "v": "n"},
        {"i": 2, "k": "_gt_cost_2", "v": "c"},
        {"i": 3, "k": "_gt_value_3", "v": "v"},
    ]


def test_content_props_are_minified() -> None:
    wire = _wire(Element("input", props={"placeholder": "Search", "type": "text"}))
    assert wire == {"t": "input", "i": 1, "d": {"pl": "Search"}}


def test_plural_and_branch_data() -> None:
    wire = _wire(
        [
            Plural(n=3, branches={"one": "item", "other": "items"}),
            Branch("a", branches={"a": "A"}, children=["fallback"]),
        ]
    )
    assert wire == [
        {"t": "plural", "i": 1, "d": {"t": "p", "b": {"one": "item", "other": "items"}}},
        {"t": "branch", "i": 2, "d": {"t": "b", "b": {"a": "A"}}, "c": ["fallback"]},
    ]


def test_root_translate_serializes_as_fragment() -> None:
    assert _wire(Translate(["Hi"])) == {"t": "fragment", "i": 1, "c": ["Hi"]}


def test_fingerprint_is_deterministic() -> None:
    tree = Translate(["You have ", Variable(1, name="n", type=VariableType.NUMBER)])
    first = fingerprint(_wire(tree), "inbox")
    second = fingerprint(_wire(tree), "inbox")
    assert first == second
    assert len(first) == 64


def test_fingerprint_ignores_variable_values() -> None:
    def build(value: int) -> Translate:
        return Translate(["Total: ", Variable(value, name="n", type=VariableType.NUMBER)])

    assert fingerprint(_wire(build(1))) == fingerprint(_wire(build(1000)))


def test_fingerprint_depends_on_context_id_and_format() -> None:
    wire = _wire(["Save"])
    base = fingerprint(wire)
    assert fingerprint(wire, "menu") != base
    assert fingerprint(wire, explicit_id="save-button") != base
    assert fingerprint("Save", data_format=DataFormat.STRING) != fingerprint(
        "Save", data_format=DataFormat.JSX
    )


def test_identify_prefers_explicit_id_for_lookup() -> None:
    identity = identify(_wire(["Save"]), explicit_id="save-button")
    assert identity.lookup_key == "save-button"
    assert identity.hash != "save-button"
    assert identify(_wire(["Save"])).lookup_key == identify(_wire(["Save"])).hash


def test_canonical_bytes_is_key_order_independent() -> None:
    assert canonical_bytes({"b": 1, "a": "x"}) == b'{"a":"x","b":1}'


def test_floats_are_rejected() -> None:
    with pytest.raises(CanonicalizationError):
        canonical_bytes({"v": 1.5})
