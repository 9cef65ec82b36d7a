# tests/unit/rendering/test_renderer.py
"""测试协调渲染器：默认语言渲染、按 id 对齐的翻译渲染与漂移处理。"""

from datetime import date

import pytest

from trans_tree.core.types import VariableType
from trans_tree.rendering import (
    get_plural_branch,
    output_text,
    render,
    render_default,
    render_translated,
)
from trans_tree.tree import (
    Branch,
    Element,
    Fragment,
    Plural,
    Translate,
    Variable,
    serialize,
    tag,
)


def _tagged(tree):
    tagged, _ = tag(tree)
    return tagged


def _items(n: int) -> Plural:
    return Plural(
        n=n,
        branches={
            "one": "1 item",
            "other": [Variable(name="n", type=VariableType.NUMBER), " items"],
        },
    )


def test_default_render_formats_variables() -> None:
    source = _tagged(
        Translate(
            [
                "Hello ",
                Element("b", [Variable("Ada", name="user")]),
                ", you owe ",
                Variable(1234.5, type=VariableType.CURRENCY, options={"currency": "USD"}),
                " since ",
                Variable(date(2024, 1, 31), type=VariableType.DATETIME),
            ]
        )
    )
    output = render(source, None, locales=["fr", "en"])

    assert len(output) == 1 and isinstance(output[0], Fragment)
    bold = output[0].children[1]
    assert bold == Element("b", ("Ada",), {})
    assert output_text(output) == "Hello Ada, you owe $1,234.50 since Jan 31, 2024"


def test_caller_variables_win_and_fallback_names_apply() -> None:
    source = _tagged(
        [
            Variable("Ada", name="user"),
            " has ",
            Variable(1, type=VariableType.NUMBER),
        ]
    )
    output = render_default(source, {"user": "Grace", "n": 2000})
    assert output_text(output) == "Grace has 2,000"


@pytest.mark.parametrize("n, expected", [(1, "1 item"), (5, "5 items")])
def test_plural_branch_selection(n: int, expected: str) -> None:
    source = _tagged(_items(n))
    assert output_text(render(source, None, {"n": n})) == expected


def test_plural_uses_source_selector_with_target_branches() -> None:
    source = _tagged(_items(5))
    target = {
        "t": "plural",
        "i": 1,
        "d": {
            "t": "p",
            "b": {
                "one": "1 article",
                "other": [{"i": 2, "k": "n", "v": "n"}, " articles"],
            },
        },
    }
    assert output_text(render(source, target, {"n": 5}, ["fr", "en"])) == "5 articles"


def test_branch_selection_and_fallback_children() -> None:
    tree = Branch(
        "admin",
        branches={"admin": Element("b", ["Admin"]), "user": "User"},
        children=["Guest"],
    )
    assert output_text(render_default(_tagged(tree))) == "Admin"
    guest = Branch("visitor", branches={"admin": "Admin"}, children=["Guest"])
    assert output_text(render_default(_tagged(guest))) == "Guest"


def test_round_trip_against_own_serialization() -> None:
    tree = Translate(
        [
            "You have ",
            Element("a", [_items(5)], {"href": "/inbox", "title": "Inbox"}),
            Branch("new", branches={"new": " (new)", "old": ""}),
        ]
    )
    source = _tagged(tree)
    variables = {"n": 5}

    default = render(source, None, variables, ["en"])
    translated = render(source, serialize(source), variables, ["en"])

    assert translated == default
    assert output_text(default) == "You have 5 items (new)"


def test_target_matched_by_id_not_position() -> None:
    source = _tagged(
        [Element("b", ["bold"]), " and ", Element("i", ["italic"]), Variable("X", name="x")]
    )
    target = [
        {"i": 3, "k": "x", "v": "v"},
        ": ",
        {"t": "i", "i": 2, "c": ["italique"]},
        " et ",
        {"t": "b", "i": 1, "c": ["gras"]},
    ]
    output = render_translated(source, target, locale="fr")
    assert output == [
        "X",
        ": ",
        Element("i", ("italique",), {}),
        " et ",
        Element("b", ("gras",), {}),
    ]


def test_content_props_are_translated() -> None:
    source = _tagged(Element("input", props={"placeholder": "Search", "type": "text"}))
    target = {"t": "input", "i": 1, "d": {"pl": "Rechercher"}}
    assert render(source, target) == [
        Element("input", (), {"placeholder": "Rechercher", "type": "text"})
    ]


def test_unmatched_target_nodes_are_dropped(mocker) -> None:
    warning = mocker.patch("trans_tree.rendering.renderer.logger.warning")
    source = _tagged(["Hi ", Element("b", ["there"])])
    target = ["Salut ", {"t": "b", "i": 1, "c": ["toi"]}, {"t": "i", "i": 99, "c": ["?"]}]

    assert output_text(render(source, target)) == "Salut toi"
    warning.assert_called_once()


def test_string_target_is_verbatim() -> None:
    source = _tagged(["Hello ", Element("b", ["world"])])
    assert render(source, "Bonjour le monde") == ["Bonjour le monde"]


def test_malformed_target_falls_back_to_default() -> None:
    source = _tagged(["Hello ", Variable(3, name="n", type=VariableType.NUMBER)])
    assert output_text(render(source, [42, {"bogus": True}])) == "Hello 3"


@pytest.mark.parametrize("bad_id", [[2], {"id": 2}, "2", True])
def test_non_integer_target_id_falls_back_to_default(bad_id: object) -> None:
    source = _tagged(["Hi ", Element("b", ["there"])])
    target = ["Salut ", {"t": "b", "i": bad_id, "c": ["toi"]}]
    assert output_text(render(source, target, locales=["fr", "en"])) == "Hi there"


def test_target_element_without_id_falls_back_to_default(mocker) -> None:
    warning = mocker.patch("trans_tree.rendering.renderer.logger.warning")
    source = _tagged(Translate(Element("b", ["Hello"])))
    assert output_text(render(source, [{"t": "b", "c": ["Salut"]}])) == "Hello"
    warning.assert_called_once()


def test_variable_placeholder_without_id_matches_by_key() -> None:
    source = _tagged(["Hello ", Variable("Ada", name="user")])
    assert output_text(render(source, ["Bonjour ", {"k": "user"}])) == "Bonjour Ada"


def test_get_plural_branch_fallbacks() -> None:
    assert get_plural_branch(0, "en", {"zero": "none", "other": "some"}) == "zero"
    assert get_plural_branch(1, "en", {"singular": "x", "plural": "y"}) == "singular"
    assert get_plural_branch(2, "en", {"dual": "x", "other": "y"}) == "dual"
    assert get_plural_branch(7, "en", {"plural": "y"}) == "plural"
    assert get_plural_branch(3, "ru", {"few": "x", "other": "y"}) == "few"
    assert get_plural_branch(3, "en", {"one": "x"}) is None
