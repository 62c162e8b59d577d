from __future__ import annotations

import json

import msgspec
import pytest

from kodama.counter import Counter
from kodama.section import (
    Embed,
    Lazy,
    Local,
    Plain,
    SectionOption,
    ShallowSection,
    collapse,
    content_text,
    metadata_bool,
    shallow_from_json,
    shallow_to_json,
)


def _sample() -> ShallowSection:
    return ShallowSection(
        metadata={"slug": Plain("index"), "title": Plain("Root"), "ext": Plain("md")},
        content=Lazy(
            [
                Plain("<p>See "),
                Local("b", None),
                Plain("</p>"),
                Embed("ch1", "Chapter <em>One</em>", SectionOption(numbering=True)),
            ]
        ),
    )


def test_collapse_merges_adjacent_fragments() -> None:
    result = collapse([Plain("<p>"), Plain(""), Plain("Hi"), Plain("</p>")])
    assert result == Plain("<p>Hi</p>")


def test_collapse_never_leaves_a_single_plain_in_lazy() -> None:
    assert collapse([]) == Plain("")
    assert collapse([Plain("a")]) == Plain("a")
    lazy = collapse([Plain("a"), Local("b"), Plain("c"), Plain("d")])
    assert isinstance(lazy, Lazy)
    assert lazy.items == [Plain("a"), Local("b"), Plain("cd")]


def test_entry_json_matches_the_tagged_schema() -> None:
    payload = shallow_to_json(_sample())
    decoded = msgspec.json.decode(json.dumps(payload).encode("utf-8"))
    assert decoded["metadata"]["title"] == {"Plain": "Root"}
    assert decoded["content"]["Lazy"][1] == {"Local": {"slug": "b", "text": None}}
    assert decoded["content"]["Lazy"][3] == {
        "Embed": {
            "url": "ch1",
            "title": "Chapter <em>One</em>",
            "option": {"numbering": True, "details_open": True, "catalog": True},
        }
    }


def test_entry_json_round_trips() -> None:
    section = _sample()
    encoded = msgspec.json.encode(shallow_to_json(section))
    restored = shallow_from_json(msgspec.json.decode(encoded))
    assert restored == section
    assert restored.slug == "index"


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ({"Lazy": [{"Plain": "<p>a</p>"}]}, Plain("<p>a</p>")),
        ({"Lazy": [{"Plain": "<p>"}, {"Plain": "a</p>"}]}, Plain("<p>a</p>")),
        ({"Lazy": []}, Plain("")),
        (
            {"Lazy": [{"Plain": ""}, {"Local": {"slug": "b", "text": None}}]},
            Lazy([Local("b")]),
        ),
    ],
)
def test_decoded_entry_content_is_canonical(
    content: dict[str, object], expected: Plain | Lazy
) -> None:
    restored = shallow_from_json({"metadata": {"title": content}, "content": content})
    assert restored.content == expected
    assert restored.metadata["title"] == expected


@pytest.mark.parametrize(
    "payload",
    [
        {"metadata": {}, "content": {"Plain": "x", "Lazy": []}},
        {"metadata": {}, "content": {"Html": "x"}},
        {"metadata": {}, "content": {"Lazy": [{"Local": {"text": None}}]}},
        {"content": {"Plain": ""}},
    ],
)
def test_entry_json_rejects_schema_drift(payload: object) -> None:
    with pytest.raises((KeyError, TypeError, ValueError)):
        shallow_from_json(payload)


def test_content_text_skips_placeholders() -> None:
    content = Lazy([Plain("a"), Local("b"), Plain("c")])
    assert content_text(content) == "ac"


def test_metadata_bool_reads_literal_strings() -> None:
    metadata = {"collect": Plain("true"), "asref": Plain(" false "), "x": Plain("yes")}
    assert metadata_bool(metadata, "collect") is True
    assert metadata_bool(metadata, "asref") is False
    assert metadata_bool(metadata, "x") is None
    assert metadata_bool(metadata, "missing") is None


def test_counter_numbers_siblings_and_children() -> None:
    counter = Counter()
    counter.step()
    counter.step()
    assert counter.display() == "2."
    child = counter.left_shift()
    child.step()
    assert child.display() == "2.1."
    copy = counter.copy()
    copy.step()
    assert counter.display() == "2."
    assert copy.display() == "3."
