"""Tree rewrites applied after inline parsing: figures and footnotes."""

from __future__ import annotations

import typing as typ
import xml.etree.ElementTree as etree  # noqa: N813

from markdown.extensions.footnotes import NBSP_PLACEHOLDER
from markdown.treeprocessors import Treeprocessor

from kodama.slug import to_hash_id

if typ.TYPE_CHECKING:
    from markdown import Markdown

FOOTNOTE_ID_PREFIX = "fn:"


class FigureTreeprocessor(Treeprocessor):
    """Give every image a ``title`` equal to its alt text."""

    def run(self, root: etree.Element) -> None:
        for image in root.iter("img"):
            image.set("title", image.get("alt", ""))


class FootnoteTreeprocessor(Treeprocessor):
    """Renumber footnotes by first reference and scope their ids to the slug.

    References become ``sup.footnote-reference`` anchors and the footnote list
    is replaced by one ``div.footnote-definition`` per note, so ids stay
    unique when several sections share one page.
    """

    def __init__(self, md: Markdown, slug: str) -> None:
        super().__init__(md)
        self.prefix = to_hash_id(slug)
        self.numbers: dict[str, int] = {}

    def run(self, root: etree.Element) -> None:
        self.numbers = {}
        for sup in root.iter("sup"):
            anchor = sup.find("a")
            if anchor is None or anchor.get("class") != "footnote-ref":
                continue
            label = anchor.get("href", "").removeprefix(f"#{FOOTNOTE_ID_PREFIX}")
            number = self._number(label)
            target = self._target_id(label)
            sup.attrib.clear()
            sup.set("class", "footnote-reference")
            sup.set("id", f"{target}-back")
            anchor.attrib.clear()
            anchor.set("href", f"#{target}")
            anchor.text = str(number)
        self._replace_footnote_list(root)

    def _number(self, label: str) -> int:
        return self.numbers.setdefault(label, len(self.numbers) + 1)

    def _target_id(self, label: str) -> str:
        return f"{self.prefix}-{label}"

    def _replace_footnote_list(self, root: etree.Element) -> None:
        for parent in root.iter():
            for index, child in enumerate(list(parent)):
                if child.tag == "div" and child.get("class") == "footnote":
                    parent.remove(child)
                    for offset, definition in enumerate(self._definitions(child)):
                        parent.insert(index + offset, definition)
                    return

    def _definitions(self, footnotes: etree.Element) -> list[etree.Element]:
        definitions: list[etree.Element] = []
        for item in footnotes.iter("li"):
            label = item.get("id", "").removeprefix(FOOTNOTE_ID_PREFIX)
            target = self._target_id(label)
            definition = etree.Element("div")
            definition.set("class", "footnote-definition")
            definition.set("id", target)
            sup = etree.SubElement(definition, "sup")
            sup.set("class", "footnote-definition-label")
            anchor = etree.SubElement(sup, "a")
            anchor.set("href", f"#{target}-back")
            anchor.text = str(self._number(label))
            for child in list(item):
                _drop_backrefs(child)
                definition.append(child)
            definitions.append(definition)
        return definitions


def _drop_backrefs(element: etree.Element) -> None:
    """Remove the stock back-reference arrows and the space before them."""
    for parent in list(element.iter()):
        children = list(parent)
        for index, child in enumerate(children):
            if child.tag != "a" or child.get("class") != "footnote-backref":
                continue
            tail = child.tail or ""
            if index:
                previous = children[index - 1]
                previous.tail = _strip_nbsp(previous.tail) + tail
            else:
                parent.text = _strip_nbsp(parent.text) + tail
            parent.remove(child)


def _strip_nbsp(text: str | None) -> str:
    return (text or "").replace(NBSP_PLACEHOLDER, "").rstrip("\xa0")


__all__ = ["FigureTreeprocessor", "FootnoteTreeprocessor"]
