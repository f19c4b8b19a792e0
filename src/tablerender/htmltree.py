from __future__ import annotations

from dataclasses import dataclass, field
from html import escape as html_escape
from typing import Union

from bs4 import BeautifulSoup, NavigableString, Tag

VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)


@dataclass(slots=True)
class Text:
    value: str

    def render(self, out: list[str]) -> None:
        out.append(html_escape(self.value, quote=False))


@dataclass(slots=True)
class Element:
    tag: str
    attributes: list[tuple[str, str]] = field(default_factory=list)
    children: list["Node"] = field(default_factory=list)

    def get_attribute(self, name: str) -> str | None:
        for key, value in self.attributes:
            if key == name:
                return value
        return None

    def with_attribute(self, name: str, value: str) -> "Element":
        self.attributes.append((name, value))
        return self

    def replace_attribute(self, name: str, value: str) -> "Element":
        for idx, (key, _) in enumerate(self.attributes):
            if key == name:
                self.attributes[idx] = (name, value)
                return self
        return self.with_attribute(name, value)

    def append_class(self, name: str) -> "Element":
        """Add a space separated class, creating the ``class`` attribute when absent."""
        if not name:
            return self
        current = self.get_attribute("class")
        if current:
            return self.replace_attribute("class", f"{current} {name}")
        return self.replace_attribute("class", name)

    def append_child(self, *nodes: "Node") -> "Element":
        self.children.extend(nodes)
        return self

    def append_text(self, value: str) -> "Element":
        self.children.append(Text(value))
        return self

    def render(self, out: list[str]) -> None:
        out.append(f"<{self.tag}")
        for key, value in self.attributes:
            out.append(f' {key}="{html_escape(value, quote=True)}"')
        if self.tag in VOID_ELEMENTS:
            out.append("/>")
            return
        out.append(">")
        for child in self.children:
            child.render(out)
        out.append(f"</{self.tag}>")


Node = Union[Element, Text]


def element(tag: str, *children: Node | str, **attributes: str) -> Element:
    node = Element(tag)
    for key, value in attributes.items():
        node.with_attribute(key.rstrip("_"), value)
    for child in children:
        node.append_child(Text(child) if isinstance(child, str) else child)
    return node


def serialize(node: Node) -> str:
    out: list[str] = []
    node.render(out)
    return "".join(out)


def import_fragment(markup: str) -> list[Node]:
    """Convert an HTML fragment into tree nodes.

    Elements and text are rebuilt as ``Element``/``Text``; comments and
    doctypes are dropped.
    """
    soup = BeautifulSoup(markup, "html.parser")
    return [node for node in (_convert(child) for child in soup.contents) if node is not None]


def _convert(source: object) -> Node | None:
    if isinstance(source, Tag):
        node = Element(source.name)
        for key, value in source.attrs.items():
            node.with_attribute(key, " ".join(value) if isinstance(value, list) else str(value))
        for child in source.contents:
            converted = _convert(child)
            if converted is not None:
                node.append_child(converted)
        return node
    if isinstance(source, NavigableString):
        if type(source) is not NavigableString:
            return None
        return Text(str(source))
    return None
