# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

import abc
import html

VOID_ELEMENTS = frozenset({"br", "hr", "img", "input", "link", "meta"})


class Node(abc.ABC):
    @property
    @abc.abstractmethod
    def html(self) -> str:
        pass

    def __str__(self) -> str:
        return self.html


class NodeList(Node):  # pylint: disable=too-few-public-methods
    nodes: tuple[Node, ...]

    def __init__(self, *nodes: Node | str) -> None:
        self.nodes = tuple(_node(x) for x in nodes)

    @property
    def html(self) -> str:
        return "".join(node.html for node in self.nodes)


class TextNode(Node):
    """Plain text, escaped on output."""

    text: str

    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        self.text = text

    @property
    def html(self) -> str:
        return html.escape(self.text, quote=False)


class Element(Node):  # pylint: disable=too-few-public-methods
    element: str
    attributes: dict[str, str | None]
    children: list[Node]

    def __init__(self, element: str, *children: Node | str, **attributes: str | None) -> None:
        self.element = element
        self.attributes = attributes
        self.children = [_node(x) for x in children]

    @property
    def html(self) -> str:
        attributes = "".join(_attributes(self.attributes))

        if self.element in VOID_ELEMENTS:
            return f"<{self.element}{attributes}>"

        return (
            f"<{self.element}{attributes}>"
            f"{''.join(x.html for x in self.children)}"
            f"</{self.element}>"
        )


class Document(Node):  # pylint: disable=too-few-public-methods
    title: str
    styles: list[str]
    scripts: list[str]
    children: list[Node]
    attributes: dict[str, str | None]

    def __init__(
        self,
        title: str,
        *elements: Node | str,
        styles: list[str] | None = None,
        scripts: list[str] | None = None,
        **attributes: str | None,
    ) -> None:
        self.title = title
        self.styles = list(styles or [])
        self.scripts = list(scripts or [])
        self.children = [_node(x) for x in elements]
        self.attributes = attributes

    @property
    def html(self) -> str:
        attributes = "".join(_attributes(self.attributes))
        styles = "".join(
            f'<link rel="stylesheet" href="{html.escape(style)}">' for style in self.styles
        )
        scripts = "".join(
            f'<script type="module" async defer src="{html.escape(script)}"></script>'
            for script in self.scripts
        )
        content = "".join(x.html for x in self.children)

        return (
            "<!DOCTYPE html>"
            '<html lang="en">'
            '<head><meta charset="utf-8">'
            '<meta name="viewport" content="width=device-width, initial-scale=1">'
            f"<title>{html.escape(self.title)}</title>{styles}{scripts}</head>"
            f"<body{attributes}>{content}</body>"
            "</html>"
        )


def _node(value: Node | str) -> Node:
    return value if isinstance(value, Node) else TextNode(value)


def _attributes(attributes: dict[str, str | None]) -> list[str]:
    # Trailing underscores allow reserved words (class_, for_); inner ones become dashes.
    return [
        f' {key.strip("_").replace("_", "-")}="{html.escape(value)}"'
        for key, value in attributes.items()
        if value
    ]


__all__ = ["Document", "Element", "Node", "NodeList", "TextNode"]
