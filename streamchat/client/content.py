"""
MODULE OVERVIEW:
A tiny DOM-like tree that the chat client renders into.

WHAT IS HAPPENING HERE:
The render state machine never talks to a UI toolkit directly. It only needs
ordered child-append, "set/append inner markup", a class list, an inline style map
and a way to ask the viewport to scroll to the bottom. `ContentNode` provides exactly
that. The terminal view (and the tests) read the resulting tree back.
"""
from typing import Any, Iterator, Optional


class ContentNode:
    def __init__(
        self,
        kind: str = "div",
        classes: Optional[list[str]] = None,
        markup: str = "",
        node_id: Optional[str] = None,
    ):
        self.kind = kind
        self.node_id = node_id
        self.classes: list[str] = list(classes or [])
        self.style: dict[str, str] = {}
        self.markup = markup
        self.children: list["ContentNode"] = []
        self.parent: Optional["ContentNode"] = None
        # Whatever an external widget (e.g. a chart) attached to this node
        self.widget: Any = None
        self.scroll_requests = 0

    def __repr__(self) -> str:
        cls = ".".join(self.classes)
        return f"<ContentNode {self.kind}{'#' + self.node_id if self.node_id else ''}{'.' + cls if cls else ''} children={len(self.children)}>"

    # ==========================
    # TREE
    # ==========================
    def append(self, child: "ContentNode") -> "ContentNode":
        child.parent = self
        self.children.append(child)
        return child

    def clear(self) -> None:
        for child in self.children:
            child.parent = None
        self.children = []
        self.markup = ""
        self.widget = None

    def walk(self) -> Iterator["ContentNode"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, node_id: str) -> Optional["ContentNode"]:
        for node in self.walk():
            if node.node_id == node_id:
                return node
        return None

    def find_all(self, class_name: str) -> list["ContentNode"]:
        return [node for node in self.walk() if class_name in node.classes]

    # ==========================
    # MARKUP
    # ==========================
    def set_markup(self, markup: str) -> None:
        """Like assigning innerHTML: replaces own markup and drops any children."""
        self.clear()
        self.markup = markup

    def append_markup(self, markup: str) -> None:
        self.markup += markup

    # ==========================
    # CLASSES
    # ==========================
    def add_class(self, name: str) -> None:
        if name not in self.classes:
            self.classes.append(name)

    def remove_class(self, name: str) -> None:
        if name in self.classes:
            self.classes.remove(name)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    # ==========================
    # VIEWPORT
    # ==========================
    def scroll_to_end(self) -> None:
        self.scroll_requests += 1

    def to_html(self) -> str:
        attrs = ""
        if self.node_id:
            attrs += f' id="{self.node_id}"'
        if self.classes:
            attrs += f' class="{" ".join(self.classes)}"'
        if self.style:
            style = "; ".join(f"{k}: {v}" for k, v in self.style.items())
            attrs += f' style="{style}"'
        inner = self.markup + "".join(child.to_html() for child in self.children)
        return f"<{self.kind}{attrs}>{inner}</{self.kind}>"
