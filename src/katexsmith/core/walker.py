"""Depth-first traversal yielding the text nodes eligible for math scanning."""

from __future__ import annotations

from collections.abc import Collection, Iterator

from bs4.element import NavigableString, PageElement, PreformattedString, Tag


def is_scannable_text(node: PageElement) -> bool:
    """Return True for plain text nodes.

    Comments, CDATA sections, doctypes and processing instructions are
    string subclasses as well but never carry document text.
    """
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def iter_text_nodes(root: PageElement, ignored_tags: Collection[str]) -> Iterator[NavigableString]:
    """Yield text leaves below ``root`` in document order.

    Elements listed in ``ignored_tags`` are opaque: nothing inside them is
    yielded. Children are snapshotted when their parent is expanded so the
    node just yielded may be replaced before iteration resumes.
    """
    stack: list[PageElement] = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, Tag):
            if node.name in ignored_tags:
                continue
            stack.extend(reversed(list(node.contents)))
        elif is_scannable_text(node):
            yield node


class TextNodeWalker:
    """Restartable view over the scannable text nodes of a tree."""

    def __init__(self, root: PageElement, ignored_tags: Collection[str]) -> None:
        self.root = root
        self.ignored_tags = ignored_tags

    def __iter__(self) -> Iterator[NavigableString]:
        return iter_text_nodes(self.root, self.ignored_tags)

    def snapshot(self) -> list[NavigableString]:
        """Collect the current text nodes before any mutation takes place."""
        return list(self)


__all__ = ["TextNodeWalker", "is_scannable_text", "iter_text_nodes"]
