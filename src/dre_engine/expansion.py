"""Expanded/collapsed state for recursively rendered account rows."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from dre_engine.models import AccountNode
from dre_engine.tree import iter_preorder


class RowExpansionState:
    """Set of expanded node ids.

    Rows start collapsed unless ids are seeded. This state is independent
    of the aggregated report: toggling a row never triggers a rebuild.
    """

    def __init__(self, expanded: Iterable[int] = ()):
        self._expanded: set[int] = set(expanded)

    def toggle(self, node_id: int) -> bool:
        """Flip ``node_id`` and return its new expanded state."""
        if node_id in self._expanded:
            self._expanded.discard(node_id)
            return False
        self._expanded.add(node_id)
        return True

    def is_expanded(self, node_id: int) -> bool:
        return node_id in self._expanded

    def expand(self, node_id: int) -> None:
        self._expanded.add(node_id)

    def collapse(self, node_id: int) -> None:
        self._expanded.discard(node_id)

    def expand_all(self, tree: Sequence[AccountNode]) -> None:
        """Expand every branch node of ``tree``."""
        self._expanded.update(node.id for node, _ in iter_preorder(tree) if not node.is_leaf)

    def collapse_all(self) -> None:
        self._expanded.clear()

    @property
    def expanded_ids(self) -> frozenset[int]:
        return frozenset(self._expanded)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._expanded

    def __len__(self) -> int:
        return len(self._expanded)

    def __repr__(self) -> str:
        return f"RowExpansionState({sorted(self._expanded)!r})"


@dataclass(frozen=True)
class VisibleRow:
    """A node as it appears in the rendered table."""

    node: AccountNode
    depth: int
    has_children: bool
    expanded: bool

    @property
    def shows_toggle(self) -> bool:
        return self.has_children


def iter_visible_rows(
    tree: Sequence[AccountNode], state: RowExpansionState
) -> Iterator[VisibleRow]:
    """Yield the rows a recursive renderer would draw, in display order.

    Children are visited only below branch nodes that are expanded.
    """
    stack: list[tuple[AccountNode, int]] = [(node, 0) for node in reversed(tree)]
    while stack:
        node, depth = stack.pop()
        has_children = not node.is_leaf
        expanded = has_children and state.is_expanded(node.id)
        yield VisibleRow(node=node, depth=depth, has_children=has_children, expanded=expanded)
        if expanded:
            for child in reversed(node.children):
                stack.append((child, depth + 1))
