"""Chart-of-accounts tree building and traversal."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

import structlog

from dre_engine.models import AccountNode

logger = structlog.get_logger(__name__)


class DuplicateIdError(ValueError):
    """Two flat records share the same account id."""

    def __init__(self, account_id: int):
        super().__init__(f"Duplicate account id {account_id}")
        self.account_id = account_id


def build_account_tree(
    records: Iterable[Mapping[str, Any] | AccountNode],
) -> list[AccountNode]:
    """Turn a flat, parent-linked list of accounts into a forest.

    Children keep the relative order they had in ``records``. A record
    whose ``parent_id`` points at an id that is not in ``records`` is
    returned as a root instead of being dropped.

    Records caught in a ``parent_id`` cycle (a self-reference included)
    are kept as well: the cycle member that comes first in ``records``
    is detached from its parent and returned as a root, so every input
    record appears exactly once in the forest. Roots are returned in
    input order.

    Raises:
        DuplicateIdError: two records share an id.
    """
    by_id: dict[int, AccountNode] = {}
    order: list[int] = []
    children_of: dict[int, list[int]] = {}

    for record in records:
        if isinstance(record, AccountNode):
            node = record.shallow_copy()
        else:
            node = AccountNode.from_record(record)
        if node.id in by_id:
            logger.warning("duplicate_account_id", account_id=node.id)
            raise DuplicateIdError(node.id)
        by_id[node.id] = node
        order.append(node.id)
        if node.parent_id is not None:
            children_of.setdefault(node.parent_id, []).append(node.id)

    for parent_id, child_ids in children_of.items():
        parent = by_id.get(parent_id)
        if parent is not None:
            parent.children = [by_id[child_id] for child_id in child_ids]

    orphans = 0
    for account_id in order:
        node = by_id[account_id]
        if node.parent_id is not None and node.parent_id not in by_id:
            logger.debug(
                "orphan_account_promoted",
                account_id=account_id,
                parent_id=node.parent_id,
            )
            orphans += 1

    cyclic = _break_cycles(by_id, order)

    roots = [
        by_id[account_id]
        for account_id in order
        if by_id[account_id].parent_id not in by_id or account_id in cyclic
    ]

    logger.debug(
        "account_tree_built",
        records=len(order),
        roots=len(roots),
        orphans=orphans,
        cycles=len(cyclic),
    )
    return roots


def _break_cycles(by_id: dict[int, AccountNode], order: list[int]) -> set[int]:
    """Detach one member of every ``parent_id`` cycle from its parent.

    Returns the ids of the detached nodes, which the caller turns into
    roots. Any node not reachable from a regular root either sits on a
    cycle or hangs below one.
    """
    position = {account_id: index for index, account_id in enumerate(order)}
    natural_roots = [
        by_id[account_id] for account_id in order if by_id[account_id].parent_id not in by_id
    ]
    reached = {node.id for node, _ in iter_preorder(natural_roots)}
    promoted: set[int] = set()

    for account_id in order:
        if account_id in reached:
            continue

        # Walk up until an id repeats; that id lies on the cycle.
        seen: set[int] = set()
        current = account_id
        while current not in seen:
            seen.add(current)
            current = by_id[current].parent_id

        members = [current]
        member = by_id[current].parent_id
        while member != current:
            members.append(member)
            member = by_id[member].parent_id
        entry = by_id[min(members, key=position.__getitem__)]

        parent = by_id[entry.parent_id]
        parent.children = [child for child in parent.children if child is not entry]
        logger.warning(
            "cyclic_account_promoted",
            account_id=entry.id,
            parent_id=entry.parent_id,
            cycle=sorted(members, key=position.__getitem__),
        )
        promoted.add(entry.id)
        reached.update(node.id for node, _ in iter_preorder([entry]))

    return promoted


def iter_preorder(nodes: Sequence[AccountNode]) -> Iterator[tuple[AccountNode, int]]:
    """Yield ``(node, depth)`` depth-first, parents before children.

    Uses an explicit stack so very deep charts do not hit the recursion
    limit.
    """
    stack: list[tuple[AccountNode, int]] = [(node, 0) for node in reversed(nodes)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        for child in reversed(node.children):
            stack.append((child, depth + 1))


def flatten_tree(nodes: Sequence[AccountNode]) -> list[AccountNode]:
    """Return every node of the forest in pre-order."""
    return [node for node, _ in iter_preorder(nodes)]


def find_node(nodes: Sequence[AccountNode], account_id: int) -> AccountNode | None:
    for node, _ in iter_preorder(nodes):
        if node.id == account_id:
            return node
    return None


def copy_tree(nodes: Sequence[AccountNode]) -> list[AccountNode]:
    """Deep-copy a forest without recursion."""
    roots: list[AccountNode] = []
    stack: list[tuple[AccountNode, list[AccountNode]]] = [
        (node, roots) for node in reversed(nodes)
    ]
    while stack:
        source, siblings = stack.pop()
        clone = source.shallow_copy()
        siblings.append(clone)
        for child in reversed(source.children):
            stack.append((child, clone.children))
    return roots
