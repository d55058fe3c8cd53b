"""Dependency Engine - Prerequisite graph traversal and the unlock guard.

Edges point from a prerequisite to the medals that depend on it. Removing an
unlock is refused while any transitive dependent is still unlocked.

Cycles in the catalog are data-authoring defects: traversal stays finite
through its visited set, and find_cycles() lets catalog validation report
them.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from ..type_defs import DependencyIndex, MedalData, RemovalCheck


class DependencyEngine:
    """Pure logic for the medal dependency graph."""

    @staticmethod
    def build_dependency_index(medals: Iterable[MedalData]) -> DependencyIndex:
        """Map each prerequisite medal id to the ids of medals requiring it."""
        index: DependencyIndex = {}
        for medal in medals:
            medal_id = medal.get(const.DATA_MEDAL_ID)
            if not medal_id:
                continue
            for prereq in medal.get(const.DATA_MEDAL_PREREQUISITES) or []:
                if prereq.get(const.DATA_PREREQ_TYPE) != const.PREREQ_TYPE_MEDAL:
                    continue
                prereq_id = prereq.get(const.DATA_PREREQ_MEDAL_ID)
                if prereq_id:
                    index.setdefault(prereq_id, set()).add(medal_id)
        return index

    @staticmethod
    def get_descendants(medal_id: str, index: DependencyIndex) -> set[str]:
        """All medals that transitively depend on ``medal_id`` (BFS).

        The start node is never part of the result, even when a cycle leads
        back to it.
        """
        visited = {medal_id}
        descendants: set[str] = set()
        queue = deque([medal_id])
        while queue:
            current = queue.popleft()
            for dependent in index.get(current, ()):
                if dependent in visited:
                    if dependent == medal_id:
                        const.LOGGER.warning(
                            "Dependency cycle detected through medal %s", medal_id
                        )
                    continue
                visited.add(dependent)
                descendants.add(dependent)
                queue.append(dependent)
        return descendants

    @staticmethod
    def get_blocking(
        medal_id: str, index: DependencyIndex, unlocked_ids: Iterable[str]
    ) -> list[str]:
        """Sorted unlocked descendants that block re-locking ``medal_id``."""
        unlocked = set(unlocked_ids)
        return sorted(
            dependent
            for dependent in DependencyEngine.get_descendants(medal_id, index)
            if dependent in unlocked
        )

    @staticmethod
    def can_remove(
        medal_id: str, index: DependencyIndex, unlocked_ids: Iterable[str]
    ) -> RemovalCheck:
        """Whether ``medal_id`` can be re-locked, with the blocking list."""
        blocking = DependencyEngine.get_blocking(medal_id, index, unlocked_ids)
        return {"can_remove": not blocking, "blocking": blocking}

    @staticmethod
    def find_cycles(index: DependencyIndex) -> list[list[str]]:
        """Return each dependency cycle once, as a list of medal ids.

        Uses an iterative depth-first search with white/grey/black marking.
        """
        cycles: list[list[str]] = []
        seen_cycles: set[frozenset[str]] = set()
        done: set[str] = set()

        for root in sorted(index):
            if root in done:
                continue
            path: list[str] = [root]
            on_path = {root}
            stack = [iter(sorted(index.get(root, ())))]
            while stack:
                nxt = next(stack[-1], None)
                if nxt is None:
                    stack.pop()
                    finished = path.pop()
                    on_path.discard(finished)
                    done.add(finished)
                    continue
                if nxt in on_path:
                    cycle = path[path.index(nxt) :]
                    key = frozenset(cycle)
                    if key not in seen_cycles:
                        seen_cycles.add(key)
                        cycles.append(cycle)
                    continue
                if nxt in done:
                    continue
                path.append(nxt)
                on_path.add(nxt)
                stack.append(iter(sorted(index.get(nxt, ()))))
        return cycles
