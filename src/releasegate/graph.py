# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Dependency graph over workspace packages.

Builds a directed acyclic graph (DAG) from workspace packages, rejects
cycles, and exposes the release-safe member order plus dependency and
dependant queries used by diagnostics and selection.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                            │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Dependency graph        │ A map of "who needs what". If package A    │
    │                         │ depends on B, draw an arrow A → B.         │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Release-safe order      │ An ordering where every package comes      │
    │                         │ after all its dependencies, so each one    │
    │                         │ can be released against released deps.     │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Dependants              │ Everything downstream of a package: the    │
    │                         │ packages that need a rebuild if it moves.  │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Cycle                   │ A→B→C→A. Nothing in a cycle can go first,  │
    │                         │ so a cyclic workspace cannot be loaded.    │
    └─────────────────────────┴─────────────────────────────────────────────┘

Architecture — Edge Direction::

    Forward edges: dependant → dependency (who needs what)
    Reverse edges: dependency → dependant (who uses me)

    plugin-foo ──→ core ←── plugin-bar

Ordering — Depth-First Post-Order::

    Packages are visited in declaration order; each package is emitted
    after all of its dependencies (visited in declaration order too).
    Packages with no ordering constraint between them therefore keep
    their relative declaration order, and repeated calls over the same
    snapshot always yield the same sequence.

    declared: g, b, a(b, c), c(b), e
    members:  g, b, c, a, e

Usage::

    from releasegate.graph import PackageGraph
    from releasegate.workspace import discover_packages

    graph = PackageGraph(discover_packages(Path('.')))
    for pkg in graph.members():
        print(pkg.name, [d.name for d in graph.dependencies_in_workspace(pkg.name)])
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Sequence

from releasegate.errors import E, ReleaseGateError
from releasegate.logging import get_logger
from releasegate.package import Dependency, Package

logger = get_logger(__name__)

EdgePredicate = Callable[[Dependency], bool]


class PackageGraph:
    """A read-only directed graph of workspace package dependencies.

    Edges point from dependants to their dependencies. Only edges to
    other workspace members are kept. When ``exclude_optional_deps`` is
    set, optional edges are dropped from every traversal, including the
    member order.

    Args:
        packages: Workspace packages in declaration (discovery) order.
        exclude_optional_deps: Ignore optional dependency edges.

    Raises:
        ReleaseGateError: ``RG-WORKSPACE-DUPLICATE-PACKAGE`` if two
            packages share a name, ``RG-GRAPH-CYCLE-DETECTED`` if the
            dependency edges form a cycle.
    """

    def __init__(self, packages: Sequence[Package], *, exclude_optional_deps: bool = False) -> None:
        """Build forward and reverse adjacency and compute the member order."""
        self._exclude_optional = exclude_optional_deps
        self._packages: dict[str, Package] = {}
        for pkg in packages:
            if pkg.name in self._packages:
                raise ReleaseGateError(
                    code=E.WORKSPACE_DUPLICATE_PACKAGE,
                    message=f"Duplicate package name '{pkg.name}' at {pkg.path}",
                    hint='Each package in the workspace must have a unique name.',
                )
            self._packages[pkg.name] = pkg

        self._edges: dict[str, tuple[Dependency, ...]] = {}
        self._reverse_edges: dict[str, list[tuple[str, Dependency]]] = {name: [] for name in self._packages}
        for pkg in self._packages.values():
            edges = tuple(
                dep
                for dep in pkg.dependencies
                if dep.name in self._packages and not (exclude_optional_deps and dep.optional)
            )
            self._edges[pkg.name] = edges
            for dep in edges:
                self._reverse_edges[dep.name].append((pkg.name, dep))

        self._order = self._release_order()
        self._position = {name: index for index, name in enumerate(self._order)}
        logger.debug(
            'built_package_graph',
            packages=len(self._packages),
            edges=sum(len(edges) for edges in self._edges.values()),
            exclude_optional_deps=exclude_optional_deps,
        )

    def __len__(self) -> int:
        """Return the number of packages in the graph."""
        return len(self._packages)

    def __contains__(self, name: object) -> bool:
        """Return ``True`` if ``name`` is a workspace member."""
        return name in self._packages

    @property
    def exclude_optional_deps(self) -> bool:
        """Whether optional edges are excluded from traversal."""
        return self._exclude_optional

    def package(self, name: str) -> Package:
        """Return the member called ``name``.

        Raises:
            ReleaseGateError: ``RG-GRAPH-UNKNOWN-PACKAGE`` for a non-member.
        """
        try:
            return self._packages[name]
        except KeyError:
            raise ReleaseGateError(
                code=E.GRAPH_UNKNOWN_PACKAGE,
                message=f"'{name}' is not a member of this workspace",
                hint=f'Known packages: {", ".join(sorted(self._packages))}',
            ) from None

    def members(self) -> list[Package]:
        """Return every package in release-safe topological order.

        For any edge ``A → B``, ``B`` appears before ``A``.
        """
        return [self._packages[name] for name in self._order]

    def dependencies_in_workspace(self, name: str, *, exclude_optional: bool | None = None) -> list[Dependency]:
        """Return the direct workspace dependencies of ``name``.

        Args:
            name: Package to query.
            exclude_optional: Drop optional edges. Defaults to the
                graph's ``exclude_optional_deps`` setting; passing
                ``False`` cannot re-add edges the graph already excludes.
        """
        self.package(name)
        if exclude_optional is None:
            exclude_optional = self._exclude_optional
        return [dep for dep in self._edges[name] if not (exclude_optional and dep.optional)]

    def dependants_in_workspace(self, name: str) -> list[Package]:
        """Return every package that transitively depends on ``name``.

        The result never includes ``name`` itself and is ordered like
        :meth:`members`.
        """
        return self.dependants_in_workspace_filtered(name, lambda _dep: True)

    def dependants_in_workspace_filtered(self, name: str, predicate: EdgePredicate) -> list[Package]:
        """Return the transitive dependants of ``name`` along accepted edges.

        Only edges whose :class:`Dependency` satisfies ``predicate`` are
        followed, e.g. ``lambda dep: not dep.is_dev`` ignores
        development-only edges. Results are computed on every call.

        Args:
            name: Package to start from.
            predicate: Edge filter applied to each reverse hop.
        """
        self.package(name)
        visited: set[str] = set()
        queue: deque[str] = deque([name])
        while queue:
            current = queue.popleft()
            for dependant, dep in self._reverse_edges[current]:
                if dependant in visited or dependant == name or not predicate(dep):
                    continue
                visited.add(dependant)
                queue.append(dependant)
        return self._in_member_order(visited)

    def dependencies_closure(self, name: str, predicate: EdgePredicate | None = None) -> list[Package]:
        """Return every package ``name`` transitively depends on.

        Args:
            name: Package to start from.
            predicate: Optional edge filter applied to each forward hop.
        """
        self.package(name)
        visited: set[str] = set()
        queue: deque[str] = deque([name])
        while queue:
            current = queue.popleft()
            for dep in self._edges[current]:
                if dep.name in visited or dep.name == name:
                    continue
                if predicate is not None and not predicate(dep):
                    continue
                visited.add(dep.name)
                queue.append(dep.name)
        return self._in_member_order(visited)

    def detect_cycles(self) -> list[list[str]]:
        """Return all dependency cycles found by DFS (empty if acyclic)."""
        _white, _gray, _black = 0, 1, 2
        color: dict[str, int] = {name: _white for name in self._packages}
        parent: dict[str, str | None] = {name: None for name in self._packages}
        cycles: list[list[str]] = []

        def _dfs(node: str) -> None:
            color[node] = _gray
            for dep in self._edges[node]:
                neighbor = dep.name
                if color[neighbor] == _gray:
                    # Back edge: walk parents to rebuild the loop.
                    cycle = [neighbor]
                    current = node
                    while current != neighbor:
                        cycle.append(current)
                        p = parent.get(current)
                        if p is None:
                            break
                        current = p
                    cycle.append(neighbor)
                    cycle.reverse()
                    cycles.append(cycle)
                elif color[neighbor] == _white:
                    parent[neighbor] = node
                    _dfs(neighbor)
            color[node] = _black

        for name in self._packages:
            if color[name] == _white:
                _dfs(name)
        return cycles

    def ensure_release_order_consistency(self, packages: Sequence[Package]) -> None:
        """Verify that no package in ``packages`` precedes one of its dependencies.

        Only dependencies that are themselves part of ``packages`` are
        considered.

        Raises:
            ReleaseGateError: ``RG-GRAPH-ORDER-INCONSISTENT`` naming the
                first offending pair.
        """
        index = {pkg.name: i for i, pkg in enumerate(packages)}
        for i, pkg in enumerate(packages):
            for dep in self._edges.get(pkg.name, ()):
                dep_index = index.get(dep.name)
                if dep_index is not None and dep_index > i:
                    raise ReleaseGateError(
                        code=E.GRAPH_ORDER_INCONSISTENT,
                        message=f"'{pkg.name}' is ordered before its dependency '{dep.name}'",
                        hint='Release dependencies before the packages that use them.',
                    )

    def _release_order(self) -> list[str]:
        """Depth-first post-order over declaration order; raises on cycles."""
        done: set[str] = set()
        in_progress: set[str] = set()
        order: list[str] = []

        def _visit(name: str) -> bool:
            if name in done:
                return True
            if name in in_progress:
                return False
            in_progress.add(name)
            for dep in self._edges[name]:
                if not _visit(dep.name):
                    return False
            in_progress.discard(name)
            done.add(name)
            order.append(name)
            return True

        for name in self._packages:
            if not _visit(name):
                cycle_strs = [' → '.join(c) for c in self.detect_cycles()]
                logger.error('cycles_detected', cycles=cycle_strs)
                raise ReleaseGateError(
                    code=E.GRAPH_CYCLE_DETECTED,
                    message=f'Circular dependencies detected: {cycle_strs}',
                    hint='Workspace dependency graphs must be acyclic. Remove one edge of each cycle.',
                )
        return order

    def _in_member_order(self, names: set[str]) -> list[Package]:
        return [self._packages[name] for name in sorted(names, key=self._position.__getitem__)]


__all__ = [
    'EdgePredicate',
    'PackageGraph',
]
