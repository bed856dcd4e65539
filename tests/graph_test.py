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

"""Tests for releasegate.graph module."""

from __future__ import annotations

from pathlib import Path

import pytest
from packaging.version import Version
from releasegate.errors import E, ReleaseGateError
from releasegate.graph import PackageGraph
from releasegate.package import Dependency, DependencyKind, Package

_DEV = DependencyKind.DEVELOPMENT


def _pkg(name: str, *deps: str | Dependency) -> Package:
    """Create a minimal Package; bare strings become normal required edges."""
    base = Path('/ws')
    return Package(
        name=name,
        version=Version('1.0.0'),
        path=base / name,
        manifest_path=base / name / 'pyproject.toml',
        dependencies=tuple(d if isinstance(d, Dependency) else Dependency(d) for d in deps),
    )


def _names(packages: list[Package]) -> list[str]:
    return [p.name for p in packages]


def _workspace_1() -> list[Package]:
    return [_pkg('g'), _pkg('b'), _pkg('a', 'b', 'c'), _pkg('c', 'b'), _pkg('e')]


def _workspace_2() -> list[Package]:
    return [_pkg('a', 'b', 'c'), _pkg('b'), _pkg('c', 'b'), _pkg('d', 'a')]


class TestMembers:
    """members() yields a release-safe, deterministic order."""

    def test_empty(self) -> None:
        """Empty package list produces empty graph."""
        graph = PackageGraph([])
        assert len(graph) == 0, f'Expected empty graph, got {len(graph)}'
        assert graph.members() == []

    def test_declaration_order_breaks_ties(self) -> None:
        """Unconstrained packages keep their declaration order."""
        graph = PackageGraph(_workspace_1())
        assert _names(graph.members()) == ['g', 'b', 'c', 'a', 'e']

    def test_dependencies_hoisted_before_dependants(self) -> None:
        """A package declared before its dependencies is emitted after them."""
        graph = PackageGraph(_workspace_2())
        assert _names(graph.members()) == ['b', 'c', 'a', 'd']

    def test_every_edge_respected(self) -> None:
        """For every edge A → B, B precedes A."""
        graph = PackageGraph(_workspace_1())
        order = _names(graph.members())
        for pkg in graph.members():
            for dep in graph.dependencies_in_workspace(pkg.name):
                assert order.index(dep.name) < order.index(pkg.name), f'{dep.name} must precede {pkg.name}'

    def test_repeated_calls_identical(self) -> None:
        """Repeated calls return the same sequence."""
        graph = PackageGraph(_workspace_2())
        assert _names(graph.members()) == _names(graph.members())

    def test_dev_edges_order_members(self) -> None:
        """Development edges also constrain the order."""
        graph = PackageGraph([_pkg('app', Dependency('testing', kind=_DEV)), _pkg('testing')])
        assert _names(graph.members()) == ['testing', 'app']

    def test_external_names_ignored(self) -> None:
        """Edges to non-members are dropped."""
        graph = PackageGraph([_pkg('core', 'pydantic')])
        assert graph.dependencies_in_workspace('core') == []


class TestConstructionErrors:
    """Invalid workspaces are rejected at construction."""

    def test_cycle(self) -> None:
        """A → B → A raises a cycle error naming the loop."""
        with pytest.raises(ReleaseGateError) as exc_info:
            PackageGraph([_pkg('a', 'b'), _pkg('b', 'a')])
        assert exc_info.value.code == E.GRAPH_CYCLE_DETECTED
        assert 'a → b → a' in str(exc_info.value)

    def test_self_loop(self) -> None:
        """A package depending on itself is a cycle."""
        with pytest.raises(ReleaseGateError) as exc_info:
            PackageGraph([_pkg('a', 'a')])
        assert exc_info.value.code == E.GRAPH_CYCLE_DETECTED

    def test_optional_cycle_tolerated_when_excluded(self) -> None:
        """A cycle through an optional edge disappears when optional edges are excluded."""
        packages = [_pkg('a', 'b'), _pkg('b', Dependency('a', optional=True))]
        graph = PackageGraph(packages, exclude_optional_deps=True)
        assert _names(graph.members()) == ['b', 'a']

    def test_duplicate_name(self) -> None:
        """Two packages with the same name are rejected."""
        with pytest.raises(ReleaseGateError) as exc_info:
            PackageGraph([_pkg('a'), _pkg('a')])
        assert exc_info.value.code == E.WORKSPACE_DUPLICATE_PACKAGE


class TestDependencies:
    """dependencies_in_workspace() returns direct edges."""

    def test_direct_only(self) -> None:
        """Only direct dependencies are returned, in declaration order."""
        graph = PackageGraph(_workspace_1())
        assert [d.name for d in graph.dependencies_in_workspace('a')] == ['b', 'c']

    def test_optional_toggle(self) -> None:
        """exclude_optional=True drops optional edges."""
        graph = PackageGraph([_pkg('core'), _pkg('app', Dependency('core', optional=True))])
        assert [d.name for d in graph.dependencies_in_workspace('app')] == ['core']
        assert graph.dependencies_in_workspace('app', exclude_optional=True) == []

    def test_graph_level_toggle(self) -> None:
        """The graph-wide setting is the default."""
        graph = PackageGraph(
            [_pkg('core'), _pkg('app', Dependency('core', optional=True))],
            exclude_optional_deps=True,
        )
        assert graph.exclude_optional_deps is True
        assert graph.dependencies_in_workspace('app') == []

    def test_unknown_package(self) -> None:
        """Querying a non-member is an error."""
        graph = PackageGraph(_workspace_1())
        with pytest.raises(ReleaseGateError) as exc_info:
            graph.dependencies_in_workspace('nope')
        assert exc_info.value.code == E.GRAPH_UNKNOWN_PACKAGE

    def test_closure(self) -> None:
        """dependencies_closure() follows edges transitively."""
        graph = PackageGraph(_workspace_2())
        assert _names(graph.dependencies_closure('d')) == ['b', 'c', 'a']

    def test_closure_with_predicate(self) -> None:
        """A predicate prunes edges during the forward walk."""
        graph = PackageGraph([
            _pkg('lib'),
            _pkg('fixtures', 'lib'),
            _pkg('app', Dependency('fixtures', kind=_DEV)),
        ])
        assert _names(graph.dependencies_closure('app')) == ['lib', 'fixtures']
        assert graph.dependencies_closure('app', lambda dep: not dep.is_dev) == []


class TestDependants:
    """dependants_in_workspace() returns the reverse transitive closure."""

    def test_transitive(self) -> None:
        """All downstream packages, in member order, excluding the start."""
        graph = PackageGraph(_workspace_2())
        assert _names(graph.dependants_in_workspace('b')) == ['c', 'a', 'd']

    def test_leaf_has_none(self) -> None:
        """A package nobody depends on has no dependants."""
        graph = PackageGraph(_workspace_2())
        assert graph.dependants_in_workspace('d') == []

    def test_filtered_skips_dev_edges(self) -> None:
        """The predicate is applied to every reverse hop."""
        graph = PackageGraph([
            _pkg('core'),
            _pkg('plugin', 'core'),
            _pkg('tests-helper', Dependency('core', kind=_DEV)),
            _pkg('app', 'tests-helper'),
        ])
        assert _names(graph.dependants_in_workspace('core')) == ['plugin', 'tests-helper', 'app']
        assert _names(graph.dependants_in_workspace_filtered('core', lambda d: not d.is_dev)) == ['plugin']

    def test_filtered_results_are_not_reused(self) -> None:
        """A rejecting filter right after an accepting one finds nothing."""
        graph = PackageGraph(_workspace_2())
        assert _names(graph.dependants_in_workspace_filtered('b', lambda _dep: True)) == ['c', 'a', 'd']
        assert graph.dependants_in_workspace_filtered('b', lambda _dep: False) == []
        assert _names(graph.dependants_in_workspace_filtered('b', lambda _dep: True)) == ['c', 'a', 'd']

    def test_unknown_package(self) -> None:
        """Querying a non-member is an error."""
        graph = PackageGraph(_workspace_2())
        with pytest.raises(ReleaseGateError):
            graph.dependants_in_workspace('zzz')


class TestDetectCycles:
    """detect_cycles() reports loops without raising."""

    def test_acyclic(self) -> None:
        """An acyclic graph has no cycles."""
        assert PackageGraph(_workspace_1()).detect_cycles() == []


class TestReleaseOrderConsistency:
    """ensure_release_order_consistency() validates arbitrary sequences."""

    def test_members_order_is_consistent(self) -> None:
        """members() always passes."""
        graph = PackageGraph(_workspace_2())
        graph.ensure_release_order_consistency(graph.members())

    def test_subset_in_order(self) -> None:
        """A subsequence of members() passes."""
        graph = PackageGraph(_workspace_1())
        graph.ensure_release_order_consistency([graph.package('b'), graph.package('a')])

    def test_dependant_first_rejected(self) -> None:
        """Listing a package before its dependency fails."""
        graph = PackageGraph(_workspace_1())
        with pytest.raises(ReleaseGateError) as exc_info:
            graph.ensure_release_order_consistency([graph.package('a'), graph.package('b')])
        assert exc_info.value.code == E.GRAPH_ORDER_INCONSISTENT
        assert "'a'" in str(exc_info.value)
