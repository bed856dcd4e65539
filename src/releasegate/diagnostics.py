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

"""Per-package diagnostic flag evaluation.

Key Concepts (ELI5)::

    ┌─────────────────────────────┬─────────────────────────────────────────┐
    │ Flag                        │ Set when...                             │
    ├─────────────────────────────┼─────────────────────────────────────────┤
    │ Matched                     │ The name matches the policy filter.     │
    ├─────────────────────────────┼─────────────────────────────────────────┤
    │ ChangedSincePreviousRelease │ A changed file lives in the package.    │
    ├─────────────────────────────┼─────────────────────────────────────────┤
    │ IsWorkspaceDependency       │ A matched package needs it, directly   │
    │                             │ or through other packages.              │
    ├─────────────────────────────┼─────────────────────────────────────────┤
    │ IsWorkspaceDevDependency    │ A matched package only needs it for    │
    │                             │ development (every path crosses a dev  │
    │                             │ edge).                                  │
    ├─────────────────────────────┼─────────────────────────────────────────┤
    │ Missing* / Unreleasable*    │ Release hygiene problems.               │
    ├─────────────────────────────┼─────────────────────────────────────────┤
    │ *VersionReqViolated         │ The version sits in a forbidden range. │
    └─────────────────────────────┴─────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Iterable

from releasegate.changes import is_under
from releasegate.flags import StateFlag
from releasegate.graph import EdgePredicate, PackageGraph
from releasegate.logging import get_logger
from releasegate.package import Dependency, Package
from releasegate.policy import SelectionPolicy

logger = get_logger(__name__)


def _edge_filter(*, normal_only: bool, exclude_optional: bool) -> EdgePredicate | None:
    if not normal_only and not exclude_optional:
        return None

    def _accept(dep: Dependency) -> bool:
        if normal_only and dep.is_dev:
            return False
        return not (exclude_optional and dep.optional)

    return _accept


def _reachable_from(
    graph: PackageGraph,
    roots: Iterable[str],
    *,
    normal_only: bool,
    exclude_optional: bool,
) -> set[str]:
    predicate = _edge_filter(normal_only=normal_only, exclude_optional=exclude_optional)
    reachable: set[str] = set()
    for root in roots:
        reachable.update(pkg.name for pkg in graph.dependencies_closure(root, predicate))
    return reachable


def _hygiene_flags(pkg: Package, policy: SelectionPolicy) -> set[StateFlag]:
    flags: set[StateFlag] = set()
    if not pkg.has_readme:
        flags.add(StateFlag.MISSING_README)
    if not pkg.has_changelog:
        flags.add(StateFlag.MISSING_CHANGELOG)
    elif not pkg.changelog_releasable:
        flags.add(StateFlag.UNRELEASABLE_VIA_CHANGELOG_FRONTMATTER)
    if policy.violates_disallowed(pkg.version):
        flags.add(StateFlag.DISALLOWED_VERSION_REQ_VIOLATED)
    if policy.violates_enforced(pkg.version):
        flags.add(StateFlag.ENFORCED_VERSION_REQ_VIOLATED)
    return flags


def evaluate_flags(
    graph: PackageGraph,
    changed: Iterable[str],
    policy: SelectionPolicy,
) -> dict[str, frozenset[StateFlag]]:
    """Compute the diagnostic flags of every workspace member.

    The result is a pure function of its inputs: the same graph, change
    set and policy always produce the same mapping. Optional edges are
    skipped when either the graph or the policy excludes them.

    Args:
        graph: The workspace dependency graph.
        changed: Absolute paths of changed files.
        policy: The selection policy.

    Returns:
        Mapping of package name to its flag set, in member order.
    """
    changed_paths = list(changed)
    members = graph.members()
    matched = [pkg.name for pkg in members if policy.matches(pkg.name)]

    any_edge = _reachable_from(graph, matched, normal_only=False, exclude_optional=policy.exclude_optional_deps)
    normal_edge = _reachable_from(graph, matched, normal_only=True, exclude_optional=policy.exclude_optional_deps)
    matched_set = set(matched)

    result: dict[str, frozenset[StateFlag]] = {}
    for pkg in members:
        flags = _hygiene_flags(pkg, policy)
        if pkg.name in matched_set:
            flags.add(StateFlag.MATCHED)
        if any(is_under(path, pkg.path) for path in changed_paths):
            flags.add(StateFlag.CHANGED_SINCE_PREVIOUS_RELEASE)
        if pkg.name in any_edge:
            flags.add(StateFlag.IS_WORKSPACE_DEPENDENCY)
            if pkg.name not in normal_edge and pkg.name not in matched_set:
                flags.add(StateFlag.IS_WORKSPACE_DEV_DEPENDENCY)
        result[pkg.name] = frozenset(flags)

    logger.debug(
        'evaluated_flags',
        packages=len(result),
        matched=len(matched),
        changed_paths=len(changed_paths),
    )
    return result


__all__ = [
    'evaluate_flags',
]
