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

"""Release selection: which packages ship, and in what order.

Pipeline::

    revisions ──→ changed_files ──→ evaluate_flags ──→ seed ──→ expand
                                                                  │
        ordered list ←── members() order ←── verdicts ←───────────┘
                              or
                   SelectionBlockedError (RG-SELECTION-BLOCKED)

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                            │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Seed                    │ Packages you asked for (matched) that      │
    │                         │ actually changed.                          │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Expansion               │ If a seed depends on a workspace package   │
    │                         │ that also changed, that package must ship  │
    │                         │ too. Repeat until nothing new is added.    │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Blocked                 │ A candidate with a problem no allow-list   │
    │                         │ tolerates. One blocked candidate fails the │
    │                         │ whole selection; nothing ships partially.  │
    └─────────────────────────┴─────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from releasegate.backends.vcs import VCS
from releasegate.changes import changed_files
from releasegate.diagnostics import evaluate_flags
from releasegate.errors import E, ReleaseGateError
from releasegate.flags import StateFlag, format_flags
from releasegate.graph import PackageGraph
from releasegate.logging import get_logger
from releasegate.package import Package
from releasegate.policy import SelectionPolicy
from releasegate.state import CrateState

logger = get_logger(__name__)


@dataclass(frozen=True)
class PackageStatus:
    """Flags and verdict for one package in one selection run.

    Attributes:
        package: The workspace member.
        flags: Its diagnostic flags.
        state: Its verdict under the run's policy.
    """

    package: Package
    flags: frozenset[StateFlag]
    state: CrateState


class SelectionBlockedError(ReleaseGateError):
    """Raised when at least one release candidate is blocked by policy.

    Attributes:
        blocked: Mapping of each blocked candidate's name to the blocking
            flags that no allow-list tolerates, in member order.
    """

    def __init__(self, blocked: dict[str, frozenset[StateFlag]]) -> None:
        """Build the error message from the blocked candidates."""
        self.blocked = blocked
        details = '; '.join(f'{name} ({format_flags(flags)})' for name, flags in blocked.items())
        noun = 'candidate is' if len(blocked) == 1 else 'candidates are'
        super().__init__(
            code=E.SELECTION_BLOCKED,
            message=f'{len(blocked)} release {noun} blocked: {details}',
            hint='Fix the listed problems or add the flags to an allow-list in releasegate.toml.',
        )


class SelectionEngine:
    """Select the packages to release between two revisions.

    Args:
        graph: The workspace dependency graph.
        policy: The selection policy to apply.
        root: Directory inside the repository, used for change detection.
        vcs: VCS backend. Defaults to ``git`` at ``root``.
    """

    def __init__(
        self,
        graph: PackageGraph,
        policy: SelectionPolicy,
        *,
        root: Path | None = None,
        vcs: VCS | None = None,
    ) -> None:
        """Store the snapshot and policy for later runs."""
        self._graph = graph
        self._policy = policy
        self._root = root if root is not None else Path.cwd()
        self._vcs = vcs

    def changed(self, before_revision: str, after_revision: str) -> tuple[str, ...]:
        """Return the change set between two revisions."""
        return changed_files(self._root, before_revision, after_revision, vcs=self._vcs)

    def run(self, before_revision: str, after_revision: str) -> list[Package]:
        """Detect changes between two revisions and select the release set.

        Raises:
            SelectionBlockedError: If any candidate is blocked.
            ReleaseGateError: If history cannot be read.
        """
        return self.release_selection_for_changes(self.changed(before_revision, after_revision))

    def statuses(self, changed: Iterable[str]) -> list[PackageStatus]:
        """Return flags and verdict for every member, in member order."""
        flags, candidates = self._evaluate(changed)
        return [
            PackageStatus(
                package=pkg,
                flags=flags[pkg.name],
                state=self._state(flags[pkg.name], expanded=candidates.get(pkg.name, False)),
            )
            for pkg in self._graph.members()
        ]

    def release_selection_for_changes(self, changed: Iterable[str]) -> list[Package]:
        """Select the release set for a precomputed change set.

        Returns:
            Selected packages in release-safe order; empty when nothing
            matched has changed.

        Raises:
            SelectionBlockedError: If any candidate is blocked.
        """
        flags, candidates = self._evaluate(changed)
        selected: list[Package] = []
        blocked: dict[str, frozenset[StateFlag]] = {}
        for pkg in self._graph.members():
            if pkg.name not in candidates:
                continue
            state = self._state(flags[pkg.name], expanded=candidates[pkg.name])
            if state.disallowed_blockers:
                blocked[pkg.name] = state.disallowed_blockers
                logger.warning(
                    'candidate_blocked',
                    package=pkg.name,
                    blockers=format_flags(state.disallowed_blockers),
                )
                continue
            selected.append(pkg)

        if blocked:
            raise SelectionBlockedError(blocked)

        self._graph.ensure_release_order_consistency(selected)
        logger.info('release_selection', packages=[pkg.name for pkg in selected])
        return selected

    def _state(self, flags: frozenset[StateFlag], *, expanded: bool) -> CrateState:
        return CrateState.new(
            flags,
            self._policy.allowed_dev_dependency_blockers,
            self._policy.allowed_selection_blockers,
            expanded=expanded,
        )

    def _evaluate(self, changed: Iterable[str]) -> tuple[dict[str, frozenset[StateFlag]], dict[str, bool]]:
        """Compute flags and the candidate set.

        Returns:
            The flag mapping and a mapping of candidate name to whether
            it was added by expansion.
        """
        flags = evaluate_flags(self._graph, changed, self._policy)

        candidates: dict[str, bool] = {
            name: False
            for name, pkg_flags in flags.items()
            if StateFlag.MATCHED in pkg_flags and StateFlag.CHANGED_SINCE_PREVIOUS_RELEASE in pkg_flags
        }
        exclude_optional = self._policy.exclude_optional_deps or self._graph.exclude_optional_deps
        pending = list(candidates)
        while pending:
            name = pending.pop()
            for dep in self._graph.dependencies_in_workspace(name, exclude_optional=exclude_optional):
                if dep.name in candidates:
                    continue
                if StateFlag.CHANGED_SINCE_PREVIOUS_RELEASE not in flags[dep.name]:
                    continue
                candidates[dep.name] = True
                pending.append(dep.name)
                logger.debug('expanded_selection', package=dep.name, required_by=name)
        return flags, candidates


__all__ = [
    'PackageStatus',
    'SelectionBlockedError',
    'SelectionEngine',
]
