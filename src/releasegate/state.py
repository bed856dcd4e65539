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

"""Blocking policy: turn a package's diagnostic flags into a verdict.

Two tiers keep "has a problem" apart from "the problem is acceptable"::

    flags ──∩ BLOCKING_FLAGS──→ blocked_by ──− allow-list──→ disallowed_blockers
                                    │                              │
                                 blocked                   release_eligible
                              (raw signal)              (selected and empty)

The allow-list is the dev-dependency list when the package is only
reachable as a development dependency, and the selection list otherwise.
"""

from __future__ import annotations

from collections.abc import Set
from dataclasses import dataclass

from releasegate.flags import BLOCKING_FLAGS, StateFlag


@dataclass(frozen=True)
class CrateState:
    """Verdict for one package in one selection run.

    Attributes:
        flags: The package's diagnostic flags.
        allowed_dev_dependency_blockers: Blocking flags tolerated when the
            package is only a development dependency.
        allowed_selection_blockers: Blocking flags tolerated for matched
            packages and release dependencies.
        expanded: Whether the package was pulled into the release set by
            dependency expansion rather than by the match filter.
    """

    flags: frozenset[StateFlag]
    allowed_dev_dependency_blockers: frozenset[StateFlag] = frozenset()
    allowed_selection_blockers: frozenset[StateFlag] = frozenset()
    expanded: bool = False

    @classmethod
    def new(
        cls,
        flags: Set[StateFlag],
        allowed_dev_dependency_blockers: Set[StateFlag] = frozenset(),
        allowed_selection_blockers: Set[StateFlag] = frozenset(),
        *,
        expanded: bool = False,
    ) -> CrateState:
        """Build a verdict from any set-like flag collections."""
        return cls(
            flags=frozenset(flags),
            allowed_dev_dependency_blockers=frozenset(allowed_dev_dependency_blockers),
            allowed_selection_blockers=frozenset(allowed_selection_blockers),
            expanded=expanded,
        )

    @property
    def blocked_by(self) -> frozenset[StateFlag]:
        """Blocking flags present, regardless of any allow-list."""
        return self.flags & BLOCKING_FLAGS

    @property
    def blocked(self) -> bool:
        """Whether at least one blocking flag is present."""
        return bool(self.blocked_by)

    @property
    def applicable_allowed_blockers(self) -> frozenset[StateFlag]:
        """The allow-list that applies to this package's graph role."""
        if StateFlag.IS_WORKSPACE_DEV_DEPENDENCY in self.flags:
            return self.allowed_dev_dependency_blockers
        return self.allowed_selection_blockers

    @property
    def disallowed_blockers(self) -> frozenset[StateFlag]:
        """Blocking flags not covered by the applicable allow-list."""
        return self.blocked_by - self.applicable_allowed_blockers

    @property
    def selected(self) -> bool:
        """Whether the package is part of the release set."""
        return StateFlag.MATCHED in self.flags or self.expanded

    @property
    def release_eligible(self) -> bool:
        """Whether the package is selected and nothing disallowed blocks it."""
        return self.selected and not self.disallowed_blockers


__all__ = [
    'CrateState',
]
