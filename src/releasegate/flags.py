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

"""The closed vocabulary of per-package diagnostic flags.

A package's diagnostics are a ``frozenset[StateFlag]``. Flags fall into
two groups::

    role / selection flags           blocking flags
    ─────────────────────────        ─────────────────────────────────────
    Matched                          MissingReadme
    ChangedSincePreviousRelease      MissingChangelog
    IsWorkspaceDependency            UnreleasableViaChangelogFrontmatter
    IsWorkspaceDevDependency         DisallowedVersionReqViolated
                                     EnforcedVersionReqViolated

Only blocking flags can stop a release; role flags decide which
allow-list applies and whether a package is selected at all.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from releasegate.errors import E, ReleaseGateError


class StateFlag(str, Enum):
    """A single boolean diagnostic fact about a package."""

    MATCHED = 'Matched'
    CHANGED_SINCE_PREVIOUS_RELEASE = 'ChangedSincePreviousRelease'
    IS_WORKSPACE_DEPENDENCY = 'IsWorkspaceDependency'
    IS_WORKSPACE_DEV_DEPENDENCY = 'IsWorkspaceDevDependency'
    MISSING_README = 'MissingReadme'
    MISSING_CHANGELOG = 'MissingChangelog'
    UNRELEASABLE_VIA_CHANGELOG_FRONTMATTER = 'UnreleasableViaChangelogFrontmatter'
    DISALLOWED_VERSION_REQ_VIOLATED = 'DisallowedVersionReqViolated'
    ENFORCED_VERSION_REQ_VIOLATED = 'EnforcedVersionReqViolated'


BLOCKING_FLAGS: frozenset[StateFlag] = frozenset({
    StateFlag.MISSING_README,
    StateFlag.MISSING_CHANGELOG,
    StateFlag.UNRELEASABLE_VIA_CHANGELOG_FRONTMATTER,
    StateFlag.DISALLOWED_VERSION_REQ_VIOLATED,
    StateFlag.ENFORCED_VERSION_REQ_VIOLATED,
})


def parse_flag(name: str) -> StateFlag:
    """Parse a flag from its vocabulary name or enum member name.

    ``"MissingChangelog"`` and ``"MISSING_CHANGELOG"`` both map to
    :attr:`StateFlag.MISSING_CHANGELOG`.

    Raises:
        ReleaseGateError: ``RG-CONFIG-INVALID-VALUE`` for unknown names.
    """
    try:
        return StateFlag(name)
    except ValueError:
        pass
    try:
        return StateFlag[name.upper()]
    except KeyError:
        raise ReleaseGateError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"Unknown diagnostic flag '{name}'",
            hint=f'Valid flags: {", ".join(flag.value for flag in StateFlag)}',
        ) from None


def parse_flags(names: Iterable[str]) -> frozenset[StateFlag]:
    """Parse a collection of flag names into a flag set."""
    return frozenset(parse_flag(name) for name in names)


def format_flags(flags: Iterable[StateFlag]) -> str:
    """Render flags in vocabulary order, e.g. ``"MissingReadme, MissingChangelog"``."""
    present = set(flags)
    return ', '.join(flag.value for flag in StateFlag if flag in present)


__all__ = [
    'BLOCKING_FLAGS',
    'StateFlag',
    'format_flags',
    'parse_flag',
    'parse_flags',
]
