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

"""Shared types describing workspace members and their dependency edges."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from packaging.version import Version

__all__ = [
    'Dependency',
    'DependencyKind',
    'Package',
]


class DependencyKind(str, Enum):
    """How a package uses one of its workspace dependencies."""

    NORMAL = 'normal'
    DEVELOPMENT = 'development'


@dataclass(frozen=True)
class Dependency:
    """A workspace-internal dependency edge.

    Attributes:
        name: Normalized name of the package depended upon.
        kind: Whether the edge is needed at runtime or only for development.
        optional: Whether the edge is only activated by an extra.
    """

    name: str
    kind: DependencyKind = DependencyKind.NORMAL
    optional: bool = False

    @property
    def is_dev(self) -> bool:
        """Whether this is a development-only edge."""
        return self.kind is DependencyKind.DEVELOPMENT


@dataclass(frozen=True)
class Package:
    """A single package discovered in the workspace.

    Attributes:
        name: The normalized package name (e.g. ``"acme-plugin-foo"``).
        version: The package's current version.
        path: Absolute path to the package directory.
        manifest_path: Absolute path to the package's ``pyproject.toml``.
        dependencies: Workspace-internal dependency edges, in declaration
            order. External (registry) dependencies are not recorded.
        has_readme: Whether a non-empty readme exists.
        has_changelog: Whether a ``CHANGELOG.md`` exists.
        changelog_releasable: Whether the changelog's leading entry is
            marked as pending release. Meaningless when ``has_changelog``
            is ``False``.
    """

    name: str
    version: Version
    path: Path
    manifest_path: Path
    dependencies: tuple[Dependency, ...] = field(default_factory=tuple)
    has_readme: bool = True
    has_changelog: bool = True
    changelog_releasable: bool = True
