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

"""VCS protocol for releasegate.

The :class:`VCS` protocol is the read-only slice of version control that
change detection needs. Implementations:

- :class:`~releasegate.backends.vcs.git.GitCLIBackend` — ``git`` CLI
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from releasegate.backends.vcs.git import GitCLIBackend as GitCLIBackend

__all__ = [
    'VCS',
    'GitCLIBackend',
]


@runtime_checkable
class VCS(Protocol):
    """Protocol for reading version-control history.

    Implementations raise :class:`~releasegate.errors.ReleaseGateError`
    with ``RG-VCS-REVISION-NOT-FOUND`` for unknown revisions and
    ``RG-VCS-HISTORY-UNAVAILABLE`` when history cannot be read.
    """

    def toplevel(self) -> Path:
        """Return the absolute path of the repository root."""
        ...

    def resolve_revision(self, revision: str) -> str:
        """Resolve a revision identifier to a full commit identifier.

        Args:
            revision: Tag, branch, SHA or revision expression.
        """
        ...

    def diff_names(self, before: str, after: str) -> list[str]:
        """Return repository-relative paths changed between two commits.

        Added, deleted and modified files are all reported; a rename is
        reported as its old and new path.

        Args:
            before: Resolved commit identifier of the older snapshot.
            after: Resolved commit identifier of the newer snapshot.
        """
        ...
