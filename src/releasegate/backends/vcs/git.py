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

"""Git VCS backend for releasegate.

The :class:`GitCLIBackend` implements the :class:`~releasegate.backends.vcs.VCS`
protocol by delegating to ``git`` via :func:`run_command`. It only reads
history; nothing in the repository or working tree is modified.
"""

from __future__ import annotations

from pathlib import Path

from releasegate.backends._run import CommandResult, TimeoutExpired, run_command
from releasegate.errors import E, ReleaseGateError
from releasegate.logging import get_logger

log = get_logger('releasegate.backends.git')


class GitCLIBackend:
    """Default :class:`~releasegate.backends.vcs.VCS` implementation using ``git``.

    Args:
        repo_root: Any directory inside the git repository.
    """

    def __init__(self, repo_root: Path) -> None:
        """Initialize with a directory inside the repository."""
        self._root = repo_root

    def _git(self, *args: str) -> CommandResult:
        """Run a git command, mapping a missing or hung ``git`` to a history error."""
        try:
            return run_command(['git', *args], cwd=self._root)
        except FileNotFoundError as exc:
            raise ReleaseGateError(
                code=E.VCS_HISTORY_UNAVAILABLE,
                message=f'git executable not found: {exc}',
                hint='Install git and make sure it is on PATH.',
            ) from exc
        except TimeoutExpired as exc:
            raise ReleaseGateError(
                code=E.VCS_HISTORY_UNAVAILABLE,
                message=f'git {" ".join(args)} timed out after {exc.timeout}s',
            ) from exc

    def toplevel(self) -> Path:
        """Return the absolute path of the repository's working tree root."""
        result = self._git('rev-parse', '--show-toplevel')
        if not result.ok or not result.stdout.strip():
            raise ReleaseGateError(
                code=E.VCS_HISTORY_UNAVAILABLE,
                message=f'{self._root} is not inside a git repository: {result.stderr.strip()}',
                hint='Run releasegate from within a git checkout of the workspace.',
            )
        return Path(result.stdout.strip())

    def resolve_revision(self, revision: str) -> str:
        """Resolve a revision (tag, branch, SHA, expression) to a commit SHA."""
        # Verifies that history is readable at all before blaming the revision.
        self.toplevel()
        result = self._git('rev-parse', '--verify', '--quiet', f'{revision}^{{commit}}')
        sha = result.stdout.strip()
        if not result.ok or not sha:
            raise ReleaseGateError(
                code=E.VCS_REVISION_NOT_FOUND,
                message=f"Unknown revision '{revision}'",
                hint="Check the revision name, or run 'git fetch --tags' if it lives on a remote.",
            )
        return sha

    def diff_names(self, before: str, after: str) -> list[str]:
        """Return repository-relative paths that differ between two commits."""
        result = self._git('diff', '--name-only', '--no-renames', '-z', before, after)
        if not result.ok:
            raise ReleaseGateError(
                code=E.VCS_HISTORY_UNAVAILABLE,
                message=f'git diff {before}..{after} failed: {result.stderr.strip()}',
            )
        names = [name for name in result.stdout.split('\0') if name]
        log.debug('diff_names', before=before[:12], after=after[:12], count=len(names))
        return names


__all__ = [
    'GitCLIBackend',
]
