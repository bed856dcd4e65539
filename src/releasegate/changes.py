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

"""Change detection between two snapshots of the workspace history.

Usage::

    from releasegate.changes import changed_files

    paths = changed_files(Path('.'), 'v1.2.0', 'HEAD')
    # ('/repo/packages/core/src/core/api.py', '/repo/README.md')
"""

from __future__ import annotations

from pathlib import Path, PurePath

from releasegate.backends.vcs import VCS, GitCLIBackend
from releasegate.logging import get_logger

logger = get_logger(__name__)


def changed_files(
    root: Path,
    before_revision: str,
    after_revision: str,
    *,
    vcs: VCS | None = None,
) -> tuple[str, ...]:
    """Return absolute paths modified between two revisions.

    Additions, deletions and modifications are all included. The result
    is sorted and free of duplicates. Two revisions that resolve to the
    same commit always yield an empty tuple.

    Args:
        root: Any directory inside the repository (usually the workspace root).
        before_revision: The older revision (e.g. the previous release tag).
        after_revision: The newer revision (e.g. ``HEAD``).
        vcs: VCS backend to read history from. Defaults to
            :class:`GitCLIBackend` rooted at ``root``.

    Returns:
        Sorted, de-duplicated absolute path strings.

    Raises:
        ReleaseGateError: ``RG-VCS-REVISION-NOT-FOUND`` for an unknown
            revision, ``RG-VCS-HISTORY-UNAVAILABLE`` if history cannot
            be read.
    """
    backend = vcs if vcs is not None else GitCLIBackend(root)
    before = backend.resolve_revision(before_revision)
    after = backend.resolve_revision(after_revision)
    if before == after:
        logger.info('no_changes_identical_revisions', revision=before_revision)
        return ()

    toplevel = backend.toplevel()
    paths = sorted({str(toplevel / name) for name in backend.diff_names(before, after)})
    logger.info(
        'changed_files',
        before=before_revision,
        after=after_revision,
        count=len(paths),
    )
    return tuple(paths)


def is_under(path: str, root: Path) -> bool:
    """Return ``True`` if ``path`` is ``root`` itself or lies beneath it.

    The test is path-component aware: ``/ws/pkg-ab/x`` is not under
    ``/ws/pkg-a``.
    """
    return PurePath(path).is_relative_to(root)


__all__ = [
    'changed_files',
    'is_under',
]
