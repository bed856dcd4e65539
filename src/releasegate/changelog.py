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

"""Changelog inspection.

Reduces a package's ``CHANGELOG.md`` to the two facts release selection
needs: does it exist, and is its leading entry pending release.

Changelog format::

    ---
    unreleasable: true        ← optional front matter; opts the package out
    ---

    # Changelog

    ## Unreleased             ← first level-2 heading must be Unreleased
                                 (``## [Unreleased]`` also accepted)
    - Add streaming support.

    ## 0.4.0
    ...
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from releasegate.errors import E, ReleaseGateError
from releasegate.logging import get_logger

logger = get_logger(__name__)

CHANGELOG_FILENAME = 'CHANGELOG.md'

# "key: value" front matter lines, optionally quoted.
_FRONTMATTER_LINE_RE = re.compile(r'^["\']?(?P<key>[A-Za-z0-9_-]+)["\']?\s*:\s*(?P<value>.*?)\s*$')
_HEADING_RE = re.compile(r'^##\s+(?P<title>.+?)\s*$')
_UNRELEASED_RE = re.compile(r'^\[?unreleased\b\]?', re.IGNORECASE)

_TRUE_VALUES = frozenset({'true', 'yes', 'on', '1'})


@dataclass(frozen=True)
class ChangelogInfo:
    """What a changelog says about releasability.

    Attributes:
        exists: Whether the changelog file is present.
        frontmatter: Parsed front matter keys, lowercased values.
        first_heading: Title of the first ``## `` heading, if any.
    """

    exists: bool
    frontmatter: dict[str, str] = field(default_factory=dict)
    first_heading: str | None = None

    @property
    def unreleasable(self) -> bool:
        """Whether the front matter opts the package out of release."""
        return self.frontmatter.get('unreleasable', '') in _TRUE_VALUES

    @property
    def has_unreleased_entry(self) -> bool:
        """Whether the leading entry is an Unreleased section."""
        return self.first_heading is not None and _UNRELEASED_RE.match(self.first_heading) is not None

    @property
    def releasable(self) -> bool:
        """Whether the changelog permits a release."""
        return self.exists and not self.unreleasable and self.has_unreleased_entry


def _split_frontmatter(lines: list[str], path: Path) -> tuple[dict[str, str], list[str]]:
    if not lines or lines[0].strip() != '---':
        return {}, lines

    end_idx = -1
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == '---':
            end_idx = i
            break
    if end_idx < 0:
        logger.warning('changelog_unclosed_frontmatter', path=str(path))
        return {}, lines

    frontmatter: dict[str, str] = {}
    for line in lines[1:end_idx]:
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        m = _FRONTMATTER_LINE_RE.match(stripped)
        if m:
            frontmatter[m.group('key').lower()] = m.group('value').strip('"\'').lower()
        else:
            logger.warning('changelog_invalid_frontmatter_line', path=str(path), line=stripped)
    return frontmatter, lines[end_idx + 1 :]


def parse_changelog(text: str, path: Path = Path(CHANGELOG_FILENAME)) -> ChangelogInfo:
    """Parse changelog text.

    Args:
        text: The changelog contents.
        path: Used for log context only.
    """
    frontmatter, body = _split_frontmatter(text.splitlines(), path)
    first_heading: str | None = None
    for line in body:
        m = _HEADING_RE.match(line)
        if m:
            first_heading = m.group('title')
            break
    return ChangelogInfo(exists=True, frontmatter=frontmatter, first_heading=first_heading)


def inspect_changelog(package_dir: Path) -> ChangelogInfo:
    """Inspect ``CHANGELOG.md`` in ``package_dir``.

    A missing file yields ``ChangelogInfo(exists=False)``.

    Raises:
        ReleaseGateError: ``RG-WORKSPACE-PARSE-ERROR`` if the file exists
            but cannot be read as UTF-8 text.
    """
    path = package_dir / CHANGELOG_FILENAME
    if not path.is_file():
        return ChangelogInfo(exists=False)
    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as exc:
        raise ReleaseGateError(
            code=E.WORKSPACE_PARSE_ERROR,
            message=f'Failed to read {path}: {exc}',
            hint=f'Check that {path} is readable UTF-8 text.',
        ) from exc
    info = parse_changelog(text, path)
    logger.debug(
        'inspected_changelog',
        path=str(path),
        unreleasable=info.unreleasable,
        first_heading=info.first_heading,
    )
    return info


__all__ = [
    'CHANGELOG_FILENAME',
    'ChangelogInfo',
    'inspect_changelog',
    'parse_changelog',
]
