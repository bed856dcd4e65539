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

"""Selection policy and its ``releasegate.toml`` configuration reader.

A :class:`SelectionPolicy` is an immutable value threaded explicitly
through every evaluation call; there is no global policy state, so runs
with different policies never interfere.

Validation Pipeline::

    releasegate.toml
    ┌──────────────────────┐
    │ match_fliter = "..." │  ← typo!
    └──────────┬───────────┘
               │
               ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 1. Unknown key   │────→│ RG-CONFIG-INVALID-KEY:       │
    │    detection     │     │ hint: "Did you mean          │
    └────────┬─────────┘     │       'match_filter'?"       │
             │               └──────────────────────────────┘
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 2. Type check    │────→│ RG-CONFIG-INVALID-VALUE:     │
    │    each value    │     │ Expected list, got str       │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 3. Parse values  │────→│ RG-CONFIG-INVALID-VALUE:     │
    │ regex/spec/flags │     │ invalid version specifier    │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐
    │ PolicyConfig()   │  ← frozen dataclass, ready to use
    └──────────────────┘

Supported keys in ``releasegate.toml``::

    match_filter                    = "^acme"            # regex, search semantics
    disallowed_version_reqs         = ["<0.1.0"]         # PEP 440 specifier sets
    enforced_version_reqs           = []
    exclude_optional_deps           = false
    allowed_dev_dependency_blockers = ["MissingChangelog"]
    allowed_selection_blockers      = []
    exclude                         = ["sample-*"]       # package-name globs
"""

from __future__ import annotations

import difflib
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import Version

from releasegate.errors import E, ReleaseGateError
from releasegate.flags import StateFlag, parse_flags
from releasegate.logging import get_logger

logger = get_logger(__name__)

# The config file name at the workspace root.
CONFIG_FILENAME = 'releasegate.toml'

DEFAULT_MATCH_FILTER = '.*'

_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'match_filter': str,
    'disallowed_version_reqs': list,
    'enforced_version_reqs': list,
    'exclude_optional_deps': bool,
    'allowed_dev_dependency_blockers': list,
    'allowed_selection_blockers': list,
    'exclude': list,
}

VALID_KEYS: frozenset[str] = frozenset(_TYPE_MAP)


def _compile_filter(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ReleaseGateError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"Invalid match_filter pattern '{pattern}': {exc}",
            hint='match_filter must be a Python regular expression.',
        ) from exc


def _parse_version_reqs(key: str, specs: Iterable[str]) -> tuple[SpecifierSet, ...]:
    result: list[SpecifierSet] = []
    for spec in specs:
        if not spec.strip():
            raise ReleaseGateError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"Empty version specifier in '{key}'",
                hint='An empty specifier would match every version; remove it.',
            )
        try:
            result.append(SpecifierSet(spec))
        except InvalidSpecifier as exc:
            raise ReleaseGateError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"Invalid version specifier '{spec}' in '{key}': {exc}",
                hint='Use PEP 440 specifiers, e.g. ">=0.1.0,<1.0".',
            ) from exc
    return tuple(result)


@dataclass(frozen=True)
class SelectionPolicy:
    """Immutable release selection policy.

    Build instances with :meth:`create` to get validation of raw strings;
    the constructor takes already-parsed values.

    Attributes:
        match_filter: Regex searched in package names to mark explicit
            release candidates.
        disallowed_version_reqs: Ranges a current version must not fall in.
        enforced_version_reqs: A second, independently checked list of
            ranges whose violation is flagged separately.
        exclude_optional_deps: Ignore optional edges during traversal.
        allowed_dev_dependency_blockers: Blocking flags tolerated for
            packages only reachable as development dependencies.
        allowed_selection_blockers: Blocking flags tolerated for matched
            packages and release dependencies.
    """

    match_filter: re.Pattern[str] = field(default_factory=lambda: re.compile(DEFAULT_MATCH_FILTER))
    disallowed_version_reqs: tuple[SpecifierSet, ...] = ()
    enforced_version_reqs: tuple[SpecifierSet, ...] = ()
    exclude_optional_deps: bool = False
    allowed_dev_dependency_blockers: frozenset[StateFlag] = frozenset()
    allowed_selection_blockers: frozenset[StateFlag] = frozenset()

    @classmethod
    def create(
        cls,
        *,
        match_filter: str = DEFAULT_MATCH_FILTER,
        disallowed_version_reqs: Iterable[str] = (),
        enforced_version_reqs: Iterable[str] = (),
        exclude_optional_deps: bool = False,
        allowed_dev_dependency_blockers: Iterable[StateFlag | str] = (),
        allowed_selection_blockers: Iterable[StateFlag | str] = (),
    ) -> SelectionPolicy:
        """Validate raw values and build a policy.

        Raises:
            ReleaseGateError: ``RG-CONFIG-INVALID-VALUE`` for an invalid
                regex, version specifier or flag name.
        """
        return cls(
            match_filter=_compile_filter(match_filter),
            disallowed_version_reqs=_parse_version_reqs('disallowed_version_reqs', disallowed_version_reqs),
            enforced_version_reqs=_parse_version_reqs('enforced_version_reqs', enforced_version_reqs),
            exclude_optional_deps=exclude_optional_deps,
            allowed_dev_dependency_blockers=parse_flags(allowed_dev_dependency_blockers),
            allowed_selection_blockers=parse_flags(allowed_selection_blockers),
        )

    def matches(self, name: str) -> bool:
        """Return ``True`` if ``name`` satisfies the match filter."""
        return self.match_filter.search(name) is not None

    def violates_disallowed(self, version: Version) -> bool:
        """Return ``True`` if ``version`` falls in any disallowed range."""
        return _in_any(version, self.disallowed_version_reqs)

    def violates_enforced(self, version: Version) -> bool:
        """Return ``True`` if ``version`` falls in any enforced range."""
        return _in_any(version, self.enforced_version_reqs)


def _in_any(version: Version, reqs: tuple[SpecifierSet, ...]) -> bool:
    return any(req.contains(version, prereleases=True) for req in reqs)


@dataclass(frozen=True)
class PolicyConfig:
    """Validated contents of ``releasegate.toml``.

    Attributes:
        policy: The selection policy.
        exclude: Package-name globs dropped during workspace discovery.
        config_path: The file that was loaded, or ``None`` if absent.
    """

    policy: SelectionPolicy = field(default_factory=SelectionPolicy)
    exclude: list[str] = field(default_factory=list)
    config_path: Path | None = None


def _validate_value_type(key: str, value: Any) -> None:  # noqa: ANN401 - dynamic config values
    expected = _TYPE_MAP[key]
    if not isinstance(value, expected):
        type_name = expected.__name__ if isinstance(expected, type) else str(expected)
        raise ReleaseGateError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {CONFIG_FILENAME}.',
        )
    if isinstance(value, list):
        for item in value:
            if not isinstance(item, str):
                raise ReleaseGateError(
                    code=E.CONFIG_INVALID_VALUE,
                    message=f"'{key}' items must be strings, got {type(item).__name__}: {item!r}",
                )


def load_policy(workspace_root: Path) -> PolicyConfig:
    """Load and validate ``releasegate.toml`` from ``workspace_root``.

    A missing file yields the default policy (match everything, no
    version constraints, empty allow-lists).

    Raises:
        ReleaseGateError: If the file is unreadable or contains invalid
            keys or values.
    """
    config_path = workspace_root / CONFIG_FILENAME
    if not config_path.is_file():
        logger.debug('no_releasegate_config', path=str(config_path))
        return PolicyConfig()

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise ReleaseGateError(
            code=E.CONFIG_NOT_FOUND,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise ReleaseGateError(
            code=E.CONFIG_INVALID_VALUE,
            message=f'Failed to parse {config_path}: {exc}',
            hint=f'Check that {CONFIG_FILENAME} contains valid TOML.',
        ) from exc

    raw: dict[str, Any] = doc.unwrap()  # noqa: ANN401

    for key in raw:
        if key not in VALID_KEYS:
            suggestion = difflib.get_close_matches(key, VALID_KEYS, n=1, cutoff=0.6)
            hint = f"Did you mean '{suggestion[0]}'?" if suggestion else f'Valid keys: {", ".join(sorted(VALID_KEYS))}'
            raise ReleaseGateError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {CONFIG_FILENAME}",
                hint=hint,
            )

    for key, value in raw.items():
        _validate_value_type(key, value)

    policy = SelectionPolicy.create(
        match_filter=raw.get('match_filter', DEFAULT_MATCH_FILTER),
        disallowed_version_reqs=raw.get('disallowed_version_reqs', []),
        enforced_version_reqs=raw.get('enforced_version_reqs', []),
        exclude_optional_deps=raw.get('exclude_optional_deps', False),
        allowed_dev_dependency_blockers=raw.get('allowed_dev_dependency_blockers', []),
        allowed_selection_blockers=raw.get('allowed_selection_blockers', []),
    )
    logger.debug('loaded_policy', path=str(config_path), match_filter=policy.match_filter.pattern)
    return PolicyConfig(policy=policy, exclude=list(raw.get('exclude', [])), config_path=config_path)


__all__ = [
    'CONFIG_FILENAME',
    'DEFAULT_MATCH_FILTER',
    'VALID_KEYS',
    'PolicyConfig',
    'SelectionPolicy',
    'load_policy',
]
