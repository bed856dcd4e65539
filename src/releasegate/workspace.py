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

"""Workspace package discovery for uv workspaces.

Reads ``[tool.uv.workspace]`` from the root pyproject.toml, expands
member globs, parses each member's ``pyproject.toml``, and records the
workspace-internal dependency edges plus the release hygiene facts
(readme, changelog) that diagnostics need.

Key Concepts (ELI5)::

    ┌─────────────────────────┬────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                           │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ Internal dep            │ A dependency that's another package in    │
    │                         │ this workspace AND resolved from the      │
    │                         │ workspace source. Must have               │
    │                         │ ``workspace = true`` in                   │
    │                         │ ``[tool.uv.sources]``.                   │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ Normal edge             │ From ``[project].dependencies`` (required)│
    │                         │ or ``[project.optional-dependencies]``    │
    │                         │ (optional).                               │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ Development edge        │ From ``[dependency-groups]`` (PEP 735).   │
    │                         │ Needed to test, not to run.               │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ Declaration order       │ Packages come back in the order the      │
    │                         │ member globs list them (each glob's       │
    │                         │ matches sorted by path). The graph uses  │
    │                         │ this order to break ties.                 │
    └─────────────────────────┴────────────────────────────────────────────┘

Exclusion — Two Separate Namespaces::

    Workspace excludes (path globs):      exclude_patterns (name globs):
    ┌──────────────────────────────┐     ┌──────────────────────────────┐
    │ From [tool.uv.workspace]    │     │ From releasegate.toml        │
    │ exclude = ["testapps/*"]    │     │ exclude = ["sample-*"]       │
    │                              │     │                              │
    │ Applied during glob          │     │ Applied after parsing        │
    │ expansion                    │     │ by package name              │
    └──────────────────────────────┘     └──────────────────────────────┘

Usage::

    from releasegate.workspace import discover_packages

    packages = discover_packages(Path('.'))
    for pkg in packages:
        print(f'{pkg.name} v{pkg.version}  deps={[dep.name for dep in pkg.dependencies]}')
"""

from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions
from packaging.version import InvalidVersion, Version

from releasegate.changelog import inspect_changelog
from releasegate.errors import E, ReleaseGateError
from releasegate.logging import get_logger
from releasegate.package import Dependency, DependencyKind, Package
from releasegate.utils.packaging import normalize_name, parse_dep_name

logger = get_logger(__name__)

README_FILENAMES: tuple[str, ...] = ('README.md', 'README.rst', 'README')


def _read_toml(path: Path, code: E) -> dict[str, Any]:  # noqa: ANN401
    try:
        text = path.read_text(encoding='utf-8')
    except OSError as exc:
        raise ReleaseGateError(
            code=code,
            message=f'Failed to read {path}: {exc}',
            hint=f'Check that {path} exists and is readable.',
        ) from exc
    try:
        return tomlkit.parse(text).unwrap()
    except tomlkit.exceptions.TOMLKitError as exc:
        raise ReleaseGateError(
            code=code,
            message=f'Failed to parse {path}: {exc}',
            hint=f'Check that {path} contains valid TOML.',
        ) from exc


def _expand_member_globs(
    workspace_root: Path,
    members: list[str],
    excludes: list[str],
) -> list[Path]:
    """Expand workspace member globs into concrete package directories.

    Returns:
        Absolute package directories (those containing a
        ``pyproject.toml``) in glob declaration order.
    """
    excluded: set[Path] = set()
    for pattern in excludes:
        for candidate in workspace_root.glob(str(pattern)):
            excluded.add(candidate.resolve())

    found: dict[Path, None] = {}
    for pattern in members:
        for candidate in sorted(workspace_root.glob(str(pattern))):
            resolved = candidate.resolve()
            if resolved in excluded or not (candidate.is_dir() and (candidate / 'pyproject.toml').is_file()):
                continue
            found.setdefault(resolved, None)

    result = list(found)
    logger.debug('expanded_member_globs', members=members, excludes=excludes, count=len(result))
    return result


def _has_readme(pkg_dir: Path, project: dict[str, Any]) -> bool:  # noqa: ANN401
    candidates = list(README_FILENAMES)
    declared = project.get('readme')
    if isinstance(declared, str):
        candidates.insert(0, declared)
    elif isinstance(declared, dict) and isinstance(declared.get('file'), str):
        candidates.insert(0, declared['file'])
    elif isinstance(declared, dict) and declared.get('text'):
        return True
    for name in candidates:
        path = pkg_dir / name
        if path.is_file() and path.stat().st_size > 0:
            return True
    return False


def _parse_version(raw: object, manifest_path: Path) -> Version:
    try:
        return Version(str(raw))
    except InvalidVersion as exc:
        raise ReleaseGateError(
            code=E.VERSION_INVALID,
            message=f"Invalid version '{raw}' in {manifest_path}",
            hint='Versions must follow PEP 440, e.g. "1.2.3" or "0.4.0rc1".',
        ) from exc


class _EdgeCollector:
    """Accumulates workspace-internal edges for one package, de-duplicated."""

    def __init__(self, package: str, internal_names: frozenset[str], workspace_sourced: frozenset[str]) -> None:
        self._package = package
        self._internal_names = internal_names
        self._workspace_sourced = workspace_sourced
        self.edges: dict[Dependency, None] = {}

    def add(self, spec: str, kind: DependencyKind, *, optional: bool) -> None:
        dep_name = parse_dep_name(spec)
        if dep_name == self._package or dep_name not in self._internal_names:
            return
        if dep_name not in self._workspace_sourced:
            # Workspace member pinned to a registry release.
            logger.info(
                'dep_not_workspace_sourced',
                package=self._package,
                dep=dep_name,
                hint='Not in [tool.uv.sources] with workspace = true',
            )
            return
        self.edges.setdefault(Dependency(name=dep_name, kind=kind, optional=optional), None)


def _parse_package(
    pkg_dir: Path,
    internal_names: frozenset[str],
    workspace_sourced: frozenset[str],
) -> Package:
    """Parse a single package's pyproject.toml.

    A dependency becomes an edge only if its name is a workspace member
    and it is resolved from the workspace source (``workspace = true`` in
    ``[tool.uv.sources]``). A self-reference (``pkg[extra]`` in its own
    extras) is not an edge.

    Raises:
        ReleaseGateError: If the pyproject.toml is malformed.
    """
    manifest_path = pkg_dir / 'pyproject.toml'
    doc = _read_toml(manifest_path, E.WORKSPACE_PARSE_ERROR)

    project: dict[str, Any] = dict(doc.get('project', {}))  # noqa: ANN401
    raw_name = project.get('name', '')
    if not raw_name:
        raise ReleaseGateError(
            code=E.WORKSPACE_PARSE_ERROR,
            message=f'No [project].name in {manifest_path}',
            hint='Every workspace member must have a [project] section with a name.',
        )
    name = normalize_name(raw_name)
    version = _parse_version(project.get('version', '0.0.0'), manifest_path)

    edges = _EdgeCollector(name, internal_names, workspace_sourced)
    for spec in project.get('dependencies', []):
        edges.add(spec, DependencyKind.NORMAL, optional=False)
    for specs in dict(project.get('optional-dependencies', {})).values():
        for spec in specs:
            edges.add(spec, DependencyKind.NORMAL, optional=True)
    for specs in dict(doc.get('dependency-groups', {})).values():
        for spec in specs:
            # {include-group = "..."} entries are covered by the included group itself.
            if isinstance(spec, str):
                edges.add(spec, DependencyKind.DEVELOPMENT, optional=False)

    changelog = inspect_changelog(pkg_dir)
    return Package(
        name=name,
        version=version,
        path=pkg_dir.resolve(),
        manifest_path=manifest_path.resolve(),
        dependencies=tuple(edges.edges),
        has_readme=_has_readme(pkg_dir, project),
        has_changelog=changelog.exists,
        changelog_releasable=changelog.releasable,
    )


def discover_packages(
    workspace_root: Path,
    *,
    exclude_patterns: list[str] | None = None,
) -> list[Package]:
    """Discover all packages in a uv workspace.

    Args:
        workspace_root: Path to the workspace root directory.
        exclude_patterns: Glob patterns to exclude packages by name
            (on top of the path excludes in the workspace config).

    Returns:
        List of :class:`Package` objects in declaration order.

    Raises:
        ReleaseGateError: If the workspace structure is invalid.
    """
    workspace_root = workspace_root.resolve()
    root_pyproject = workspace_root / 'pyproject.toml'
    if not root_pyproject.is_file():
        raise ReleaseGateError(
            code=E.WORKSPACE_NOT_FOUND,
            message=f'No pyproject.toml found at {workspace_root}',
            hint='Point to the directory containing your workspace pyproject.toml.',
        )

    doc = _read_toml(root_pyproject, E.WORKSPACE_NOT_FOUND)
    uv_section: dict[str, Any] = dict(dict(doc.get('tool', {})).get('uv', {}))  # noqa: ANN401
    if 'workspace' not in uv_section:
        raise ReleaseGateError(
            code=E.WORKSPACE_NOT_FOUND,
            message=f'No [tool.uv.workspace] section in {root_pyproject}',
            hint='releasegate only supports uv workspaces.',
        )
    workspace_section: dict[str, Any] = dict(uv_section['workspace'])  # noqa: ANN401
    members: list[str] = list(workspace_section.get('members', []))
    excludes: list[str] = list(workspace_section.get('exclude', []))

    if not members:
        raise ReleaseGateError(
            code=E.WORKSPACE_NO_MEMBERS,
            message='No members defined in [tool.uv.workspace]',
            hint='Add member globs, e.g. members = ["packages/*", "plugins/*"]',
        )

    pkg_dirs = _expand_member_globs(workspace_root, members, excludes)
    if not pkg_dirs:
        raise ReleaseGateError(
            code=E.WORKSPACE_NO_MEMBERS,
            message=f'No packages found matching members={members}',
            hint='Check that your member globs match directories with pyproject.toml files.',
        )

    # First pass: collect member names so dependencies can be classified.
    all_names: set[str] = set()
    for pkg_dir in pkg_dirs:
        manifest = _read_toml(pkg_dir / 'pyproject.toml', E.WORKSPACE_PARSE_ERROR)
        name = dict(manifest.get('project', {})).get('name', '')
        if name:
            all_names.add(normalize_name(name))

    uv_sources: dict[str, Any] = dict(uv_section.get('sources', {}))  # noqa: ANN401
    workspace_sourced = frozenset(
        normalize_name(src_name)
        for src_name, src_config in uv_sources.items()
        if isinstance(src_config, dict) and src_config.get('workspace')
    )

    # Second pass: full parse with dependency classification.
    packages: list[Package] = []
    seen: dict[str, Path] = {}
    for pkg_dir in pkg_dirs:
        pkg = _parse_package(pkg_dir, frozenset(all_names), workspace_sourced)
        if pkg.name in seen:
            raise ReleaseGateError(
                code=E.WORKSPACE_DUPLICATE_PACKAGE,
                message=f"Duplicate package name '{pkg.name}' found at {pkg_dir} and {seen[pkg.name]}",
                hint='Each package in the workspace must have a unique name.',
            )
        seen[pkg.name] = pkg_dir
        packages.append(pkg)

    if exclude_patterns:
        kept = [p for p in packages if not any(fnmatch.fnmatch(p.name, pat) for pat in exclude_patterns)]
        logger.info('excluded_packages', names=sorted({p.name for p in packages} - {p.name for p in kept}))
        packages = kept

    logger.info('discovered_packages', count=len(packages))
    return packages


__all__ = [
    'README_FILENAMES',
    'discover_packages',
]
