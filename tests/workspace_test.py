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

"""Tests for releasegate.workspace module."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
from packaging.version import Version
from releasegate.errors import E, ReleaseGateError
from releasegate.package import Dependency, DependencyKind
from releasegate.workspace import discover_packages

_ROOT_PYPROJECT = """\
[project]
name = "workspace-root"
version = "0.0.0"

[tool.uv.workspace]
members = ["packages/*", "plugins/*"]
exclude = ["plugins/scratch"]

[tool.uv.sources]
core = { workspace = true }
testing-utils = { workspace = true }
plugin-foo = { workspace = true }
"""


def _write_member(
    root: Path,
    rel: str,
    body: str,
    *,
    readme: str | None = '# Readme\n',
    changelog: str | None = '## Unreleased\n',
) -> Path:
    pkg_dir = root / rel
    pkg_dir.mkdir(parents=True)
    (pkg_dir / 'pyproject.toml').write_text(textwrap.dedent(body), encoding='utf-8')
    if readme is not None:
        (pkg_dir / 'README.md').write_text(readme, encoding='utf-8')
    if changelog is not None:
        (pkg_dir / 'CHANGELOG.md').write_text(changelog, encoding='utf-8')
    return pkg_dir


def _make_workspace(root: Path) -> Path:
    (root / 'pyproject.toml').write_text(_ROOT_PYPROJECT, encoding='utf-8')
    _write_member(
        root,
        'packages/core',
        """\
        [project]
        name = "Core"
        version = "0.4.0"
        dependencies = ["pydantic>=2"]
        """,
    )
    _write_member(
        root,
        'packages/testing_utils',
        """\
        [project]
        name = "testing_utils"
        version = "0.1.0"
        dependencies = ["core"]
        """,
        readme='',
        changelog=None,
    )
    _write_member(
        root,
        'plugins/foo',
        """\
        [project]
        name = "plugin-foo"
        version = "1.0.0rc1"
        dependencies = ["core>=0.4", "pinned-member==1.0"]

        [project.optional-dependencies]
        extras = ["plugin-foo[other]", "testing-utils"]

        [dependency-groups]
        dev = ["testing-utils", "pytest", {include-group = "lint"}]
        lint = ["ruff"]
        """,
        changelog='---\nunreleasable: true\n---\n## Unreleased\n',
    )
    _write_member(
        root,
        'plugins/pinned',
        """\
        [project]
        name = "pinned-member"
        version = "1.0.0"
        """,
    )
    _write_member(
        root,
        'plugins/scratch',
        """\
        [project]
        name = "scratch"
        version = "0.0.1"
        """,
    )
    return root


class TestDiscoverPackages:
    """discover_packages() over a uv workspace."""

    def test_members_in_declaration_order(self, tmp_path: Path) -> None:
        """Glob order, then sorted paths within each glob; path excludes applied."""
        packages = discover_packages(_make_workspace(tmp_path))
        assert [p.name for p in packages] == ['core', 'testing-utils', 'plugin-foo', 'pinned-member']

    def test_package_fields(self, tmp_path: Path) -> None:
        """Names are normalized and versions parsed."""
        root = _make_workspace(tmp_path)
        core = discover_packages(root)[0]
        assert core.name == 'core'
        assert core.version == Version('0.4.0')
        assert core.path == (root / 'packages' / 'core').resolve()
        assert core.manifest_path == core.path / 'pyproject.toml'
        assert core.dependencies == ()

    def test_edges_classified(self, tmp_path: Path) -> None:
        """Only workspace-sourced members become edges, with kind and optionality."""
        by_name = {p.name: p for p in discover_packages(_make_workspace(tmp_path))}
        assert by_name['testing-utils'].dependencies == (Dependency('core'),)
        assert by_name['plugin-foo'].dependencies == (
            Dependency('core'),
            Dependency('testing-utils', optional=True),
            Dependency('testing-utils', kind=DependencyKind.DEVELOPMENT),
        )

    def test_hygiene_facts(self, tmp_path: Path) -> None:
        """Readme and changelog facts are recorded per package."""
        by_name = {p.name: p for p in discover_packages(_make_workspace(tmp_path))}
        assert by_name['core'].has_readme
        assert by_name['core'].has_changelog
        assert by_name['core'].changelog_releasable
        assert not by_name['testing-utils'].has_readme, 'empty README must not count'
        assert not by_name['testing-utils'].has_changelog
        assert by_name['plugin-foo'].has_changelog
        assert not by_name['plugin-foo'].changelog_releasable

    def test_name_excludes(self, tmp_path: Path) -> None:
        """Name globs drop packages after parsing."""
        packages = discover_packages(_make_workspace(tmp_path), exclude_patterns=['plugin-*', 'pinned-*'])
        assert [p.name for p in packages] == ['core', 'testing-utils']

    def test_declared_readme_file(self, tmp_path: Path) -> None:
        """A readme declared in [project] counts."""
        (tmp_path / 'pyproject.toml').write_text(
            '[tool.uv.workspace]\nmembers = ["pkg"]\n',
            encoding='utf-8',
        )
        pkg_dir = _write_member(
            tmp_path,
            'pkg',
            """\
            [project]
            name = "pkg"
            version = "1.0"
            readme = "docs/intro.md"
            """,
            readme=None,
        )
        (pkg_dir / 'docs').mkdir()
        (pkg_dir / 'docs' / 'intro.md').write_text('hello\n', encoding='utf-8')
        assert discover_packages(tmp_path)[0].has_readme


class TestDiscoverErrors:
    """Invalid workspaces raise structured errors."""

    def test_no_root_pyproject(self, tmp_path: Path) -> None:
        """A directory without pyproject.toml is not a workspace."""
        with pytest.raises(ReleaseGateError) as exc_info:
            discover_packages(tmp_path)
        assert exc_info.value.code == E.WORKSPACE_NOT_FOUND

    def test_not_a_uv_workspace(self, tmp_path: Path) -> None:
        """A plain project is not a workspace."""
        (tmp_path / 'pyproject.toml').write_text('[project]\nname = "solo"\n', encoding='utf-8')
        with pytest.raises(ReleaseGateError) as exc_info:
            discover_packages(tmp_path)
        assert exc_info.value.code == E.WORKSPACE_NOT_FOUND

    def test_no_members(self, tmp_path: Path) -> None:
        """Empty member globs are rejected."""
        (tmp_path / 'pyproject.toml').write_text('[tool.uv.workspace]\nmembers = []\n', encoding='utf-8')
        with pytest.raises(ReleaseGateError) as exc_info:
            discover_packages(tmp_path)
        assert exc_info.value.code == E.WORKSPACE_NO_MEMBERS

    def test_globs_match_nothing(self, tmp_path: Path) -> None:
        """Globs that match no package directory are rejected."""
        (tmp_path / 'pyproject.toml').write_text('[tool.uv.workspace]\nmembers = ["nope/*"]\n', encoding='utf-8')
        with pytest.raises(ReleaseGateError) as exc_info:
            discover_packages(tmp_path)
        assert exc_info.value.code == E.WORKSPACE_NO_MEMBERS

    def test_invalid_version(self, tmp_path: Path) -> None:
        """A non-PEP 440 version is reported."""
        (tmp_path / 'pyproject.toml').write_text('[tool.uv.workspace]\nmembers = ["pkg"]\n', encoding='utf-8')
        _write_member(tmp_path, 'pkg', '[project]\nname = "pkg"\nversion = "one point oh"\n')
        with pytest.raises(ReleaseGateError) as exc_info:
            discover_packages(tmp_path)
        assert exc_info.value.code == E.VERSION_INVALID

    def test_missing_name(self, tmp_path: Path) -> None:
        """Every member needs a [project].name."""
        (tmp_path / 'pyproject.toml').write_text('[tool.uv.workspace]\nmembers = ["pkg"]\n', encoding='utf-8')
        _write_member(tmp_path, 'pkg', '[project]\nversion = "1.0"\n')
        with pytest.raises(ReleaseGateError) as exc_info:
            discover_packages(tmp_path)
        assert exc_info.value.code == E.WORKSPACE_PARSE_ERROR

    def test_malformed_member_toml(self, tmp_path: Path) -> None:
        """Invalid TOML in a member is a parse error."""
        (tmp_path / 'pyproject.toml').write_text('[tool.uv.workspace]\nmembers = ["pkg"]\n', encoding='utf-8')
        _write_member(tmp_path, 'pkg', '[project\nname = "pkg"\n')
        with pytest.raises(ReleaseGateError) as exc_info:
            discover_packages(tmp_path)
        assert exc_info.value.code == E.WORKSPACE_PARSE_ERROR

    def test_duplicate_names(self, tmp_path: Path) -> None:
        """Two members normalizing to the same name are rejected."""
        (tmp_path / 'pyproject.toml').write_text('[tool.uv.workspace]\nmembers = ["a", "b"]\n', encoding='utf-8')
        _write_member(tmp_path, 'a', '[project]\nname = "My_Pkg"\nversion = "1.0"\n')
        _write_member(tmp_path, 'b', '[project]\nname = "my-pkg"\nversion = "1.0"\n')
        with pytest.raises(ReleaseGateError) as exc_info:
            discover_packages(tmp_path)
        assert exc_info.value.code == E.WORKSPACE_DUPLICATE_PACKAGE
