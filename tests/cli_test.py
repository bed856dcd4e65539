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

"""Tests for releasegate.cli module."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest
from releasegate.backends._run import run_command
from releasegate.cli import build_parser, main

_needs_git = pytest.mark.skipif(
    shutil.which('git') is None,
    reason='git not found on PATH. Install git: https://git-scm.com/',
)


def _member(root: Path, name: str, deps: list[str], *, readme: bool = True) -> None:
    pkg_dir = root / 'packages' / name
    pkg_dir.mkdir(parents=True)
    dep_list = ', '.join(f'"{d}"' for d in deps)
    (pkg_dir / 'pyproject.toml').write_text(
        f'[project]\nname = "{name}"\nversion = "0.2.0"\ndependencies = [{dep_list}]\n',
        encoding='utf-8',
    )
    if readme:
        (pkg_dir / 'README.md').write_text(f'# {name}\n', encoding='utf-8')
    (pkg_dir / 'CHANGELOG.md').write_text('## Unreleased\n', encoding='utf-8')


def _workspace(root: Path, *, core_readme: bool = True) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / 'pyproject.toml').write_text(
        '[tool.uv.workspace]\n'
        'members = ["packages/*"]\n\n'
        '[tool.uv.sources]\n'
        'core = { workspace = true }\n'
        'plugin = { workspace = true }\n',
        encoding='utf-8',
    )
    (root / 'releasegate.toml').write_text('match_filter = "^(core|plugin)$"\n', encoding='utf-8')
    _member(root, 'plugin', ['core'])
    _member(root, 'core', [], readme=core_readme)
    _member(root, 'sample', ['plugin'])
    return root


def _git_workspace(tmp_path: Path, *, core_readme: bool = True) -> Path:
    """Workspace committed and tagged v0.1.0, then core and plugin changed at HEAD."""
    work = _workspace(tmp_path / 'work', core_readme=core_readme)
    for args in (
        ['git', 'init', '-q', '-b', 'main'],
        ['git', 'config', 'user.email', 'test@example.com'],
        ['git', 'config', 'user.name', 'Test User'],
        ['git', 'config', 'commit.gpgsign', 'false'],
        ['git', 'add', '-A'],
        ['git', 'commit', '-q', '-m', 'Initial commit'],
        ['git', 'tag', 'v0.1.0'],
    ):
        run_command(args, cwd=work, check=True)
    for name in ('core', 'plugin'):
        (work / 'packages' / name / 'api.py').write_text('VALUE = 1\n', encoding='utf-8')
    run_command(['git', 'add', '-A'], cwd=work, check=True)
    run_command(['git', 'commit', '-q', '-m', 'Change core and plugin'], cwd=work, check=True)
    return work


class TestParser:
    """build_parser() wiring."""

    def test_select_defaults(self) -> None:
        """select takes two revisions and defaults to text output."""
        args = build_parser().parse_args(['select', 'v1', 'HEAD'])
        assert (args.before, args.after, args.format, args.root) == ('v1', 'HEAD', 'text', '.')

    def test_verbose_and_quiet_exclusive(self) -> None:
        """-v and -q cannot be combined."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(['-v', '-q', 'members'])


class TestCommands:
    """Subcommands without history."""

    def test_no_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Missing command prints help and exits 2."""
        assert main([]) == 2
        assert 'please provide a command' in capsys.readouterr().err

    def test_members(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """members lists packages in release order with their deps."""
        root = _workspace(tmp_path)
        assert main(['-q', '--root', str(root), 'members']) == 0
        lines = [line.strip() for line in capsys.readouterr().out.splitlines()]
        names = [line.split()[0] for line in lines if not line.startswith('deps:')]
        assert names == ['core', 'plugin', 'sample']
        assert 'deps: core' in lines

    def test_explain(self, capsys: pytest.CaptureFixture[str]) -> None:
        """explain prints catalog text."""
        assert main(['explain', 'RG-SELECTION-BLOCKED']) == 0
        assert 'RG-SELECTION-BLOCKED' in capsys.readouterr().out

    def test_explain_unknown(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Unknown codes exit 1."""
        assert main(['explain', 'RG-NOPE']) == 1
        assert 'Unknown error code' in capsys.readouterr().out

    def test_workspace_error_rendered(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Load errors are rendered and exit 1."""
        assert main(['-q', '--root', str(tmp_path), 'members']) == 1
        assert 'error[RG-WORKSPACE-NOT-FOUND]' in capsys.readouterr().err


@_needs_git
class TestHistoryCommands:
    """Subcommands that read git history."""

    def test_changed(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """changed prints absolute paths of changed files."""
        work = _git_workspace(tmp_path)
        assert main(['-q', '--root', str(work), 'changed', 'v0.1.0', 'HEAD']) == 0
        out = capsys.readouterr().out.split()
        assert [Path(p).relative_to(Path(p).parents[1]).as_posix() for p in out] == [
            'core/api.py',
            'plugin/api.py',
        ]

    def test_select_json(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """select --format json emits the ordered selection."""
        work = _git_workspace(tmp_path)
        assert main(['-q', '--root', str(work), 'select', 'v0.1.0', 'HEAD', '--format', 'json']) == 0
        data = json.loads(capsys.readouterr().out)
        assert [entry['name'] for entry in data] == ['core', 'plugin']
        assert data[0]['version'] == '0.2.0'

    def test_select_nothing(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Identical revisions select nothing."""
        work = _git_workspace(tmp_path)
        assert main(['-q', '--root', str(work), 'select', 'HEAD', 'main']) == 0
        assert 'Nothing to release.' in capsys.readouterr().out

    def test_select_blocked(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A blocked candidate renders RG-SELECTION-BLOCKED and exits 1."""
        work = _git_workspace(tmp_path, core_readme=False)
        assert main(['-q', '--root', str(work), 'select', 'v0.1.0', 'HEAD']) == 1
        err = capsys.readouterr().err
        assert 'error[RG-SELECTION-BLOCKED]' in err
        assert 'core (MissingReadme)' in err

    def test_status(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """status shows every package with a verdict."""
        work = _git_workspace(tmp_path)
        assert main(['-q', '--root', str(work), 'status', 'v0.1.0', 'HEAD']) == 0
        out = capsys.readouterr().out
        for name in ('core', 'plugin', 'sample'):
            assert name in out
        assert 'release' in out
        assert 'not selected' in out
