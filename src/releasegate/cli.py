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

"""CLI entry point for releasegate.

Subcommands::

    releasegate members   List workspace packages in release order
    releasegate changed   List files changed between two revisions
    releasegate status    Show flags and verdict for every package
    releasegate select    Compute the release selection
    releasegate explain   Explain an error code

Usage::

    # What would ship since the last release tag?
    releasegate select v0.4.0 HEAD

    # Why is a package not selected?
    releasegate status v0.4.0 HEAD

    # Machine-readable selection:
    releasegate --quiet select v0.4.0 HEAD --format json | jq '.[].name'
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich_argparse import RichHelpFormatter

from releasegate import __version__
from releasegate.changes import changed_files
from releasegate.errors import ReleaseGateError, explain, render_error
from releasegate.flags import format_flags
from releasegate.graph import PackageGraph
from releasegate.logging import configure_logging, get_logger, revision_context
from releasegate.package import Package
from releasegate.policy import PolicyConfig, load_policy
from releasegate.selection import PackageStatus, SelectionEngine
from releasegate.workspace import discover_packages

logger = get_logger(__name__)


def _load(args: argparse.Namespace) -> tuple[Path, PolicyConfig, PackageGraph]:
    root = Path(args.root).resolve()
    config = load_policy(root)
    packages = discover_packages(root, exclude_patterns=config.exclude)
    graph = PackageGraph(packages, exclude_optional_deps=config.policy.exclude_optional_deps)
    return root, config, graph


def _engine(args: argparse.Namespace) -> SelectionEngine:
    root, config, graph = _load(args)
    return SelectionEngine(graph, config.policy, root=root)


def _package_dict(pkg: Package) -> dict[str, object]:
    return {
        'name': pkg.name,
        'version': str(pkg.version),
        'path': str(pkg.path),
    }


def _cmd_members(args: argparse.Namespace) -> int:
    """Handle the ``members`` subcommand."""
    _root, _config, graph = _load(args)
    for pkg in graph.members():
        deps = graph.dependencies_in_workspace(pkg.name)
        rendered = ', '.join(f'{d.name} (dev)' if d.is_dev else d.name for d in deps) if deps else '(none)'
        print(f'  {pkg.name} {pkg.version} ({pkg.path})')  # noqa: T201 - CLI output
        print(f'    deps: {rendered}')  # noqa: T201 - CLI output
    return 0


def _cmd_changed(args: argparse.Namespace) -> int:
    """Handle the ``changed`` subcommand."""
    with revision_context(args.before, args.after):
        paths = changed_files(Path(args.root).resolve(), args.before, args.after)
    for path in paths:
        print(path)  # noqa: T201 - CLI output
    return 0


def _verdict(status: PackageStatus) -> Text:
    state = status.state
    if not state.selected:
        return Text('not selected', style='dim')
    if state.release_eligible:
        return Text('release', style='green')
    return Text(f'blocked: {format_flags(state.disallowed_blockers)}', style='red')


def _cmd_status(args: argparse.Namespace) -> int:
    """Handle the ``status`` subcommand."""
    engine = _engine(args)
    with revision_context(args.before, args.after):
        statuses = engine.statuses(engine.changed(args.before, args.after))

    table = Table(show_header=True, header_style='bold', show_edge=False, pad_edge=False)
    table.add_column('Package', min_width=20, no_wrap=True)
    table.add_column('Version', min_width=8, no_wrap=True)
    table.add_column('Flags')
    table.add_column('Verdict', no_wrap=True)
    for status in statuses:
        table.add_row(
            Text(status.package.name, style='bold' if status.state.selected else ''),
            str(status.package.version),
            format_flags(status.flags) or '-',
            _verdict(status),
        )
    Console(highlight=False).print(table)
    return 0


def _cmd_select(args: argparse.Namespace) -> int:
    """Handle the ``select`` subcommand.

    A blocked selection propagates as :class:`SelectionBlockedError` and
    is rendered by :func:`main`.
    """
    engine = _engine(args)
    with revision_context(args.before, args.after):
        selected = engine.run(args.before, args.after)
    if args.format == 'json':
        print(json.dumps([_package_dict(pkg) for pkg in selected], indent=2))  # noqa: T201 - CLI output
        return 0
    if not selected:
        print('Nothing to release.')  # noqa: T201 - CLI output
        return 0
    for pkg in selected:
        print(f'{pkg.name} {pkg.version}')  # noqa: T201 - CLI output
    return 0


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the ``explain`` subcommand."""
    result = explain(args.code)
    if result is None:
        print(f'Unknown error code: {args.code}')  # noqa: T201 - CLI output
        return 1
    print(result)  # noqa: T201 - CLI output
    return 0


def _add_revision_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('before', metavar='FROM', help='Previous release revision (tag, branch or SHA).')
    parser.add_argument('after', metavar='TO', help='Revision to release (e.g. HEAD).')


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured :class:`argparse.ArgumentParser`.
    """
    RichHelpFormatter.styles['argparse.groups'] = 'bold yellow'
    parser = argparse.ArgumentParser(
        prog='releasegate',
        description='Dependency-aware release selection for uv workspaces.',
        formatter_class=RichHelpFormatter,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging.')
    verbosity.add_argument('--quiet', '-q', action='store_true', help='Only log warnings and errors.')
    parser.add_argument('--json-log', action='store_true', help='Emit logs as JSON lines on stderr.')
    parser.add_argument(
        '--root',
        metavar='PATH',
        default='.',
        help='Workspace root containing pyproject.toml and releasegate.toml (default: current directory).',
    )

    subparsers = parser.add_subparsers(dest='command')

    subparsers.add_parser(
        'members',
        help='List workspace packages in release order.',
        formatter_class=RichHelpFormatter,
    )

    changed_parser = subparsers.add_parser(
        'changed',
        help='List files changed between two revisions.',
        formatter_class=RichHelpFormatter,
    )
    _add_revision_args(changed_parser)

    status_parser = subparsers.add_parser(
        'status',
        help='Show diagnostic flags and verdict for every package.',
        formatter_class=RichHelpFormatter,
    )
    _add_revision_args(status_parser)

    select_parser = subparsers.add_parser(
        'select',
        help='Compute the ordered release selection.',
        formatter_class=RichHelpFormatter,
    )
    _add_revision_args(select_parser)
    select_parser.add_argument(
        '--format',
        choices=['text', 'json'],
        default='text',
        help='Output format (default: text).',
    )

    explain_parser = subparsers.add_parser(
        'explain',
        help='Explain an error code.',
        formatter_class=RichHelpFormatter,
    )
    explain_parser.add_argument(
        'code',
        help='Error code to explain (e.g. RG-SELECTION-BLOCKED).',
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Arguments to parse. Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)

    try:
        command = args.command
        if command == 'members':
            return _cmd_members(args)
        if command == 'changed':
            return _cmd_changed(args)
        if command == 'status':
            return _cmd_status(args)
        if command == 'select':
            return _cmd_select(args)
        if command == 'explain':
            return _cmd_explain(args)

        parser.print_help()  # noqa: T201 - CLI output
        print(  # noqa: T201 - CLI output
            f'\n{parser.prog}: error: please provide a command',
            file=sys.stderr,
        )
        return 2

    except ReleaseGateError as exc:
        render_error(exc)
        return 1
    except KeyboardInterrupt:
        logger.info('interrupted')
        return 130


def _main() -> None:
    """Wrapper for pyproject.toml [project.scripts] entry point."""
    sys.exit(main())


__all__ = [
    'build_parser',
    'main',
]
