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

"""Structured error system for releasegate.

Every error has a unique ``RG-NAMED-KEY`` code, a human-readable message,
and an optional hint with a suggested fix.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorCode           │ A unique named ID like "RG-SELECTION-BLOCKED" │
    │                     │ for each error. Readable at a glance.         │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ReleaseGateError    │ An exception you can raise. Carries the code, │
    │                     │ message and hint so renderers can display it. │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ERRORS catalog      │ Pre-built explanations for common failures.   │
    └─────────────────────┴────────────────────────────────────────────────┘

Code categories::

    RG-CONFIG-*       Policy configuration errors
    RG-WORKSPACE-*    Workspace discovery errors
    RG-VERSION-*      Version parsing errors
    RG-GRAPH-*        Dependency graph errors
    RG-VCS-*          Version-control history errors
    RG-SELECTION-*    Release selection (policy violation) errors

Usage::

    from releasegate.errors import ReleaseGateError, E

    raise ReleaseGateError(
        code=E.VCS_REVISION_NOT_FOUND,
        message="Unknown revision 'v9.9.9'",
        hint='Fetch tags with git fetch --tags.',
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """Enumeration of all releasegate diagnostic codes."""

    # Configuration
    CONFIG_NOT_FOUND = 'RG-CONFIG-NOT-FOUND'
    CONFIG_INVALID_KEY = 'RG-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'RG-CONFIG-INVALID-VALUE'

    # Workspace discovery
    WORKSPACE_NOT_FOUND = 'RG-WORKSPACE-NOT-FOUND'
    WORKSPACE_NO_MEMBERS = 'RG-WORKSPACE-NO-MEMBERS'
    WORKSPACE_PARSE_ERROR = 'RG-WORKSPACE-PARSE-ERROR'
    WORKSPACE_DUPLICATE_PACKAGE = 'RG-WORKSPACE-DUPLICATE-PACKAGE'

    # Versioning
    VERSION_INVALID = 'RG-VERSION-INVALID'

    # Dependency graph
    GRAPH_CYCLE_DETECTED = 'RG-GRAPH-CYCLE-DETECTED'
    GRAPH_UNKNOWN_PACKAGE = 'RG-GRAPH-UNKNOWN-PACKAGE'
    GRAPH_ORDER_INCONSISTENT = 'RG-GRAPH-ORDER-INCONSISTENT'

    # Version control
    VCS_REVISION_NOT_FOUND = 'RG-VCS-REVISION-NOT-FOUND'
    VCS_HISTORY_UNAVAILABLE = 'RG-VCS-HISTORY-UNAVAILABLE'

    # Selection
    SELECTION_BLOCKED = 'RG-SELECTION-BLOCKED'


# Convenience alias for shorter imports.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``RG-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class ReleaseGateError(Exception):
    """Base exception for all releasegate errors.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.CONFIG_INVALID_VALUE: ErrorInfo(
        code=E.CONFIG_INVALID_VALUE,
        message='A value in releasegate.toml has the wrong type or cannot be parsed.',
        hint='Check regular expressions, version specifiers and flag names.',
    ),
    E.WORKSPACE_NOT_FOUND: ErrorInfo(
        code=E.WORKSPACE_NOT_FOUND,
        message='No pyproject.toml with a [tool.uv.workspace] section found.',
        hint='Point --root at the directory containing your workspace pyproject.toml.',
    ),
    E.GRAPH_CYCLE_DETECTED: ErrorInfo(
        code=E.GRAPH_CYCLE_DETECTED,
        message='Circular dependency detected in the workspace dependency graph.',
        hint='Workspace dependency graphs must be acyclic. Remove one edge of the cycle.',
    ),
    E.VCS_REVISION_NOT_FOUND: ErrorInfo(
        code=E.VCS_REVISION_NOT_FOUND,
        message='A revision passed to change detection does not exist.',
        hint="Run 'git fetch --tags' or check the revision spelling.",
    ),
    E.VCS_HISTORY_UNAVAILABLE: ErrorInfo(
        code=E.VCS_HISTORY_UNAVAILABLE,
        message='Version-control history could not be read.',
        hint='Ensure git is installed and the workspace is inside a git repository.',
    ),
    E.SELECTION_BLOCKED: ErrorInfo(
        code=E.SELECTION_BLOCKED,
        message='One or more release candidates are blocked by policy.',
        hint="Fix the listed problems or add the flags to an allow-list in releasegate.toml.",
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"RG-SELECTION-BLOCKED"``.

    Returns:
        A formatted explanation string, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def render_error(exc: ReleaseGateError, *, file: TextIO | None = None) -> None:
    """Render an error in Rust-compiler style with color.

    Output format::

        error[RG-SELECTION-BLOCKED]: 1 release candidate is blocked: ...
          |
          = hint: Fix the listed problems or ...

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr

    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(exc.info.message)
        console.print(
            f'[bold red]error[/bold red][bold red]\\[{exc.code.value}][/bold red][bold]: {msg}[/bold]',
        )
        if exc.hint:
            hint = rich_escape(exc.hint)
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {hint}')
        console.print()
    else:
        print(f'error[{exc.code.value}]: {exc.info.message}', file=out)  # noqa: T201 - CLI output
        if exc.hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {exc.hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'ReleaseGateError',
    'explain',
    'render_error',
]
