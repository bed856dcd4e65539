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

"""Structured logging for releasegate.

Every event is a structlog event written to stderr, leaving stdout to
command output (``releasegate select v1 HEAD --format json | jq``).

Event context::

    ┌──────────────────────┬────────────────────────────────────────────────┐
    │ Key                  │ Source                                         │
    ├──────────────────────┼────────────────────────────────────────────────┤
    │ event, level, logger │ Every call.                                    │
    ├──────────────────────┼────────────────────────────────────────────────┤
    │ timestamp            │ ISO-8601, added at render time.                │
    ├──────────────────────┼────────────────────────────────────────────────┤
    │ before, after        │ Bound by :func:`revision_context` for the      │
    │                      │ duration of one selection run.                 │
    └──────────────────────┴────────────────────────────────────────────────┘

Usage::

    from releasegate.logging import configure_logging, get_logger, revision_context

    configure_logging(json_log=True)
    log = get_logger(__name__)
    with revision_context('v1.0.0', 'HEAD'):
        log.info('release_selection', packages=['core'])
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def _level(*, verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.WARNING
    return logging.DEBUG if verbose else logging.INFO


def _renderer(*, json_log: bool) -> structlog.types.Processor:
    if json_log:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Route structlog through a single stderr handler.

    Args:
        verbose: Emit debug events (graph construction, expansion steps).
        quiet: Emit only warnings and errors. Takes precedence over
            ``verbose``.
        json_log: Render one JSON object per line instead of console text.
    """
    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=_level(verbose=verbose, quiet=quiet),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.TimeStamper(fmt='iso'),
            _renderer(json_log=json_log),
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@contextmanager
def revision_context(before: str, after: str) -> Iterator[None]:
    """Tag every event logged inside the block with the revision pair."""
    with structlog.contextvars.bound_contextvars(before=before, after=after):
        yield


def get_logger(name: str = 'releasegate') -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger for ``name``."""
    return structlog.get_logger(name)


__all__ = [
    'configure_logging',
    'get_logger',
    'revision_context',
]
