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

"""Python package name helpers (PEP 503 / PEP 508)."""

from __future__ import annotations

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from releasegate.errors import E, ReleaseGateError


def normalize_name(name: str) -> str:
    """Normalize a Python package name per PEP 503.

    ``My_Package``, ``my.package`` and ``my-package`` all compare equal.
    """
    return canonicalize_name(name)


def parse_dep_name(dep_spec: str) -> str:
    """Extract the normalized package name from a PEP 508 dependency specifier.

    Handles extras, version specifiers and environment markers, e.g.
    ``"Core[async]>=1.0; python_version >= '3.10'"`` → ``"core"``.

    Raises:
        ReleaseGateError: ``RG-WORKSPACE-PARSE-ERROR`` for a malformed
            specifier.
    """
    try:
        return normalize_name(Requirement(dep_spec).name)
    except InvalidRequirement as exc:
        raise ReleaseGateError(
            code=E.WORKSPACE_PARSE_ERROR,
            message=f"Invalid dependency specifier '{dep_spec}': {exc}",
            hint='Dependencies must be valid PEP 508 requirement strings.',
        ) from exc


__all__ = [
    'normalize_name',
    'parse_dep_name',
]
