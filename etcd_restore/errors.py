# /*
# Copyright 2026 The Grove Authors.
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
# */

"""Exceptions raised by the restore workflow."""

from __future__ import annotations


class PrerequisiteError(RuntimeError):
    """A required tool is missing and cannot be installed."""


class SnapshotPathError(RuntimeError):
    """The snapshot path is missing or does not point to a file."""


class RestoreError(RuntimeError):
    """A workflow step failed (including after exhausting its retries)."""
