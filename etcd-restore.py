#!/usr/bin/env python3
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

"""
etcd-restore.py - Run the etcd snapshot restore workflow from a checkout.

Equivalent to the ``etcd-restore`` console script installed by the package.

Examples:
    ./etcd-restore.py ./etcd-snapshot.db
    ./etcd-restore.py ./etcd-snapshot.db --yes --retries 5

For detailed usage information, run: ./etcd-restore.py --help
"""

from __future__ import annotations

from etcd_restore.cli import app

if __name__ == "__main__":
    app()
