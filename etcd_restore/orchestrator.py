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

"""Orchestration of the restore workflow from prerequisites to liveness check."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import docker
from rich.panel import Panel

from etcd_restore import console, logger
from etcd_restore.config import ClusterConfig, RestoreConfig
from etcd_restore.constants import REQUIRED_COMMANDS
from etcd_restore.etcd import (
    copy_snapshot,
    extract_etcd_peer_url,
    find_control_plane_container,
    install_etcd_client,
    restart_etcd,
    restore_snapshot,
    verify_restore,
    wait_for_etcd,
)
from etcd_restore.kind import (
    check_cluster_working,
    create_cluster,
    ensure_kind_installed,
    replace_existing_cluster,
)
from etcd_restore.utils import require_command


def check_prerequisites() -> None:
    """Check that kubectl and docker are on PATH.

    Raises:
        PrerequisiteError: If a required tool is missing.
    """
    console.print(Panel.fit("Checking prerequisites", style="bold blue"))
    for cmd in REQUIRED_COMMANDS:
        require_command(cmd)
    console.print("[green]\u2705 All required tools are installed[/green]")


def run_restore(
    snapshot: Path,
    cluster_cfg: ClusterConfig,
    restore_cfg: RestoreConfig,
    *,
    confirm_delete: Callable[[str], bool],
    allow_kind_install: bool = True,
) -> None:
    """Run the full restore workflow.

    Args:
        snapshot: Validated path of the etcd snapshot file.
        cluster_cfg: kind cluster configuration.
        restore_cfg: Snapshot restore configuration.
        confirm_delete: Asked before an existing cluster of the same name is deleted.
        allow_kind_install: Whether a missing kind binary may be downloaded.

    Raises:
        PrerequisiteError: If a required tool is missing.
        RestoreError: If any workflow step fails.
    """
    ensure_kind_installed(cluster_cfg, allow_install=allow_kind_install)

    replace_existing_cluster(cluster_cfg, confirm_delete)
    create_cluster(cluster_cfg)
    check_cluster_working()

    logger.info("Using ETCD snapshot path: %s", snapshot)
    client = docker.from_env()
    try:
        container = find_control_plane_container(client, cluster_cfg)
        copy_snapshot(container, snapshot)
        etcd_peer_url = extract_etcd_peer_url(container)
        install_etcd_client(container, restore_cfg)
        restore_snapshot(container, cluster_cfg, restore_cfg, etcd_peer_url)
        restart_etcd(container)
        wait_for_etcd(container)
    finally:
        client.close()

    verify_restore()
