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

"""kind installation and cluster lifecycle."""

from __future__ import annotations

import logging
import os
import platform
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

import sh
from rich.panel import Panel
from tenacity import before_sleep_log, retry, stop_after_attempt, wait_fixed

from etcd_restore import console, logger
from etcd_restore.config import ClusterConfig
from etcd_restore.constants import (
    CLUSTER_CREATE_RETRY_WAIT_SECONDS,
    CLUSTER_WAIT,
    KIND_COMMAND,
    KIND_INSTALL_DIR,
    KIND_SUPPORTED_MACHINE,
)
from etcd_restore.errors import PrerequisiteError, RestoreError
from etcd_restore.utils import command_exists, kind_release_url, render_kind_config, run_kubectl


# ============================================================================
# kind binary
# ============================================================================

def _install_kind_binary(cluster_cfg: ClusterConfig, install_dir: Path) -> Path:
    """Download the kind binary and move it into *install_dir*."""
    url = kind_release_url(cluster_cfg.kind_version, cluster_cfg.kind_download_base_url)
    target = install_dir / KIND_COMMAND
    with tempfile.TemporaryDirectory() as tmp_dir:
        download = Path(tmp_dir) / KIND_COMMAND
        logger.debug("Downloading %s to %s", url, download)
        sh.curl("-fsSLo", str(download), url)
        download.chmod(0o755)
        if os.access(install_dir, os.W_OK):
            shutil.move(str(download), str(target))
        else:
            sh.sudo("mv", str(download), str(target), _fg=True)
    return target


def ensure_kind_installed(
    cluster_cfg: ClusterConfig,
    allow_install: bool = True,
    install_dir: Path = KIND_INSTALL_DIR,
) -> None:
    """Make sure the kind binary is available, installing it if allowed.

    Args:
        cluster_cfg: Cluster configuration carrying the pinned kind version.
        allow_install: Whether a missing kind may be downloaded.
        install_dir: Directory the downloaded binary is moved into.

    Raises:
        PrerequisiteError: If kind is missing and cannot be installed.
    """
    if command_exists(KIND_COMMAND):
        console.print("[green]\u2705 kind is already installed[/green]")
        return
    if not allow_install:
        raise PrerequisiteError("'kind' is not installed and automatic installation is disabled.")
    if platform.machine() != KIND_SUPPORTED_MACHINE:
        raise PrerequisiteError(
            f"kind is not installed and architecture '{platform.machine()}' is not supported "
            "for automatic installation. Please install kind manually.")

    console.print(f"[yellow]\u2139\ufe0f  kind is not installed. Installing kind {cluster_cfg.kind_version}...[/yellow]")
    target = _install_kind_binary(cluster_cfg, install_dir)
    console.print(f"[green]\u2705 kind installed to {target}[/green]")


# ============================================================================
# Cluster operations
# ============================================================================

def cluster_exists(cluster_name: str) -> bool:
    """Return True if kind reports a cluster named *cluster_name*."""
    output = str(sh.kind("get", "clusters"))
    return cluster_name in output.split()


def delete_cluster(cluster_cfg: ClusterConfig) -> None:
    """Delete the kind cluster.

    Args:
        cluster_cfg: kind cluster configuration with the cluster name.
    """
    console.print(f"[yellow]\u2139\ufe0f  Deleting kind cluster '{cluster_cfg.cluster_name}'...[/yellow]")
    sh.kind("delete", "cluster", "--name", cluster_cfg.cluster_name)
    console.print(f"[green]\u2705 Cluster '{cluster_cfg.cluster_name}' deleted[/green]")


def replace_existing_cluster(cluster_cfg: ClusterConfig, confirm: Callable[[str], bool]) -> None:
    """Delete a leftover cluster with the same name once the user agrees.

    Args:
        cluster_cfg: kind cluster configuration with the cluster name.
        confirm: Callback asked whether the existing cluster may be deleted.

    Raises:
        RestoreError: If the cluster exists and deletion was declined.
    """
    if not cluster_exists(cluster_cfg.cluster_name):
        return
    question = f"A cluster named '{cluster_cfg.cluster_name}' already exists. Do you want to delete it?"
    if not confirm(question):
        raise RestoreError("Exiting. Please delete the cluster manually if needed.")
    delete_cluster(cluster_cfg)


def create_cluster(cluster_cfg: ClusterConfig) -> None:
    """Create the kind cluster with retry logic.

    Args:
        cluster_cfg: kind cluster configuration including retry count.

    Raises:
        sh.ErrorReturnCode: If the cluster cannot be created after all retries.
    """
    console.print(Panel.fit(f"Creating kind cluster '{cluster_cfg.cluster_name}'", style="bold blue"))

    fd, config_path = tempfile.mkstemp(prefix="kind-", suffix=".yaml")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(render_kind_config(cluster_cfg.worker_nodes))

        args = ["create", "cluster", "--name", cluster_cfg.cluster_name, "--config", config_path]
        if cluster_cfg.node_image:
            args += ["--image", cluster_cfg.node_image]
        args += ["--wait", CLUSTER_WAIT]
        attempts = 0

        @retry(
            stop=stop_after_attempt(cluster_cfg.create_retries),
            wait=wait_fixed(CLUSTER_CREATE_RETRY_WAIT_SECONDS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _attempt() -> None:
            nonlocal attempts
            if attempts:
                sh.kind("delete", "cluster", "--name", cluster_cfg.cluster_name)
                console.print("[yellow]   Removed partially created cluster[/yellow]")
            attempts += 1
            sh.kind(*args)

        _attempt()
    finally:
        Path(config_path).unlink(missing_ok=True)
    console.print(f"[green]\u2705 '{cluster_cfg.cluster_name}' cluster created successfully[/green]")


def check_cluster_working() -> None:
    """Verify the new cluster answers kubectl.

    Raises:
        RestoreError: If ``kubectl get pods -A`` fails.
    """
    console.print("[yellow]\u2139\ufe0f  Checking if the cluster is working...[/yellow]")
    ok, _, stderr = run_kubectl(["get", "pods", "-A"])
    if not ok:
        raise RestoreError(f"Cluster is not working. Please troubleshoot the issue. {stderr.strip()}".strip())
    console.print("[green]\u2705 Cluster is working and kubectl is functional[/green]")
