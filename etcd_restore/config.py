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

"""Configuration classes, snapshot path validation, and config display."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from etcd_restore import console
from etcd_restore.constants import (
    CONTROL_PLANE_SUFFIX,
    DEFAULT_CLUSTER_CREATE_RETRIES,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_ETCD_CLIENT_PACKAGE,
    DEFAULT_KIND_DOWNLOAD_BASE_URL,
    DEFAULT_KIND_VERSION,
    DEFAULT_RESTORE_RETRIES,
    DEFAULT_RESTORE_RETRY_WAIT_SECONDS,
    DEFAULT_WORKER_NODES,
    dep_value,
)
from etcd_restore.errors import SnapshotPathError


# ============================================================================
# Configuration classes
# ============================================================================

class ClusterConfig(BaseSettings):
    """kind cluster configuration, auto-loaded from ETCD_RESTORE_* env vars.

    Attributes:
        cluster_name: Name of the kind cluster.
        worker_nodes: Number of worker nodes next to the control plane.
        node_image: kind node image, or None for the kind default.
        create_retries: Maximum cluster creation attempts.
        kind_version: kind release installed when the binary is missing.
        kind_download_base_url: Base URL of kind release binaries.
    """

    model_config = SettingsConfigDict(env_prefix="ETCD_RESTORE_", extra="ignore")

    cluster_name: str = Field(default=DEFAULT_CLUSTER_NAME, pattern=r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
    worker_nodes: int = Field(default=DEFAULT_WORKER_NODES, ge=1, le=10)
    node_image: str | None = None
    create_retries: int = Field(default=DEFAULT_CLUSTER_CREATE_RETRIES, ge=1, le=10)
    kind_version: str = Field(default=dep_value("kind", "version", default=DEFAULT_KIND_VERSION),
                              pattern=r"^v\d+\.\d+\.\d+$")
    kind_download_base_url: str = dep_value(
        "kind", "download_base_url", default=DEFAULT_KIND_DOWNLOAD_BASE_URL)

    @property
    def control_plane_name(self) -> str:
        """Name kind gives the control-plane node container."""
        return f"{self.cluster_name}{CONTROL_PLANE_SUFFIX}"


class RestoreConfig(BaseSettings):
    """Snapshot restore settings, auto-loaded from ETCD_RESTORE_* env vars.

    Attributes:
        restore_retries: Maximum ``etcdctl snapshot restore`` attempts.
        restore_retry_wait_seconds: Pause between restore attempts.
        etcd_client_package: apt package providing etcdctl in the node image.
    """

    model_config = SettingsConfigDict(env_prefix="ETCD_RESTORE_", extra="ignore")

    restore_retries: int = Field(default=DEFAULT_RESTORE_RETRIES, ge=1, le=10)
    restore_retry_wait_seconds: float = Field(default=DEFAULT_RESTORE_RETRY_WAIT_SECONDS, ge=0)
    etcd_client_package: str = dep_value(
        "etcd_client", "apt_package", default=DEFAULT_ETCD_CLIENT_PACKAGE)


# ============================================================================
# Input validation and display
# ============================================================================

def validate_snapshot_path(snapshot_path: str | Path | None) -> Path:
    """Check that the snapshot argument was given and names an existing file.

    Args:
        snapshot_path: Path passed on the command line, or None.

    Returns:
        The snapshot path as a resolved ``Path``.

    Raises:
        SnapshotPathError: If no path was given or the file does not exist.
    """
    if snapshot_path is None or str(snapshot_path).strip() == "":
        raise SnapshotPathError("ETCD snapshot path is required as the first argument.")
    path = Path(snapshot_path).expanduser()
    if not path.is_file():
        raise SnapshotPathError(f"Snapshot file '{snapshot_path}' does not exist.")
    return path.resolve()


def display_config(snapshot: Path, cluster_cfg: ClusterConfig, restore_cfg: RestoreConfig) -> None:
    """Print the resolved configuration."""
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print(f"  Snapshot:          {snapshot}")
    console.print(f"  Cluster name:      {cluster_cfg.cluster_name}")
    console.print(f"  Worker nodes:      {cluster_cfg.worker_nodes}")
    console.print(f"  Node image:        {cluster_cfg.node_image or '(kind default)'}")
    console.print(f"  kind version:      {cluster_cfg.kind_version}")
    console.print(f"  Restore attempts:  {restore_cfg.restore_retries}")
