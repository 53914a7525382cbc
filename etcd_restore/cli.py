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
cli.py - Restore an etcd snapshot into a throwaway kind cluster.

Creates a kind cluster (one control plane, two workers by default), copies the
snapshot into the control-plane container, runs ``etcdctl snapshot restore``
with bounded retries, restarts etcd and checks that the cluster answers.

Environment Variables:
    Settings can be overridden via ETCD_RESTORE_* environment variables:
    - ETCD_RESTORE_CLUSTER_NAME (default: mycluster)
    - ETCD_RESTORE_WORKER_NODES (default: 2)
    - ETCD_RESTORE_NODE_IMAGE (default: kind default image)
    - ETCD_RESTORE_RESTORE_RETRIES (default: 3)
    - ETCD_RESTORE_KIND_VERSION (default: from dependencies.yaml)

Examples:
    # Restore a snapshot (prompts before replacing an existing cluster)
    etcd-restore ./etcd-snapshot.db

    # Non-interactive, custom cluster name and five restore attempts
    etcd-restore ./etcd-snapshot.db --yes --cluster-name restore-test --retries 5
"""

from __future__ import annotations

import logging
import sys

import typer

from etcd_restore import console
from etcd_restore.config import ClusterConfig, RestoreConfig, display_config, validate_snapshot_path
from etcd_restore.errors import SnapshotPathError
from etcd_restore.orchestrator import check_prerequisites, run_restore

app = typer.Typer(help="Restore an etcd snapshot into a throwaway kind cluster.", add_completion=False)


@app.command()
def main(
    snapshot_path: str | None = typer.Argument(
        None, metavar="ETCD_SNAPSHOT_PATH", help="Path to the etcd snapshot file", show_default=False),
    cluster_name: str | None = typer.Option(
        None, "--cluster-name", help="kind cluster name (overrides ETCD_RESTORE_CLUSTER_NAME)"),
    workers: int | None = typer.Option(
        None, "--workers", help="Worker nodes (overrides ETCD_RESTORE_WORKER_NODES)"),
    node_image: str | None = typer.Option(
        None, "--node-image", help="kind node image"),
    retries: int | None = typer.Option(
        None, "--retries", help="Snapshot restore attempts (overrides ETCD_RESTORE_RESTORE_RETRIES)"),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Delete an existing cluster with the same name without asking"),
    skip_kind_install: bool = typer.Option(
        False, "--skip-kind-install", help="Fail instead of downloading kind when it is missing"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Restore ETCD_SNAPSHOT_PATH into a fresh kind cluster."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        check_prerequisites()

        try:
            snapshot = validate_snapshot_path(snapshot_path)
        except SnapshotPathError:
            if snapshot_path is None:
                console.print("Usage: etcd-restore <etcd_snapshot_path>")
            raise

        cluster_overrides: dict = {}
        if cluster_name is not None:
            cluster_overrides["cluster_name"] = cluster_name
        if workers is not None:
            cluster_overrides["worker_nodes"] = workers
        if node_image is not None:
            cluster_overrides["node_image"] = node_image
        cluster_cfg = ClusterConfig(**cluster_overrides)
        restore_cfg = RestoreConfig() if retries is None else RestoreConfig(restore_retries=retries)

        display_config(snapshot, cluster_cfg, restore_cfg)

        def _confirm(question: str) -> bool:
            return yes or typer.confirm(question, default=False)

        run_restore(
            snapshot,
            cluster_cfg,
            restore_cfg,
            confirm_delete=_confirm,
            allow_kind_install=not skip_kind_install,
        )
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    app()
