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

"""Control-plane container operations: snapshot copy, restore, and etcd restart."""

from __future__ import annotations

import io
import tarfile
from pathlib import Path

import docker
from docker.models.containers import Container
from rich.panel import Panel
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from etcd_restore import console, logger
from etcd_restore.config import ClusterConfig, RestoreConfig
from etcd_restore.constants import (
    CONTAINER_SHELL,
    CONTAINER_SNAPSHOT_PATH,
    ETCD_CA_CERT,
    ETCD_CLIENT_ENDPOINT,
    ETCD_CONTAINER_NAME,
    ETCD_DATA_DIR,
    ETCD_MANIFEST_PATH,
    ETCD_RESTART_MAX_RETRIES,
    ETCD_RESTART_POLL_INTERVAL_SECONDS,
    ETCD_SERVER_CERT,
    ETCD_SERVER_KEY,
    ETCDCTL_API_VERSION,
    LIVENESS_MAX_RETRIES,
    LIVENESS_POLL_INTERVAL_SECONDS,
)
from etcd_restore.errors import RestoreError
from etcd_restore.utils import extract_advertise_ip, peer_url, run_kubectl


def exec_in_container(container: Container, script: str) -> tuple[int, str]:
    """Run a shell snippet inside *container*.

    Args:
        container: Target container.
        script: Shell code passed to ``bash -c``.

    Returns:
        Tuple of (exit_code, combined output with carriage returns removed).
    """
    logger.debug("exec in %s: %s", container.name, script)
    result = container.exec_run([CONTAINER_SHELL, "-c", script])
    output = (result.output or b"").decode("utf-8", errors="replace").replace("\r", "")
    return result.exit_code, output


# ============================================================================
# Container lookup and snapshot transfer
# ============================================================================

def find_control_plane_container(client: docker.DockerClient, cluster_cfg: ClusterConfig) -> Container:
    """Locate the control-plane node container of the kind cluster.

    Raises:
        RestoreError: If no container with the control-plane name exists.
    """
    name = cluster_cfg.control_plane_name
    # the name filter is a substring match; keep only the exact container
    candidates = client.containers.list(all=True, filters={"name": name})
    for container in candidates:
        if container.name == name:
            console.print(f"[green]\u2705 Control-plane container ID: {container.short_id}[/green]")
            return container
    raise RestoreError(f"Could not find the control-plane container for '{name}'.")


def _snapshot_archive(snapshot: Path, arcname: str) -> bytes:
    """Pack *snapshot* into an in-memory tar stored under *arcname*."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        tar.add(str(snapshot), arcname=arcname)
    return buf.getvalue()


def copy_snapshot(container: Container, snapshot: Path) -> None:
    """Copy the snapshot file into the control-plane container.

    Raises:
        RestoreError: If the docker daemon rejects the archive.
    """
    console.print(Panel.fit("Copying snapshot into the control-plane container", style="bold blue"))
    dest = Path(CONTAINER_SNAPSHOT_PATH)
    if not container.put_archive(str(dest.parent), _snapshot_archive(snapshot, dest.name)):
        raise RestoreError(f"Failed to copy '{snapshot}' to {container.name}:{dest}.")
    console.print(f"[green]\u2705 Snapshot copied to {container.name}:{dest}[/green]")


# ============================================================================
# etcd client preparation
# ============================================================================

def extract_etcd_peer_url(container: Container) -> str:
    """Build the etcd peer URL from the advertise IP in the etcd manifest.

    Raises:
        RestoreError: If the manifest cannot be read or holds no advertise IP.
    """
    console.print(f"[yellow]\u2139\ufe0f  Extracting IP address from {ETCD_MANIFEST_PATH}...[/yellow]")
    exit_code, manifest = exec_in_container(container, f"cat {ETCD_MANIFEST_PATH}")
    if exit_code != 0:
        raise RestoreError(f"Could not read {ETCD_MANIFEST_PATH}: {manifest.strip()}")
    ip = extract_advertise_ip(manifest)
    if not ip:
        raise RestoreError(f"Could not extract the IP address from {ETCD_MANIFEST_PATH}.")
    url = peer_url(ip)
    console.print(f"[green]\u2705 Extracted etcd peer URL: {url}[/green]")
    return url


def install_etcd_client(container: Container, restore_cfg: RestoreConfig) -> None:
    """Install etcdctl inside the container unless it is already present.

    Raises:
        RestoreError: If the package installation fails.
    """
    exit_code, _ = exec_in_container(container, "etcdctl version")
    if exit_code == 0:
        console.print("[green]\u2705 etcdctl is already installed in the container[/green]")
        return

    console.print(f"[yellow]\u2139\ufe0f  Installing {restore_cfg.etcd_client_package} inside the container...[/yellow]")
    exit_code, output = exec_in_container(
        container, f"apt-get update && apt-get install -y {restore_cfg.etcd_client_package}")
    if exit_code != 0:
        raise RestoreError(f"Failed to install {restore_cfg.etcd_client_package}: {output.strip()}")
    console.print(f"[green]\u2705 {restore_cfg.etcd_client_package} installed successfully[/green]")


# ============================================================================
# Snapshot restore
# ============================================================================

def restore_command(cluster_cfg: ClusterConfig, etcd_peer_url: str) -> str:
    """Build the shell snippet that wipes the data dir and restores the snapshot."""
    member = cluster_cfg.control_plane_name
    return (
        f"rm -rf {ETCD_DATA_DIR} || true\n"
        f"ETCDCTL_API={ETCDCTL_API_VERSION} etcdctl --data-dir {ETCD_DATA_DIR} --name {member} "
        f"--endpoints={ETCD_CLIENT_ENDPOINT} "
        f"--cacert={ETCD_CA_CERT} "
        f"--cert={ETCD_SERVER_CERT} "
        f"--key={ETCD_SERVER_KEY} "
        f"--initial-cluster={member}={etcd_peer_url} "
        f"--initial-cluster-token {member} "
        f"--initial-advertise-peer-urls={etcd_peer_url} "
        f"snapshot restore {CONTAINER_SNAPSHOT_PATH}"
    )


def restore_snapshot(
    container: Container,
    cluster_cfg: ClusterConfig,
    restore_cfg: RestoreConfig,
    etcd_peer_url: str,
) -> None:
    """Restore the snapshot into the etcd data dir with bounded retries.

    Each failed attempt removes the partially written data directory before
    the next one starts.

    Args:
        container: Control-plane container holding the snapshot.
        cluster_cfg: Cluster configuration (member name).
        restore_cfg: Restore configuration (retry limit and wait).
        etcd_peer_url: Peer URL of the etcd member.

    Raises:
        RestoreError: If every attempt fails.
    """
    console.print(Panel.fit("Restoring ETCD snapshot", style="bold blue"))
    limit = restore_cfg.restore_retries
    script = restore_command(cluster_cfg, etcd_peer_url)

    def _announce_retry(retry_state: RetryCallState) -> None:
        next_attempt = retry_state.attempt_number + 1
        logger.warning("Snapshot restore attempt %d failed: %s",
                       retry_state.attempt_number, retry_state.outcome.exception())
        console.print(f"[yellow]   Retrying snapshot restoration... Attempt {next_attempt} of {limit}[/yellow]")

    @retry(
        stop=stop_after_attempt(limit),
        wait=wait_fixed(restore_cfg.restore_retry_wait_seconds),
        retry=retry_if_exception_type(RestoreError),
        before_sleep=_announce_retry,
        reraise=True,
    )
    def _attempt() -> None:
        try:
            exit_code, output = exec_in_container(container, script)
        except docker.errors.APIError as err:
            exit_code, output = -1, f"docker exec failed: {err}"
        if exit_code != 0:
            console.print(f"[red]   Failed to restore snapshot. Cleaning up {ETCD_DATA_DIR}...[/red]")
            exec_in_container(container, f"rm -rf {ETCD_DATA_DIR}")
            raise RestoreError(output.strip() or f"etcdctl exited with code {exit_code}")
        logger.debug("etcdctl output: %s", output)

    try:
        _attempt()
    except RestoreError as err:
        raise RestoreError(f"Reached maximum retry attempts ({limit}) restoring the snapshot: {err}") from err
    console.print("[green]\u2705 ETCD snapshot restored successfully[/green]")


# ============================================================================
# etcd restart and verification
# ============================================================================

def _running_etcd_ids(container: Container) -> list[str]:
    """List IDs of running etcd containers reported by crictl."""
    exit_code, output = exec_in_container(container, f"crictl ps --name {ETCD_CONTAINER_NAME} -q")
    if exit_code != 0:
        raise RestoreError(f"crictl ps failed: {output.strip()}")
    return output.split()


def restart_etcd(container: Container) -> None:
    """Stop the etcd container so kubelet recreates it from the restored data.

    Raises:
        RestoreError: If crictl cannot list or stop the etcd container.
    """
    console.print(Panel.fit("Restarting etcd", style="bold blue"))
    etcd_ids = _running_etcd_ids(container)
    if not etcd_ids:
        console.print("[yellow]\u26a0\ufe0f  No running etcd container found; kubelet will start it[/yellow]")
    for etcd_id in etcd_ids:
        exit_code, output = exec_in_container(container, f"crictl stop {etcd_id}")
        if exit_code != 0:
            raise RestoreError(f"Failed to stop etcd container {etcd_id}: {output.strip()}")
    console.print("[yellow]\u2139\ufe0f  Waiting for the etcd container to restart...[/yellow]")


@retry(
    stop=stop_after_attempt(ETCD_RESTART_MAX_RETRIES),
    wait=wait_fixed(ETCD_RESTART_POLL_INTERVAL_SECONDS),
    reraise=True,
)
def _wait_etcd_running(container: Container) -> None:
    if not _running_etcd_ids(container):
        raise RestoreError("etcd container did not restart successfully.")


def wait_for_etcd(container: Container) -> None:
    """Poll crictl until an etcd container is running again.

    Raises:
        RestoreError: If etcd does not come back within the polling budget.
    """
    _wait_etcd_running(container)
    console.print("[green]\u2705 etcd container is running[/green]")


@retry(
    stop=stop_after_attempt(LIVENESS_MAX_RETRIES),
    wait=wait_fixed(LIVENESS_POLL_INTERVAL_SECONDS),
    reraise=True,
)
def _get_nodes() -> str:
    """Run ``kubectl get nodes`` until the API server answers again."""
    ok, stdout, stderr = run_kubectl(["get", "nodes"])
    if not ok:
        raise RestoreError(f"Failed to verify ETCD restoration. Please troubleshoot. {stderr.strip()}".strip())
    return stdout


def verify_restore() -> None:
    """Final liveness check: the API server must list the nodes.

    kube-apiserver reconnects to the restarted etcd with some delay, so the
    check is polled before it counts as failed.

    Raises:
        RestoreError: If ``kubectl get nodes`` keeps failing.
    """
    console.print(Panel.fit("Verifying the ETCD restoration", style="bold blue"))
    console.print("[yellow]\u2139\ufe0f  Waiting for the API server to answer...[/yellow]")
    stdout = _get_nodes()
    console.print(stdout.rstrip())
    console.print("[green]\u2705 ETCD has been restored successfully, and the cluster is back online[/green]")
