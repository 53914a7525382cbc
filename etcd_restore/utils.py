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

"""Utility functions for command checks, kubectl, and etcd/kind text helpers."""

from __future__ import annotations

import re
import subprocess

import sh
import yaml

from etcd_restore.constants import (
    ETCD_ADVERTISE_CLIENT_URLS_FLAG,
    ETCD_PEER_PORT,
    KIND_CONFIG_API_VERSION,
    KIND_CONFIG_KIND,
    KIND_LINUX_ASSET,
    KUBECTL_TIMEOUT_SECONDS,
    ROLE_CONTROL_PLANE,
    ROLE_WORKER,
)
from etcd_restore.errors import PrerequisiteError

_ADVERTISE_IP_RE = re.compile(
    re.escape(ETCD_ADVERTISE_CLIENT_URLS_FLAG) + r"=https://(\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})"
)


def command_exists(cmd: str) -> bool:
    """Return True if *cmd* is on the system PATH."""
    try:
        sh.which(cmd)
    except sh.ErrorReturnCode:
        return False
    return True


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        PrerequisiteError: If the command is not found.
    """
    if not command_exists(cmd):
        raise PrerequisiteError(
            f"'{cmd}' is not installed. Please install '{cmd}' before running this script.")


def run_kubectl(args: list[str], timeout: int = KUBECTL_TIMEOUT_SECONDS) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Liveness checks only care whether kubectl succeeded, so failures are
    reported through the return value instead of raising.

    Args:
        args: kubectl arguments (e.g. ``["get", "nodes"]``).
        timeout: Maximum seconds to wait for the command to complete.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            ["kubectl", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def kind_release_url(version: str, base_url: str) -> str:
    """Build the download URL of the linux/amd64 kind binary.

    Args:
        version: kind release version tag (e.g. ``v0.27.0``).
        base_url: Release download base URL.

    Returns:
        Full download URL.
    """
    return f"{base_url.rstrip('/')}/{version}/{KIND_LINUX_ASSET}"


def render_kind_config(worker_nodes: int) -> str:
    """Render a kind cluster config with one control plane and N workers.

    Args:
        worker_nodes: Number of worker nodes.

    Returns:
        YAML document accepted by ``kind create cluster --config``.
    """
    doc = {
        "kind": KIND_CONFIG_KIND,
        "apiVersion": KIND_CONFIG_API_VERSION,
        "nodes": [{"role": ROLE_CONTROL_PLANE}] + [{"role": ROLE_WORKER} for _ in range(worker_nodes)],
    }
    header = f"# {worker_nodes + 1} node ({worker_nodes} workers) cluster config\n"
    return header + yaml.safe_dump(doc, sort_keys=False)


def extract_advertise_ip(manifest: str) -> str | None:
    """Pull the etcd advertise IP out of the etcd static pod manifest.

    Args:
        manifest: Text of ``/etc/kubernetes/manifests/etcd.yaml``.

    Returns:
        The first IPv4 address in ``--advertise-client-urls``, or None.
    """
    match = _ADVERTISE_IP_RE.search(manifest.replace("\r", ""))
    return match.group(1) if match else None


def peer_url(ip: str) -> str:
    """Build the etcd peer URL for *ip*."""
    return f"https://{ip}:{ETCD_PEER_PORT}"
