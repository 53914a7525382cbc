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

"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load pinned tool versions from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Required tools --
REQUIRED_COMMANDS = ("kubectl", "docker")
KIND_COMMAND = "kind"

# -- kind install --
DEFAULT_KIND_VERSION = "v0.27.0"
DEFAULT_KIND_DOWNLOAD_BASE_URL = "https://kind.sigs.k8s.io/dl"
KIND_SUPPORTED_MACHINE = "x86_64"
KIND_LINUX_ASSET = "kind-linux-amd64"
KIND_INSTALL_DIR = Path("/usr/local/bin")

# -- kind cluster config --
KIND_CONFIG_KIND = "Cluster"
KIND_CONFIG_API_VERSION = "kind.x-k8s.io/v1alpha4"
ROLE_CONTROL_PLANE = "control-plane"
ROLE_WORKER = "worker"
CONTROL_PLANE_SUFFIX = "-control-plane"

# -- Paths inside the control-plane container --
CONTAINER_SNAPSHOT_PATH = "/etcd.db"
ETCD_DATA_DIR = "/var/lib/etcd"
ETCD_MANIFEST_PATH = "/etc/kubernetes/manifests/etcd.yaml"
ETCD_PKI_DIR = "/etc/kubernetes/pki/etcd"
ETCD_CA_CERT = f"{ETCD_PKI_DIR}/ca.crt"
ETCD_SERVER_CERT = f"{ETCD_PKI_DIR}/server.crt"
ETCD_SERVER_KEY = f"{ETCD_PKI_DIR}/server.key"
CONTAINER_SHELL = "/bin/bash"

# -- etcd --
ETCD_CLIENT_ENDPOINT = "https://127.0.0.1:2379"
ETCD_PEER_PORT = 2380
ETCD_ADVERTISE_CLIENT_URLS_FLAG = "--advertise-client-urls"
ETCD_CONTAINER_NAME = "etcd"
ETCDCTL_API_VERSION = "3"
DEFAULT_ETCD_CLIENT_PACKAGE = "etcd-client"

# -- Retry and polling --
DEFAULT_RESTORE_RETRIES = 3
DEFAULT_RESTORE_RETRY_WAIT_SECONDS = 0
DEFAULT_CLUSTER_CREATE_RETRIES = 1
CLUSTER_CREATE_RETRY_WAIT_SECONDS = 10
ETCD_RESTART_MAX_RETRIES = 12
ETCD_RESTART_POLL_INTERVAL_SECONDS = 5
LIVENESS_MAX_RETRIES = 24
LIVENESS_POLL_INTERVAL_SECONDS = 5

# -- kind cluster defaults --
DEFAULT_CLUSTER_NAME = "mycluster"
DEFAULT_WORKER_NODES = 2
CLUSTER_WAIT = "120s"
KUBECTL_TIMEOUT_SECONDS = 60
