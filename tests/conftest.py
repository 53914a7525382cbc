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

"""Shared fixtures for etcd_restore tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from docker.models.containers import ExecResult

from etcd_restore.config import ClusterConfig, RestoreConfig

ETCD_MANIFEST = """\
apiVersion: v1
kind: Pod
metadata:
  annotations:
    kubeadm.kubernetes.io/etcd.advertise-client-urls: https://172.18.0.3:2379
  name: etcd
  namespace: kube-system
spec:
  containers:
  - command:
    - etcd
    - --advertise-client-urls=https://172.18.0.3:2379
    - --cert-file=/etc/kubernetes/pki/etcd/server.crt
    - --data-dir=/var/lib/etcd
    - --initial-advertise-peer-urls=https://172.18.0.3:2380
    - --listen-client-urls=https://127.0.0.1:2379,https://172.18.0.3:2379
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "ETCD_RESTORE_CLUSTER_NAME",
        "ETCD_RESTORE_WORKER_NODES",
        "ETCD_RESTORE_NODE_IMAGE",
        "ETCD_RESTORE_RESTORE_RETRIES",
        "ETCD_RESTORE_RESTORE_RETRY_WAIT_SECONDS",
        "ETCD_RESTORE_CREATE_RETRIES",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def snapshot_file(tmp_path: Path) -> Path:
    path = tmp_path / "etcd-snapshot.db"
    path.write_bytes(b"\x00etcd-snapshot-bytes\x00")
    return path


@pytest.fixture
def cluster_cfg() -> ClusterConfig:
    return ClusterConfig()


@pytest.fixture
def restore_cfg() -> RestoreConfig:
    return RestoreConfig(restore_retries=3, restore_retry_wait_seconds=0)


@pytest.fixture
def make_container() -> Callable[[Callable[[str], tuple[int, str]]], MagicMock]:
    """Build a fake container whose exec_run answers through *handler(script)*.

    Every script passed to ``bash -c`` is recorded in ``container.scripts``.
    """

    def _make(handler: Callable[[str], tuple[int, str]]) -> MagicMock:
        container = MagicMock()
        container.name = "mycluster-control-plane"
        container.short_id = "abc123"
        container.scripts = []

        def _exec_run(cmd: list[str]) -> ExecResult:
            script = cmd[2]
            container.scripts.append(script)
            exit_code, output = handler(script)
            return ExecResult(exit_code, output.encode())

        container.exec_run.side_effect = _exec_run
        return container

    return _make
