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

"""Tests for the restore workflow ordering."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from etcd_restore.config import ClusterConfig, RestoreConfig
from etcd_restore.errors import PrerequisiteError, RestoreError
from etcd_restore.orchestrator import check_prerequisites, run_restore

STEPS = (
    "ensure_kind_installed",
    "replace_existing_cluster",
    "create_cluster",
    "check_cluster_working",
    "find_control_plane_container",
    "copy_snapshot",
    "extract_etcd_peer_url",
    "install_etcd_client",
    "restore_snapshot",
    "restart_etcd",
    "wait_for_etcd",
    "verify_restore",
)


@pytest.fixture
def workflow():
    """Patch every workflow step and the docker client, recording call order."""
    manager = MagicMock()
    patchers = [patch(f"etcd_restore.orchestrator.{name}") for name in STEPS]
    docker_patcher = patch("etcd_restore.orchestrator.docker")
    for name, patcher in zip(STEPS, patchers):
        manager.attach_mock(patcher.start(), name)
    mock_docker = docker_patcher.start()
    manager.extract_etcd_peer_url.return_value = "https://172.18.0.3:2380"
    manager.docker = mock_docker
    yield manager
    docker_patcher.stop()
    for patcher in patchers:
        patcher.stop()


def _called_steps(manager: MagicMock) -> list[str]:
    return [c[0] for c in manager.mock_calls if c[0] in STEPS]


def test_run_restore_runs_steps_in_order(
    workflow: MagicMock, snapshot_file: Path, cluster_cfg: ClusterConfig, restore_cfg: RestoreConfig,
) -> None:
    confirm = MagicMock(return_value=True)

    run_restore(snapshot_file, cluster_cfg, restore_cfg, confirm_delete=confirm)

    assert _called_steps(workflow) == list(STEPS)
    container = workflow.find_control_plane_container.return_value
    workflow.copy_snapshot.assert_called_once_with(container, snapshot_file)
    workflow.restore_snapshot.assert_called_once_with(
        container, cluster_cfg, restore_cfg, "https://172.18.0.3:2380")
    workflow.replace_existing_cluster.assert_called_once_with(cluster_cfg, confirm)
    workflow.docker.from_env.return_value.close.assert_called_once()


def test_run_restore_passes_install_permission(
    workflow: MagicMock, snapshot_file: Path, cluster_cfg: ClusterConfig, restore_cfg: RestoreConfig,
) -> None:
    run_restore(snapshot_file, cluster_cfg, restore_cfg, confirm_delete=lambda q: True, allow_kind_install=False)
    workflow.ensure_kind_installed.assert_called_once_with(cluster_cfg, allow_install=False)


def test_run_restore_stops_at_failed_restore(
    workflow: MagicMock, snapshot_file: Path, cluster_cfg: ClusterConfig, restore_cfg: RestoreConfig,
) -> None:
    workflow.restore_snapshot.side_effect = RestoreError("Reached maximum retry attempts (3)")

    with pytest.raises(RestoreError):
        run_restore(snapshot_file, cluster_cfg, restore_cfg, confirm_delete=lambda q: True)

    workflow.restart_etcd.assert_not_called()
    workflow.verify_restore.assert_not_called()
    workflow.docker.from_env.return_value.close.assert_called_once()


def test_check_prerequisites_requires_kubectl_and_docker() -> None:
    with patch("etcd_restore.orchestrator.require_command") as require:
        check_prerequisites()
    assert [c.args[0] for c in require.call_args_list] == ["kubectl", "docker"]


def test_check_prerequisites_missing_tool() -> None:
    with patch("etcd_restore.orchestrator.require_command", side_effect=PrerequisiteError("'kubectl' is not installed")):
        with pytest.raises(PrerequisiteError):
            check_prerequisites()
