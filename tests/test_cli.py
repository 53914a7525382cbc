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

"""Tests for the command-line entry point and its exit codes."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from etcd_restore.cli import app
from etcd_restore.config import ClusterConfig, RestoreConfig
from etcd_restore.errors import PrerequisiteError, RestoreError

runner = CliRunner()


@pytest.fixture
def prereqs_ok():
    with patch("etcd_restore.cli.check_prerequisites") as mocked:
        yield mocked


@pytest.fixture
def mock_run_restore():
    with patch("etcd_restore.cli.run_restore") as mocked:
        yield mocked


def test_missing_snapshot_argument_exits_1(prereqs_ok, mock_run_restore) -> None:
    result = runner.invoke(app, [])
    assert result.exit_code == 1
    mock_run_restore.assert_not_called()


def test_nonexistent_snapshot_exits_1(prereqs_ok, mock_run_restore, tmp_path: Path) -> None:
    result = runner.invoke(app, [str(tmp_path / "missing.db")])
    assert result.exit_code == 1
    mock_run_restore.assert_not_called()


def test_missing_tool_exits_1(mock_run_restore, snapshot_file: Path) -> None:
    with patch("etcd_restore.cli.check_prerequisites", side_effect=PrerequisiteError("'docker' is not installed")):
        result = runner.invoke(app, [str(snapshot_file)])
    assert result.exit_code == 1
    mock_run_restore.assert_not_called()


def test_restore_failure_exits_1(prereqs_ok, mock_run_restore, snapshot_file: Path) -> None:
    mock_run_restore.side_effect = RestoreError("Reached maximum retry attempts (3)")
    result = runner.invoke(app, [str(snapshot_file)])
    assert result.exit_code == 1


def test_success_exits_0_with_defaults(prereqs_ok, mock_run_restore, snapshot_file: Path) -> None:
    result = runner.invoke(app, [str(snapshot_file)])

    assert result.exit_code == 0
    snapshot, cluster_cfg, restore_cfg = mock_run_restore.call_args.args
    assert snapshot == snapshot_file.resolve()
    assert cluster_cfg == ClusterConfig()
    assert restore_cfg.restore_retries == 3
    assert mock_run_restore.call_args.kwargs["allow_kind_install"] is True


def test_flags_override_settings(prereqs_ok, mock_run_restore, snapshot_file: Path) -> None:
    result = runner.invoke(app, [
        str(snapshot_file),
        "--cluster-name", "restore-test",
        "--workers", "3",
        "--retries", "5",
        "--skip-kind-install",
    ])

    assert result.exit_code == 0
    _, cluster_cfg, restore_cfg = mock_run_restore.call_args.args
    assert cluster_cfg.cluster_name == "restore-test"
    assert cluster_cfg.worker_nodes == 3
    assert isinstance(restore_cfg, RestoreConfig)
    assert restore_cfg.restore_retries == 5
    assert mock_run_restore.call_args.kwargs["allow_kind_install"] is False


def test_invalid_flag_value_exits_1(prereqs_ok, mock_run_restore, snapshot_file: Path) -> None:
    result = runner.invoke(app, [str(snapshot_file), "--workers", "0"])
    assert result.exit_code == 1
    mock_run_restore.assert_not_called()


def test_yes_flag_confirms_without_prompt(prereqs_ok, mock_run_restore, snapshot_file: Path) -> None:
    result = runner.invoke(app, [str(snapshot_file), "--yes"])

    assert result.exit_code == 0
    confirm = mock_run_restore.call_args.kwargs["confirm_delete"]
    assert confirm("delete?") is True


def test_prompt_answer_is_used(prereqs_ok, mock_run_restore, snapshot_file: Path) -> None:
    answers: list[bool] = []

    def fake_run_restore(snapshot, cluster_cfg, restore_cfg, *, confirm_delete, allow_kind_install):
        answers.append(confirm_delete("A cluster named 'mycluster' already exists. Delete it?"))

    mock_run_restore.side_effect = fake_run_restore
    result = runner.invoke(app, [str(snapshot_file)], input="n\n")

    assert result.exit_code == 0
    assert answers == [False]
