"""Tests for the node command group."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from grantgraph.cli import cli
from grantgraph.domain.ids import SYSTEM_ROOT_ID


def _json(runner: CliRunner, *args: str) -> dict[str, Any]:
    result = runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    data: dict[str, Any] = json.loads(result.output)["data"]
    return data


@pytest.mark.usefixtures("_isolated_store")
class TestNodeCommands:
    def test_create_user_as_root(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "node", "create", "user", "--name", "alice")
        assert data["id"].startswith("usr_")
        assert data["owner_id"] == SYSTEM_ROOT_ID

    def test_create_human_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["node", "create", "group", "--name", "lab"])
        assert result.exit_code == 0
        assert "OK" in result.output
        assert "create_node" in result.output
        assert "lab" in result.output

    def test_acting_user_owns_what_it_creates(self, cli_runner: CliRunner) -> None:
        alice = _json(cli_runner, "node", "create", "user", "--name", "alice")["id"]
        coll = _json(cli_runner, "--as", alice, "node", "create", "collection")
        assert coll["owner_id"] == alice

    def test_unknown_actor_is_usage_error(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--as", "usr_zzzzzzzzzzzzzzz", "node", "show", SYSTEM_ROOT_ID])
        assert result.exit_code == 2
        assert "Unknown user" in result.output

    def test_non_user_actor_is_usage_error(self, cli_runner: CliRunner) -> None:
        group = _json(cli_runner, "node", "create", "group")["id"]
        result = cli_runner.invoke(cli, ["--as", group, "node", "show", SYSTEM_ROOT_ID])
        assert result.exit_code == 2
        assert "expects a user id" in result.output

    def test_show_invisible_fails(self, cli_runner: CliRunner) -> None:
        alice = _json(cli_runner, "node", "create", "user", "--name", "alice")["id"]
        coll = _json(cli_runner, "node", "create", "collection")["id"]
        result = cli_runner.invoke(cli, ["--as", alice, "node", "show", coll])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output

    def test_trash_untrash_destroy(self, cli_runner: CliRunner) -> None:
        coll = _json(cli_runner, "node", "create", "collection")["id"]
        assert _json(cli_runner, "node", "trash", coll)["is_trashed"] is True
        assert _json(cli_runner, "node", "untrash", coll)["is_trashed"] is False
        assert _json(cli_runner, "node", "destroy", coll) == {"id": coll, "edges_removed": 0}

    def test_schedule_trash(self, cli_runner: CliRunner) -> None:
        coll = _json(cli_runner, "node", "create", "collection")["id"]
        data = _json(cli_runner, "node", "trash", coll, "--at", "2099-01-01T00:00:00Z")
        assert data["trash_at"].startswith("2099-01-01")

    def test_reown(self, cli_runner: CliRunner) -> None:
        group = _json(cli_runner, "node", "create", "group")["id"]
        coll = _json(cli_runner, "node", "create", "collection")["id"]
        assert _json(cli_runner, "node", "reown", coll, group)["owner_id"] == group

    def test_bad_kind_rejected_by_click(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["node", "create", "bucket"])
        assert result.exit_code == 2
