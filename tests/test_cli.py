"""Tests for the amatch CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from agentmatch.cli import main

AGENTS = [
    {
        "id": "fe-1",
        "status": "idle",
        "tasksCompleted": 12,
        "template": {"type": "frontend", "specialization": "React, CSS", "capabilities": ["react", "css"]},
    },
    {"id": "ops-1", "status": "idle", "template": "devops-engineer"},
    {"id": "busy-1", "status": "working", "currentTask": "t-0", "template": "frontend-react"},
]

TASK = {
    "id": "t-1",
    "title": "Component",
    "description": "Build a React component",
    "tags": ["frontend"],
    "requiredCapabilities": ["react"],
}


@pytest.fixture
def files(tmp_path: Path) -> dict[str, str]:
    agents = tmp_path / "agents.json"
    task = tmp_path / "task.json"
    agents.write_text(json.dumps(AGENTS))
    task.write_text(json.dumps(TASK))
    return {
        "agents": str(agents),
        "task": str(task),
        "config": str(tmp_path / "config.json"),
    }


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_templates() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["templates"])
    assert result.exit_code == 0
    assert "Agent Templates" in result.output


def test_rank(files: dict[str, str]) -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["rank", files["agents"], files["task"], "--config", files["config"]])
    assert result.exit_code == 0
    assert "Ranking for t-1" in result.output
    for agent_id in ("fe-1", "ops-1", "busy-1"):
        assert agent_id in result.output


def test_rank_empty(files: dict[str, str], tmp_path: Path) -> None:
    empty = tmp_path / "empty.json"
    empty.write_text("[]")
    runner = CliRunner()
    result = runner.invoke(main, ["rank", str(empty), files["task"], "--config", files["config"]])
    assert result.exit_code == 0
    assert "No agents to rank" in result.output


def test_best(files: dict[str, str]) -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["best", files["agents"], files["task"], "--config", files["config"]])
    assert result.exit_code == 0
    assert "fe-1" in result.output
    assert "0.875" in result.output
    assert "Fallbacks" in result.output


def test_best_no_idle_agent(files: dict[str, str], tmp_path: Path) -> None:
    busy = tmp_path / "busy.json"
    busy.write_text(json.dumps([AGENTS[2]]))
    runner = CliRunner()
    result = runner.invoke(main, ["best", str(busy), files["task"], "--config", files["config"]])
    assert result.exit_code == 1
    assert "No suitable agent" in result.output


def test_best_respects_config_min_score(files: dict[str, str]) -> None:
    Path(files["config"]).write_text(json.dumps({"matcher": {"minScore": 0.95}}))
    runner = CliRunner()
    result = runner.invoke(main, ["best", files["agents"], files["task"], "--config", files["config"]])
    assert result.exit_code == 1


def test_best_suggests_custom_agent(files: dict[str, str]) -> None:
    Path(files["config"]).write_text(json.dumps({"matcher": {"customAgentThreshold": 0.9}}))
    runner = CliRunner()
    result = runner.invoke(main, ["best", files["agents"], files["task"], "--config", files["config"]])
    assert result.exit_code == 0
    assert "threshold" in result.output


def test_explain(files: dict[str, str]) -> None:
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["explain", files["agents"], files["task"], "--agent", "fe-1", "--config", files["config"]],
    )
    assert result.exit_code == 0
    assert "capability_match" in result.output
    assert "0.875" in result.output


def test_explain_unknown_agent(files: dict[str, str]) -> None:
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["explain", files["agents"], files["task"], "--agent", "nobody", "--config", files["config"]],
    )
    assert result.exit_code != 0
    assert "nobody" in result.output


def test_weights(files: dict[str, str]) -> None:
    Path(files["config"]).write_text(json.dumps({"matcher.weights.typeMatch": 0.35}))
    runner = CliRunner()
    result = runner.invoke(main, ["weights", "--config", files["config"]])
    assert result.exit_code == 0
    assert "0.35" in result.output
    assert "Custom agent threshold: 0.70" in result.output


def test_invalid_config(files: dict[str, str]) -> None:
    Path(files["config"]).write_text("{not json")
    runner = CliRunner()
    result = runner.invoke(main, ["weights", "--config", files["config"]])
    assert result.exit_code != 0
    assert "Cannot read config" in result.output


def test_invalid_agents_file(files: dict[str, str], tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"agents": [{"name": "no id"}]}))
    runner = CliRunner()
    result = runner.invoke(main, ["rank", str(bad), files["task"], "--config", files["config"]])
    assert result.exit_code != 0
    assert "agent #0" in result.output
