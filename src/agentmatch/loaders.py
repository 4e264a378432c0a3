"""Read agents and tasks from their JSON wire form."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from agentmatch.matching.models import Agent, Task


def parse_agents(data: Any) -> list[Agent]:
    """Parse a list of agent mappings, or ``{"agents": [...]}``.

    Raises:
        ValueError: The payload is not a list of agent objects.
    """
    if isinstance(data, Mapping):
        data = data.get("agents")
    if not isinstance(data, list):
        raise ValueError("agents must be a list of objects")

    agents: list[Agent] = []
    for index, item in enumerate(data):
        if not isinstance(item, Mapping) or "id" not in item:
            raise ValueError(f"agent #{index} must be an object with an 'id'")
        agents.append(Agent.from_dict(item))
    return agents


def parse_task(data: Any) -> Task:
    """Parse a task mapping.

    Raises:
        ValueError: The payload is not an object with an ``id``.
    """
    if not isinstance(data, Mapping) or "id" not in data:
        raise ValueError("task must be an object with an 'id'")
    return Task.from_dict(data)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cannot read {path}: {exc}") from exc


def load_agents(path: Path) -> list[Agent]:
    return parse_agents(_read_json(path))


def load_task(path: Path) -> Task:
    return parse_task(_read_json(path))
