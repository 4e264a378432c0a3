"""Shared fixtures for matcher tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from loguru import logger

from agentmatch.matching.models import Agent, AgentStatus, Task, Template


@pytest.fixture
def log_records() -> Iterator[list[tuple[str, str]]]:
    """Capture loguru output as (level, message) pairs."""
    records: list[tuple[str, str]] = []
    handler_id = logger.add(
        lambda message: records.append(
            (message.record["level"].name, message.record["message"])
        ),
        level="DEBUG",
    )
    yield records
    logger.remove(handler_id)


@pytest.fixture
def frontend_agent() -> Agent:
    return Agent(
        id="fe-1",
        status=AgentStatus.IDLE,
        tasks_completed=12,
        template=Template(
            type="frontend",
            specialization="React, CSS",
            capabilities=("react", "css"),
        ),
    )


@pytest.fixture
def react_task() -> Task:
    return Task(
        id="t-1",
        title="Component",
        description="Build a React component",
        tags=["frontend"],
        required_capabilities=["react"],
    )
