"""FastAPI server exposing the matcher to an out-of-process orchestrator."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import click
from fastapi import FastAPI

from agentmatch import __version__
from agentmatch.config.settings import ConfigSource, load_config
from agentmatch.loaders import parse_agents, parse_task
from agentmatch.logging_utils import configure_logging
from agentmatch.matching.matcher import CapabilityMatcher
from agentmatch.matching.models import AgentScore
from agentmatch.matching.templates import list_templates

_start_time = time.monotonic()
_config = ConfigSource()
_matcher = CapabilityMatcher(_config)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Release the matcher's config subscription on shutdown."""
    try:
        yield
    finally:
        _matcher.dispose()


app = FastAPI(
    title="agentmatch API",
    version=__version__,
    description="Capability-based agent/task matching",
    lifespan=lifespan,
)


def _score_dict(entry: AgentScore) -> dict[str, Any]:
    return {
        "agent_id": entry.agent.id,
        "status": entry.agent.status.value,
        "score": round(entry.score, 4),
        "breakdown": entry.breakdown.as_dict(),
    }


@app.get("/api/health")
async def health() -> dict[str, Any]:
    """Health check."""
    uptime = time.monotonic() - _start_time
    return {"status": "ok", "version": __version__, "uptime_seconds": round(uptime, 1)}


@app.get("/api/templates")
async def templates() -> dict[str, Any]:
    """Built-in agent templates."""
    return {"templates": {key: template.to_dict() for key, template in list_templates()}}


@app.get("/api/weights")
async def get_weights() -> dict[str, Any]:
    """Effective weights and thresholds."""
    return {
        "weights": _matcher.get_weights().as_dict(),
        "min_score": _matcher.min_score,
        "custom_agent_threshold": _matcher.custom_agent_threshold,
    }


@app.patch("/api/weights")
async def patch_weights(request: dict[str, Any]) -> dict[str, Any]:
    """Merge a partial set of weights."""
    try:
        _matcher.update_weights(request)
    except (TypeError, ValueError) as exc:
        return {"error": str(exc)}
    return {"weights": _matcher.get_weights().as_dict()}


@app.post("/api/rank")
async def rank(request: dict[str, Any]) -> dict[str, Any]:
    """Rank all supplied agents for a task."""
    try:
        agents = parse_agents(request.get("agents"))
        task = parse_task(request.get("task"))
    except (KeyError, ValueError) as exc:
        return {"error": str(exc)}

    ranked = _matcher.rank_agents(agents, task)
    return {"task_id": task.id, "ranking": [_score_dict(entry) for entry in ranked]}


@app.post("/api/best")
async def best(request: dict[str, Any]) -> dict[str, Any]:
    """Select the best idle agent for a task."""
    try:
        agents = parse_agents(request.get("agents"))
        task = parse_task(request.get("task"))
    except (KeyError, ValueError) as exc:
        return {"error": str(exc)}

    result = _matcher.match(agents, task)
    return {
        "task_id": task.id,
        "agent_id": result.agent.id if result.agent else None,
        "score": round(result.score, 4),
        "breakdown": result.breakdown.as_dict() if result.breakdown else None,
        "explanation": result.explanation,
        "reason": result.reason,
        "fallback_chain": list(result.fallback_chain),
        "create_custom_agent": bool(agents) and _matcher.should_create_custom_agent(agents, task),
    }


@app.post("/api/explain")
async def explain(request: dict[str, Any]) -> dict[str, Any]:
    """Explain how one agent fits a task."""
    try:
        agent = parse_agents([request.get("agent")])[0]
        task = parse_task(request.get("task"))
    except (KeyError, ValueError) as exc:
        return {"error": str(exc)}

    scored = _matcher.score_agent_with_breakdown(agent, task)
    return {
        **_score_dict(scored),
        "task_id": task.id,
        "explanation": _matcher.get_match_explanation(agent, task),
    }


@click.command()
@click.option("--port", default=3849, help="Port to listen on")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSON config file to load at startup",
)
@click.option("--log-level", default="INFO", help="Log level")
def main(port: int, host: str, config_path: Path | None, log_level: str) -> None:
    """Start the agentmatch API server."""
    import uvicorn

    configure_logging(log_level)
    source = load_config(config_path)
    _config.replace(source.as_dict())

    uvicorn.run(app, host=host, port=port)
