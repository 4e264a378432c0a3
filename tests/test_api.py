"""Tests for the FastAPI server."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from httpx import ASGITransport, AsyncClient

from agentmatch.api import server
from agentmatch.api.server import app
from agentmatch.config.settings import ConfigSource
from agentmatch.matching.matcher import CapabilityMatcher

AGENTS = [
    {
        "id": "fe-1",
        "tasksCompleted": 12,
        "template": {"type": "frontend", "specialization": "React, CSS", "capabilities": ["react", "css"]},
    },
    {"id": "fe-2", "tasksCompleted": 12, "template": {"type": "frontend", "specialization": "React, CSS", "capabilities": ["react", "css"]}},
    {"id": "ops-1", "status": "busy", "template": "devops-engineer"},
]

TASK = {
    "id": "t-1",
    "description": "Build a React component",
    "tags": ["frontend"],
    "requiredCapabilities": ["react"],
}


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def restore_weights() -> Iterator[None]:
    saved = server._matcher.get_weights()
    yield
    server._matcher.update_weights(saved.as_dict())


@pytest.mark.anyio
async def test_health() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"
    assert "uptime_seconds" in data


@pytest.mark.anyio
async def test_templates() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/templates")
    assert response.status_code == 200
    templates = response.json()["templates"]
    assert templates["frontend-react"]["type"] == "frontend"
    assert "systemPrompt" in templates["backend-node"]


@pytest.mark.anyio
async def test_weights_get() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/weights")
    data = response.json()
    assert data["weights"]["capability_match"] == 0.40
    assert data["min_score"] == 0.0
    assert data["custom_agent_threshold"] == 0.7


@pytest.mark.anyio
async def test_weights_patch() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.patch("/api/weights", json={"typeMatch": 0.5})
    weights = response.json()["weights"]
    assert weights["type_match"] == 0.5
    assert weights["capability_match"] == 0.40


@pytest.mark.anyio
async def test_weights_patch_unknown() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.patch("/api/weights", json={"luck": 1.0})
    assert "error" in response.json()


@pytest.mark.anyio
async def test_rank() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/rank", json={"agents": AGENTS, "task": TASK})
    data = response.json()
    assert data["task_id"] == "t-1"
    ranking = data["ranking"]
    assert [entry["agent_id"] for entry in ranking][:2] == ["fe-1", "fe-2"]
    assert len(ranking) == 3
    assert ranking[0]["score"] == pytest.approx(0.875)


@pytest.mark.anyio
async def test_rank_requires_task() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/rank", json={"agents": AGENTS})
    assert "error" in response.json()


@pytest.mark.anyio
async def test_best() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/best", json={"agents": AGENTS, "task": TASK})
    data = response.json()
    assert data["agent_id"] == "fe-1"
    assert data["reason"] is None
    assert data["fallback_chain"] == ["fe-2"]
    assert data["create_custom_agent"] is False
    assert data["explanation"].startswith("Strong capability match")


@pytest.mark.anyio
async def test_best_without_idle_agents() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/best", json={"agents": [AGENTS[2]], "task": TASK})
    data = response.json()
    assert data["agent_id"] is None
    assert data["reason"] == "no_idle_agents"
    assert data["create_custom_agent"] is False


@pytest.mark.anyio
async def test_best_unknown_template() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/api/best",
            json={"agents": [{"id": "x", "template": "cobol-wizard"}], "task": TASK},
        )
    assert "cobol-wizard" in response.json()["error"]


@pytest.mark.anyio
async def test_explain() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/explain", json={"agent": AGENTS[0], "task": TASK})
    data = response.json()
    assert data["agent_id"] == "fe-1"
    assert data["breakdown"]["specialization_match"] == 0.5
    assert data["explanation"] == "Strong capability match (100%), Perfect type compatibility, Agent is idle"


@pytest.mark.anyio
async def test_explain_requires_agent() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/explain", json={"task": TASK})
    assert "error" in response.json()


@pytest.mark.anyio
async def test_weights_patch_rejects_non_finite() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        patched = await client.patch("/api/weights", json={"typeMatch": "nan"})
        ranked = await client.post("/api/rank", json={"agents": AGENTS[:1], "task": TASK})
    assert "finite number" in patched.json()["error"]
    assert ranked.json()["ranking"][0]["score"] == pytest.approx(0.875)


@pytest.mark.anyio
async def test_best_with_unusable_completed_count() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/api/best",
            content='{"agents": [{"id": "a", "tasksCompleted": 1e999}], "task": {"id": "t"}}',
            headers={"content-type": "application/json"},
        )
    assert response.status_code == 200
    data = response.json()
    assert data["agent_id"] == "a"
    assert data["score"] == 0.0


@pytest.mark.anyio
async def test_best_skips_unknown_status() -> None:
    agent = {**AGENTS[0], "id": "gone", "status": "terminated"}
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/best", json={"agents": [agent], "task": TASK})
    data = response.json()
    assert data["agent_id"] is None
    assert data["reason"] == "no_idle_agents"


@pytest.mark.anyio
async def test_shutdown_releases_config_subscription(monkeypatch: pytest.MonkeyPatch) -> None:
    config = ConfigSource()
    matcher = CapabilityMatcher(config)
    monkeypatch.setattr(server, "_config", config)
    monkeypatch.setattr(server, "_matcher", matcher)

    async with server.lifespan(app):
        assert config.listener_count == 1
    assert config.listener_count == 0
