"""
Matching Data Models

Core dataclasses for agent/task matching: the agent's capability Template,
the Agent and Task records an orchestrator hands to the matcher, and the
result types the matcher returns.

Wire form (``from_dict`` / ``to_dict``) follows the orchestrator's camelCase
field names; snake_case keys are accepted on input as well.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import Any

from .priority import Priority, priority_to_numeric


class AgentStatus(StrEnum):
    """Agent availability states."""

    IDLE = "idle"
    WORKING = "working"
    ERROR = "error"
    OFFLINE = "offline"


class TaskStatus(StrEnum):
    """Task lifecycle states."""

    QUEUED = "queued"
    VALIDATED = "validated"
    READY = "ready"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    BLOCKED = "blocked"


_AGENT_STATUS_ALIASES: dict[str, AgentStatus] = {
    "idle": AgentStatus.IDLE,
    "available": AgentStatus.IDLE,
    "ready": AgentStatus.IDLE,
    "working": AgentStatus.WORKING,
    "busy": AgentStatus.WORKING,
    "active": AgentStatus.WORKING,
    "in-progress": AgentStatus.WORKING,
    "error": AgentStatus.ERROR,
    "failed": AgentStatus.ERROR,
    "crashed": AgentStatus.ERROR,
    "offline": AgentStatus.OFFLINE,
    "disconnected": AgentStatus.OFFLINE,
    "stopped": AgentStatus.OFFLINE,
}

_TASK_STATUS_ALIASES: dict[str, TaskStatus] = {
    "queued": TaskStatus.QUEUED,
    "pending": TaskStatus.QUEUED,
    "validated": TaskStatus.VALIDATED,
    "ready": TaskStatus.READY,
    "assigned": TaskStatus.ASSIGNED,
    "allocated": TaskStatus.ASSIGNED,
    "in-progress": TaskStatus.IN_PROGRESS,
    "inprogress": TaskStatus.IN_PROGRESS,
    "working": TaskStatus.IN_PROGRESS,
    "active": TaskStatus.IN_PROGRESS,
    "completed": TaskStatus.COMPLETED,
    "done": TaskStatus.COMPLETED,
    "finished": TaskStatus.COMPLETED,
    "failed": TaskStatus.FAILED,
    "error": TaskStatus.FAILED,
    "cancelled": TaskStatus.FAILED,
    "canceled": TaskStatus.FAILED,
    "blocked": TaskStatus.BLOCKED,
}


def normalize_agent_status(
    status: str | None, default: AgentStatus = AgentStatus.IDLE
) -> AgentStatus:
    """Map a free-form agent status string onto AgentStatus.

    Unrecognized values map to ``default`` (idle, for display).
    """
    if not isinstance(status, str):
        return default
    return _AGENT_STATUS_ALIASES.get(status.strip().lower(), default)


def normalize_task_status(status: str | None) -> TaskStatus:
    """Map a free-form task status string onto TaskStatus (default: queued)."""
    if not isinstance(status, str):
        return TaskStatus.QUEUED
    return _TASK_STATUS_ALIASES.get(status.strip().lower(), TaskStatus.QUEUED)


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []
    return [str(item) for item in value if item is not None]


def _wire_agent_status(status: Any) -> AgentStatus:
    # Absent status is idle; an unreadable one is offline
    if status is None:
        return AgentStatus.IDLE
    return normalize_agent_status(status, default=AgentStatus.OFFLINE)


def _completed_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0
    return int(value)


def _optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ═══════════════════════════════════════════════════════════════════════════
# DOMAIN RECORDS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Template:
    """Capability profile attached to an agent."""

    type: str = ""
    specialization: str = ""
    capabilities: tuple[str, ...] = ()
    name: str = ""
    system_prompt: str = ""

    def __post_init__(self) -> None:
        # Lists are accepted for convenience and frozen here
        if not isinstance(self.capabilities, tuple):
            object.__setattr__(self, "capabilities", tuple(_str_list(self.capabilities)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Template:
        return cls(
            type=str(_pick(data, "type", default="")),
            specialization=str(_pick(data, "specialization", default="")),
            capabilities=tuple(_str_list(_pick(data, "capabilities", default=[]))),
            name=str(_pick(data, "name", default="")),
            system_prompt=str(_pick(data, "systemPrompt", "system_prompt", default="")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "specialization": self.specialization,
            "capabilities": list(self.capabilities),
            "systemPrompt": self.system_prompt,
        }


@dataclass
class Agent:
    """A worker that can be matched to tasks.

    ``status``, ``current_task`` and ``tasks_completed`` are owned by the
    orchestrator; the matcher only reads them.
    """

    id: str
    status: AgentStatus = AgentStatus.IDLE
    current_task: str | None = None
    tasks_completed: int = 0
    template: Template | None = None
    name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.status, AgentStatus):
            self.status = AgentStatus(self.status)
        if self.tasks_completed < 0:
            raise ValueError(f"tasks_completed must be >= 0, got {self.tasks_completed}")

    @property
    def is_idle(self) -> bool:
        return self.status == AgentStatus.IDLE

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        templates: Mapping[str, Template] | None = None,
    ) -> Agent:
        """Build an Agent from its wire form.

        Args:
            data: Agent mapping (camelCase or snake_case keys).
            templates: Catalog used when ``template`` is given as a key.

        Returns:
            Agent instance.
        """
        raw_template = data.get("template")
        template: Template | None = None
        if isinstance(raw_template, Mapping):
            template = Template.from_dict(raw_template)
        elif isinstance(raw_template, Template):
            template = raw_template
        elif isinstance(raw_template, str) and raw_template:
            if templates is None:
                from .templates import BUILTIN_TEMPLATES

                templates = BUILTIN_TEMPLATES
            if raw_template not in templates:
                available = ", ".join(sorted(templates))
                raise KeyError(f"Unknown template '{raw_template}' (available: {available})")
            template = templates[raw_template]

        current = _pick(data, "currentTask", "current_task")
        if isinstance(current, Mapping):
            current = current.get("id")

        completed = _pick(data, "tasksCompleted", "tasks_completed", default=0)
        return cls(
            id=str(data["id"]),
            status=_wire_agent_status(_pick(data, "status")),
            current_task=str(current) if current is not None else None,
            tasks_completed=_completed_count(completed),
            template=template,
            name=str(_pick(data, "name", default="")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "currentTask": self.current_task,
            "tasksCompleted": self.tasks_completed,
            "template": self.template.to_dict() if self.template else None,
        }


@dataclass
class Task:
    """A unit of work to be matched.

    Relation fields (depends_on, prefers, blocked_by, conflicts_with) are
    carried for the orchestrator; the matcher does not interpret them.
    """

    id: str
    title: str = ""
    description: str = ""
    priority: str = Priority.MEDIUM.value
    numeric_priority: float | None = None
    status: TaskStatus = TaskStatus.QUEUED
    tags: list[str] = field(default_factory=list)
    required_capabilities: list[str] = field(default_factory=list)
    depends_on: list[str] = field(default_factory=list)
    prefers: list[str] = field(default_factory=list)
    blocked_by: list[str] = field(default_factory=list)
    conflicts_with: list[str] = field(default_factory=list)
    estimated_duration: float | None = None
    assigned_to: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.status, TaskStatus):
            self.status = TaskStatus(self.status)

    def effective_priority(self) -> float:
        """Numeric priority if set, otherwise the symbolic priority decoded."""
        if self.numeric_priority is not None:
            return self.numeric_priority
        return priority_to_numeric(self.priority)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        return cls(
            id=str(data["id"]),
            title=str(_pick(data, "title", default="")),
            description=str(_pick(data, "description", default="")),
            priority=str(_pick(data, "priority", default=Priority.MEDIUM.value)),
            numeric_priority=_optional_float(_pick(data, "numericPriority", "numeric_priority")),
            status=normalize_task_status(_pick(data, "status", default="queued")),
            tags=_str_list(_pick(data, "tags", default=[])),
            required_capabilities=_str_list(
                _pick(data, "requiredCapabilities", "required_capabilities", default=[])
            ),
            depends_on=_str_list(_pick(data, "dependsOn", "depends_on", default=[])),
            prefers=_str_list(_pick(data, "prefers", default=[])),
            blocked_by=_str_list(_pick(data, "blockedBy", "blocked_by", default=[])),
            conflicts_with=_str_list(_pick(data, "conflictsWith", "conflicts_with", default=[])),
            estimated_duration=_optional_float(
                _pick(data, "estimatedDuration", "estimated_duration")
            ),
            assigned_to=_pick(data, "assignedTo", "assigned_to"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "numericPriority": self.effective_priority(),
            "status": self.status.value,
            "tags": list(self.tags),
            "requiredCapabilities": list(self.required_capabilities),
            "dependsOn": list(self.depends_on),
            "prefers": list(self.prefers),
            "blockedBy": list(self.blocked_by),
            "conflictsWith": list(self.conflicts_with),
            "estimatedDuration": self.estimated_duration,
            "assignedTo": self.assigned_to,
        }


# ═══════════════════════════════════════════════════════════════════════════
# SCORING RESULTS
# ═══════════════════════════════════════════════════════════════════════════

# Wire (camelCase) name -> field name
WEIGHT_ALIASES: dict[str, str] = {
    "capabilityMatch": "capability_match",
    "specializationMatch": "specialization_match",
    "typeMatch": "type_match",
    "workloadFactor": "workload_factor",
    "performanceFactor": "performance_factor",
}


@dataclass(frozen=True)
class MatchWeights:
    """Weights applied to the five sub-scores. Not required to sum to 1."""

    capability_match: float = 0.40
    specialization_match: float = 0.25
    type_match: float = 0.20
    workload_factor: float = 0.10
    performance_factor: float = 0.05

    def as_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class ScoreBreakdown:
    """Unweighted sub-scores for one agent/task pair."""

    capability_match: float = 0.0
    specialization_match: float = 0.0
    type_match: float = 0.0
    workload_factor: float = 0.0
    performance_factor: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class AgentScore:
    """An agent with its clamped score and breakdown."""

    agent: Agent
    score: float
    breakdown: ScoreBreakdown


@dataclass(frozen=True)
class MatchResult:
    """Selection decision for one task."""

    task_id: str
    agent: Agent | None
    score: float
    breakdown: ScoreBreakdown | None
    explanation: str
    reason: str | None = None  # set when no agent was chosen
    fallback_chain: tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return self.agent is not None
