"""
Capability Matching — Agent/Task Compatibility Scoring

Core Components:
- priority: symbolic <-> numeric task priority codec
- models: Agent, Task, Template records and scoring result types
- tables: capability synonyms, type compatibility, task-type keywords
- templates: built-in agent capability profiles
- matcher: weighted scoring, ranking, selection and explanations
"""

from .matcher import CapabilityMatcher
from .models import (
    Agent,
    AgentScore,
    AgentStatus,
    MatchResult,
    MatchWeights,
    ScoreBreakdown,
    Task,
    TaskStatus,
    Template,
    normalize_agent_status,
    normalize_task_status,
)
from .priority import Priority, numeric_to_priority, priority_to_numeric
from .templates import BUILTIN_TEMPLATES, get_template, list_templates

__all__ = [
    # Matcher
    "CapabilityMatcher",
    # Models
    "Agent",
    "AgentScore",
    "AgentStatus",
    "MatchResult",
    "MatchWeights",
    "ScoreBreakdown",
    "Task",
    "TaskStatus",
    "Template",
    "normalize_agent_status",
    "normalize_task_status",
    # Priority
    "Priority",
    "numeric_to_priority",
    "priority_to_numeric",
    # Templates
    "BUILTIN_TEMPLATES",
    "get_template",
    "list_templates",
]
