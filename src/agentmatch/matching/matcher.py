"""
Capability Matcher — Weighted Agent/Task Compatibility Scoring

Scores an agent against a task from five sub-scores and picks the best idle
agent for live assignment.

Scoring formula (default weights, not normalized; the sum is clamped to [0, 1]):
    score = capability_match * 0.40
          + specialization_match * 0.25
          + type_match * 0.20
          + workload_factor * 0.10
          + performance_factor * 0.05

Capability, specialization and type sub-scores go negative on a clear
mismatch so that "no overlap" scores below "no requirement".
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import fields, replace
from typing import Any, Final

from loguru import logger

from agentmatch.config.settings import ConfigChange, ConfigSource, Subscription

from .models import (
    WEIGHT_ALIASES,
    Agent,
    AgentScore,
    MatchResult,
    MatchWeights,
    ScoreBreakdown,
    Task,
)
from .tables import TYPE_COMPATIBILITY, build_synonym_table, infer_task_type

# Configuration keys
WEIGHTS_SECTION: Final[str] = "matcher.weights"
MIN_SCORE_KEY: Final[str] = "matcher.minScore"
CUSTOM_AGENT_THRESHOLD_KEY: Final[str] = "matcher.customAgentThreshold"

# Sub-score constants
NO_CAPABILITY_PENALTY: Final[float] = -0.2
WEAK_SPECIALIZATION_PENALTY: Final[float] = -0.1
WEAK_SPECIALIZATION_CUTOFF: Final[float] = 0.1
TYPE_MISMATCH_PENALTY: Final[float] = -0.2
BUSY_WORKLOAD: Final[float] = 0.3
NEW_AGENT_PERFORMANCE: Final[float] = 0.5
PERFORMANCE_SATURATION: Final[int] = 10

DEFAULT_CUSTOM_AGENT_THRESHOLD: Final[float] = 0.7
FALLBACK_CHAIN_LENGTH: Final[int] = 3

_FACTORS: Final[tuple[str, ...]] = tuple(f.name for f in fields(MatchWeights))
_SPECIALIZATION_SPLIT = re.compile(r"[,\s]+")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _normalize_terms(values: Any) -> list[str]:
    """Lowercase a capability/tag collection; anything that is not one yields []."""
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple, set, frozenset)):
        return []
    return [str(value).lower() if value is not None else "" for value in values]


class CapabilityMatcher:
    """
    Scores agents against tasks and selects the best fit.

    Weights are held as an immutable ``MatchWeights`` snapshot that is swapped
    as a whole on update, so a concurrent scoring call sees either the old or
    the new set.

    When given a ``ConfigSource`` the matcher reads ``matcher.weights.*``,
    ``matcher.minScore`` and ``matcher.customAgentThreshold`` and follows
    later changes until ``dispose()`` is called.
    """

    def __init__(
        self,
        config: ConfigSource | None = None,
        weights: MatchWeights | None = None,
        min_score: float = 0.0,
    ) -> None:
        self._weights = weights or MatchWeights()
        self._default_min_score = min_score
        self._min_score = min_score
        self._custom_agent_threshold = DEFAULT_CUSTOM_AGENT_THRESHOLD

        self._synonyms = build_synonym_table()
        self._type_compatibility = TYPE_COMPATIBILITY

        self._config = config
        self._subscription: Subscription | None = None
        if config is not None:
            self._load_from_config()
            self._subscription = config.on_change(self._on_config_change)

    # -- lifecycle -----------------------------------------------------------

    def dispose(self) -> None:
        """Release the configuration subscription."""
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
            logger.debug("CapabilityMatcher disposed")

    def __enter__(self) -> CapabilityMatcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    # -- scoring -------------------------------------------------------------

    def score_agent(self, agent: Agent, task: Task) -> float:
        """Score an agent for a task in [0, 1]."""
        return self.score_agent_with_breakdown(agent, task).score

    def score_agent_with_breakdown(self, agent: Agent, task: Task) -> AgentScore:
        """Score an agent for a task and keep the sub-score breakdown.

        Args:
            agent: Candidate agent (not modified)
            task: Task to match (not modified)

        Returns:
            AgentScore with the clamped score and the unweighted breakdown
        """
        breakdown = self._calculate_breakdown(agent, task)
        weights = self._weights

        total = sum(getattr(breakdown, name) * getattr(weights, name) for name in _FACTORS)
        if not math.isfinite(total):
            total = 0.0
        score = max(0.0, min(1.0, total))

        logger.debug(
            "Agent {} scored {:.2f} for task {} {}",
            agent.id, score, task.id, breakdown.as_dict(),
        )
        return AgentScore(agent=agent, score=score, breakdown=breakdown)

    def rank_agents(self, agents: Iterable[Agent], task: Task) -> list[AgentScore]:
        """Score every agent, busy or not, best first. Ties keep input order."""
        scored = [self.score_agent_with_breakdown(agent, task) for agent in agents]
        return sorted(scored, key=lambda s: s.score, reverse=True)

    # -- selection -----------------------------------------------------------

    def find_best_agent(self, agents: Sequence[Agent], task: Task) -> Agent | None:
        """Pick the best idle agent, or None if none is idle or good enough."""
        return self.match(agents, task).agent

    def match(self, agents: Sequence[Agent], task: Task) -> MatchResult:
        """
        Select the best idle agent for a task and explain the decision.

        Only idle agents are candidates. The top candidate is rejected when its
        score is below ``min_score``.

        Returns:
            MatchResult with the chosen agent (or None and a ``reason`` of
            ``no_agents``, ``no_idle_agents`` or ``below_min_score``)
        """
        if not agents:
            return MatchResult(
                task_id=task.id,
                agent=None,
                score=0.0,
                breakdown=None,
                explanation="No agents available",
                reason="no_agents",
            )

        idle = [agent for agent in agents if agent.is_idle]
        if not idle:
            logger.warning("No idle agents available for task {}", task.id)
            return MatchResult(
                task_id=task.id,
                agent=None,
                score=0.0,
                breakdown=None,
                explanation="No idle agents available",
                reason="no_idle_agents",
            )

        ranked = self.rank_agents(idle, task)
        best = ranked[0]
        fallback = tuple(s.agent.id for s in ranked[1 : 1 + FALLBACK_CHAIN_LENGTH])

        min_score = self._min_score
        if best.score < min_score:
            logger.warning(
                "Best agent {} score {:.2f} below minimum threshold {} for task {}",
                best.agent.id, best.score, min_score, task.id,
            )
            return MatchResult(
                task_id=task.id,
                agent=None,
                score=best.score,
                breakdown=best.breakdown,
                explanation=(
                    f"Best agent {best.agent.id} scored {best.score:.2f}, "
                    f"below minimum {min_score:.2f}"
                ),
                reason="below_min_score",
                fallback_chain=fallback,
            )

        logger.info(
            "Best agent for task {}: {} (score: {:.2f})", task.id, best.agent.id, best.score
        )
        return MatchResult(
            task_id=task.id,
            agent=best.agent,
            score=best.score,
            breakdown=best.breakdown,
            explanation=self._explain(best.agent, best.breakdown),
            fallback_chain=fallback,
        )

    # -- custom agent threshold ---------------------------------------------

    def get_best_agent_score(self, agents: Sequence[Agent], task: Task) -> float:
        """Highest score among idle agents, 0 if there are none."""
        idle = [agent for agent in agents if agent.is_idle]
        if not idle:
            return 0.0
        return max(self.score_agent(agent, task) for agent in idle)

    def should_create_custom_agent(self, agents: Sequence[Agent], task: Task) -> bool:
        """True when idle agents exist but none reaches the custom agent threshold."""
        if not any(agent.is_idle for agent in agents):
            logger.info(
                "Custom agent creation deferred for task {} - no idle agents available",
                task.id,
            )
            return False

        best_score = self.get_best_agent_score(agents, task)
        threshold = self._custom_agent_threshold
        should_create = best_score < threshold
        if should_create:
            logger.info(
                "Custom agent creation triggered for task {}. Best score: {:.2f}, threshold: {}",
                task.id, best_score, threshold,
            )
        return should_create

    @staticmethod
    def get_threshold_explanation(best_score: float, threshold: float) -> str:
        return (
            f"Best available agent scored {best_score * 100:.1f}% ({best_score:.2f}), "
            f"which is below the custom agent threshold of {threshold * 100:.1f}% "
            f"({threshold:.2f}). A specialized custom agent will be created."
        )

    # -- explanation ---------------------------------------------------------

    def get_match_explanation(self, agent: Agent, task: Task) -> str:
        """Human-readable summary of how an agent fits a task."""
        if agent.template is None:
            return "Agent has no template information"
        return self._explain(agent, self._calculate_breakdown(agent, task))

    @staticmethod
    def _explain(agent: Agent, breakdown: ScoreBreakdown) -> str:
        if agent.template is None:
            return "Agent has no template information"

        parts: list[str] = []
        capability_pct = f"{breakdown.capability_match * 100:.0f}%"
        if breakdown.capability_match > 0.7:
            parts.append(f"Strong capability match ({capability_pct})")
        elif breakdown.capability_match > 0.3:
            parts.append(f"Moderate capability match ({capability_pct})")
        else:
            parts.append(f"Weak capability match ({capability_pct})")

        if breakdown.specialization_match > 0.5:
            parts.append("Good specialization match")

        if breakdown.type_match >= 1.0:
            parts.append("Perfect type compatibility")
        elif breakdown.type_match <= 0:
            parts.append("Type mismatch")

        if breakdown.workload_factor == 1.0:
            parts.append("Agent is idle")
        else:
            parts.append("Agent is busy")

        return ", ".join(parts)

    # -- weights -------------------------------------------------------------

    def get_weights(self) -> MatchWeights:
        """Current weights. The snapshot is immutable; use ``update_weights`` to change."""
        return self._weights

    def update_weights(self, weights: Mapping[str, float] | None = None, **kwargs: float) -> None:
        """Merge any subset of the five weights; the rest are left unchanged.

        Names may be snake_case (``type_match``) or camelCase (``typeMatch``).

        Raises:
            ValueError: An unknown weight name or a non-numeric/non-finite
                value was given. No weight changes in that case.
        """
        changes: dict[str, float] = {}
        for key, value in {**(weights or {}), **kwargs}.items():
            name = WEIGHT_ALIASES.get(key, key)
            if name not in _FACTORS:
                raise ValueError(
                    f"Unknown weight '{key}' (available: {', '.join(_FACTORS)})"
                )
            if not _is_number(value):
                raise ValueError(f"Weight '{key}' must be a finite number, got {value!r}")
            changes[name] = float(value)

        self._weights = replace(self._weights, **changes)
        logger.info("CapabilityMatcher weights updated {}", self._weights.as_dict())

    @property
    def min_score(self) -> float:
        return self._min_score

    @property
    def custom_agent_threshold(self) -> float:
        return self._custom_agent_threshold

    # -- sub-scores ----------------------------------------------------------

    def calculate_capability_match(
        self,
        agent_capabilities: Iterable[str] | None,
        required_capabilities: Iterable[str] | None,
    ) -> float:
        """Fraction of required capabilities the agent covers, directly or by synonym.

        Returns 1.0 when nothing is required and -0.2 when nothing required is covered.
        """
        agent_caps = _normalize_terms(agent_capabilities)
        required = _normalize_terms(required_capabilities)
        if not required:
            return 1.0

        matched = sum(1 for capability in required if self._has_capability(agent_caps, capability))
        if matched == 0:
            return NO_CAPABILITY_PENALTY
        return matched / len(required)

    calculate_match_score = calculate_capability_match

    def _has_capability(self, agent_capabilities: list[str], required: str) -> bool:
        if required in agent_capabilities:
            return True
        synonyms = self._synonyms.get(required)
        if synonyms is None:
            return False
        return any(capability in synonyms for capability in agent_capabilities)

    @staticmethod
    def _specialization_match(specialization: Any, description: Any, tags: Any) -> float:
        if not isinstance(specialization, str) or not specialization:
            return 0.0

        terms = [t for t in _SPECIALIZATION_SPLIT.split(specialization.lower()) if t]
        description_words = set(description.lower().split()) if isinstance(description, str) else set()
        tag_words = {tag for tag in _normalize_terms(tags) if tag}

        matched = sum(1 for term in terms if term in description_words or term in tag_words)
        fraction = matched / len(terms) if terms else 0.0
        if fraction < WEAK_SPECIALIZATION_CUTOFF:
            return WEAK_SPECIALIZATION_PENALTY
        return fraction

    def _type_match(self, agent_type: Any, task: Task) -> float:
        if not isinstance(agent_type, str) or not agent_type:
            return 0.0

        description = task.description if isinstance(task.description, str) else ""
        text = f"{description} {' '.join(_normalize_terms(task.tags))}".lower()
        task_type = infer_task_type(text)
        if task_type is None:
            return 0.0

        compatible = self._type_compatibility.get(agent_type.lower(), frozenset())
        return 1.0 if task_type in compatible else TYPE_MISMATCH_PENALTY

    @staticmethod
    def _workload_factor(agent: Agent) -> float:
        return 1.0 if not agent.current_task else BUSY_WORKLOAD

    @staticmethod
    def _performance_factor(agent: Agent) -> float:
        completed = agent.tasks_completed or 0
        if completed == 0:
            return NEW_AGENT_PERFORMANCE
        return min(1.0, completed / PERFORMANCE_SATURATION)

    def _calculate_breakdown(self, agent: Agent, task: Task) -> ScoreBreakdown:
        template = agent.template
        if template is None:
            return ScoreBreakdown()

        raw = {
            "capability_match": self.calculate_capability_match(
                template.capabilities, task.required_capabilities
            ),
            "specialization_match": self._specialization_match(
                template.specialization, task.description, task.tags
            ),
            "type_match": self._type_match(template.type, task),
            "workload_factor": self._workload_factor(agent),
            "performance_factor": self._performance_factor(agent),
        }
        return ScoreBreakdown(
            **{name: value if _is_number(value) else 0.0 for name, value in raw.items()}
        )

    # -- configuration -------------------------------------------------------

    def _on_config_change(self, change: ConfigChange) -> None:
        if (
            change.affects(WEIGHTS_SECTION)
            or change.affects(MIN_SCORE_KEY)
            or change.affects(CUSTOM_AGENT_THRESHOLD_KEY)
        ):
            self._load_from_config()

    def _load_from_config(self) -> None:
        config = self._config
        if config is None:
            return

        changes: dict[str, float] = {}
        for wire_name, name in WEIGHT_ALIASES.items():
            key = f"{WEIGHTS_SECTION}.{wire_name}"
            value = config.get(key)
            if value is None:
                continue
            if _is_number(value):
                changes[name] = float(value)
            else:
                logger.warning("Ignoring non-numeric {}: {!r}", key, value)
        self._weights = replace(self._weights, **changes)

        min_score = config.get(MIN_SCORE_KEY)
        if min_score is None:
            self._min_score = self._default_min_score
        elif _is_number(min_score):
            self._min_score = float(min_score)
        else:
            logger.warning("Ignoring non-numeric {}: {!r}", MIN_SCORE_KEY, min_score)

        raw = config.get(CUSTOM_AGENT_THRESHOLD_KEY, self._custom_agent_threshold)
        threshold = (
            min(1.0, max(0.0, float(raw))) if _is_number(raw) else DEFAULT_CUSTOM_AGENT_THRESHOLD
        )
        if threshold != raw:
            logger.warning(
                "Adjusted customAgentThreshold from {!r} to {}", raw, threshold
            )
        self._custom_agent_threshold = threshold

        logger.info(
            "CapabilityMatcher weights and threshold loaded from configuration {}",
            {
                "weights": self._weights.as_dict(),
                "minScore": self._min_score,
                "customAgentThreshold": self._custom_agent_threshold,
            },
        )
