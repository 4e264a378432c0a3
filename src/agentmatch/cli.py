"""CLI entry point for previewing agent/task matches."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from agentmatch import __version__
from agentmatch.config.settings import ConfigError, load_config
from agentmatch.loaders import load_agents, load_task
from agentmatch.logging_utils import configure_logging
from agentmatch.matching.matcher import CapabilityMatcher
from agentmatch.matching.models import Agent, Task

console = Console()

_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSON config file (default: ~/.agentmatch/config.json)",
)
_agents_argument = click.argument(
    "agents_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
_task_argument = click.argument(
    "task_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)


@click.group()
@click.version_option(version=__version__, prog_name="amatch")
@click.option(
    "--log-level",
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
def main(log_level: str) -> None:
    """Capability-based agent/task matching."""
    configure_logging(log_level)


def _get_matcher(config_path: Path | None) -> CapabilityMatcher:
    try:
        return CapabilityMatcher(load_config(config_path))
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _load_inputs(agents_file: Path, task_file: Path) -> tuple[list[Agent], Task]:
    try:
        return load_agents(agents_file), load_task(task_file)
    except (KeyError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc


@main.command()
def templates() -> None:
    """List built-in agent templates."""
    from agentmatch.matching.templates import list_templates

    table = Table(title="Agent Templates")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Type", style="green")
    table.add_column("Specialization")
    table.add_column("Capabilities")

    for key, template in list_templates():
        table.add_row(
            key,
            template.name,
            template.type,
            template.specialization,
            ", ".join(template.capabilities),
        )

    console.print(table)


@main.command()
@_agents_argument
@_task_argument
@_config_option
def rank(agents_file: Path, task_file: Path, config_path: Path | None) -> None:
    """Rank all agents for a task, busy ones included."""
    agents, task = _load_inputs(agents_file, task_file)
    with _get_matcher(config_path) as matcher:
        ranked = matcher.rank_agents(agents, task)

        table = Table(title=f"Ranking for {task.id}")
        table.add_column("#", justify="right")
        table.add_column("Agent", style="cyan")
        table.add_column("Status")
        table.add_column("Score", style="bold")
        table.add_column("Explanation")

        for position, entry in enumerate(ranked, start=1):
            table.add_row(
                str(position),
                entry.agent.id,
                entry.agent.status.value,
                f"{entry.score:.3f}",
                matcher.get_match_explanation(entry.agent, task),
            )

    if not ranked:
        console.print("[dim]No agents to rank.[/dim]")
        return
    console.print(table)


@main.command()
@_agents_argument
@_task_argument
@_config_option
@click.pass_context
def best(ctx: click.Context, agents_file: Path, task_file: Path, config_path: Path | None) -> None:
    """Select the best idle agent for a task (exit code 1 if none)."""
    agents, task = _load_inputs(agents_file, task_file)
    with _get_matcher(config_path) as matcher:
        result = matcher.match(agents, task)
        custom = matcher.should_create_custom_agent(agents, task) if agents else False
        threshold = matcher.custom_agent_threshold

    if result.agent is None:
        console.print(f"[yellow]No suitable agent[/yellow] for {task.id}: {result.explanation}")
        ctx.exit(1)

    console.print(f"[bold]Task:[/bold] {task.id}")
    console.print(f"[bold]Agent:[/bold] [green]{result.agent.id}[/green] (score: {result.score:.3f})")
    console.print(f"[bold]Why:[/bold] {result.explanation}")
    if result.fallback_chain:
        console.print(f"[bold]Fallbacks:[/bold] {', '.join(result.fallback_chain)}")
    if custom:
        console.print(
            f"[dim]{CapabilityMatcher.get_threshold_explanation(result.score, threshold)}[/dim]"
        )


@main.command()
@_agents_argument
@_task_argument
@click.option("--agent", "agent_id", required=True, help="Agent id to explain")
@_config_option
def explain(agents_file: Path, task_file: Path, agent_id: str, config_path: Path | None) -> None:
    """Show the score breakdown for one agent."""
    agents, task = _load_inputs(agents_file, task_file)
    agent = next((a for a in agents if a.id == agent_id), None)
    if agent is None:
        raise click.ClickException(f"Agent '{agent_id}' not found in {agents_file}")

    with _get_matcher(config_path) as matcher:
        scored = matcher.score_agent_with_breakdown(agent, task)
        explanation = matcher.get_match_explanation(agent, task)
        weights = matcher.get_weights().as_dict()

    table = Table(title=f"{agent.id} -> {task.id}")
    table.add_column("Factor", style="cyan")
    table.add_column("Sub-score", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Contribution", justify="right", style="bold")

    for name, value in scored.breakdown.as_dict().items():
        table.add_row(name, f"{value:.3f}", f"{weights[name]:.2f}", f"{value * weights[name]:+.3f}")

    console.print(table)
    console.print(f"[bold]Score:[/bold] {scored.score:.3f}")
    console.print(f"[bold]Why:[/bold] {explanation}")


@main.command()
@_config_option
def weights(config_path: Path | None) -> None:
    """Show effective scoring weights and thresholds."""
    with _get_matcher(config_path) as matcher:
        current = matcher.get_weights()
        min_score = matcher.min_score
        threshold = matcher.custom_agent_threshold

    table = Table(title="Scoring Weights")
    table.add_column("Factor", style="cyan")
    table.add_column("Weight", justify="right", style="green")
    for name, value in current.as_dict().items():
        table.add_row(name, f"{value:.2f}")

    console.print(table)
    console.print(f"Min score: {min_score:.2f} | Custom agent threshold: {threshold:.2f}")
