"""Portfolio Critic CLI Entry Point.

Command-line presentation surface: triggers a critique and prints the
resulting session state, or shows the resume content that gets sent.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import structlog
import typer

from portfolio_critic.content.prompts import SYSTEM_INSTRUCTION, build_user_query
from portfolio_critic.content.resume import DEFAULT_RESUME, load_resume
from portfolio_critic.core.config import LoggingConfig, get_settings
from portfolio_critic.core.exceptions import ConfigurationError
from portfolio_critic.critique.controller import CritiqueController
from portfolio_critic.critique.render import describe_state
from portfolio_critic.critique.session import CritiquePhase


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    # Resolve sys.stderr per call so redirected streams are honoured
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(cfg: Optional[LoggingConfig] = None) -> None:
    """Configure structlog from the logging settings.

    Logs go to stderr so critique output on stdout stays clean.
    """
    cfg = cfg or LoggingConfig()
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if cfg.format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, cfg.level)),
        logger_factory=_stderr_logger_factory,
    )


configure_logging()
log = structlog.get_logger()

app = typer.Typer(
    name="portfolio-critic",
    help="Portfolio Critic - AI critique for a static resume portfolio",
    no_args_is_help=True,
)


def load_config_callback(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to configuration file", is_eager=True),
) -> Optional[Path]:
    """Load configuration file if provided."""
    if config:
        if not config.exists():
            typer.echo(f"Error: Config file '{config}' not found", err=True)
            raise typer.Exit(code=1)

        try:
            get_settings(force_reload=True, system_config_path=config)
            log.info("config_loaded", path=str(config))
        except ConfigurationError as e:
            typer.echo(f"Error loading config: {e}", err=True)
            raise typer.Exit(code=1)

    try:
        configure_logging(get_settings().logging)
    except ConfigurationError as e:
        typer.echo(f"Error loading config: {e}", err=True)
        raise typer.Exit(code=1)
    return config


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        callback=load_config_callback,
        is_eager=True,
        help="Path to global configuration file",
    ),
) -> None:
    """Portfolio Critic CLI."""
    pass


async def _run_critique(as_html: bool) -> tuple[CritiquePhase, str]:
    settings = get_settings()
    async with CritiqueController.from_settings(settings) as controller:
        await controller.trigger_critique()
    state = controller.state
    return state.phase, describe_state(state, as_html=as_html)


@app.command()
def critique(
    as_html: bool = typer.Option(False, "--html", help="Render the critique as an HTML fragment"),
) -> None:
    """Request an AI critique of the portfolio and print it."""
    try:
        phase, output = asyncio.run(_run_critique(as_html))
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if phase is CritiquePhase.FAILED:
        typer.echo(output, err=True)
        raise typer.Exit(code=1)

    typer.echo(output)


@app.command()
def resume(
    system: bool = typer.Option(False, "--system", help="Also print the system instruction"),
    tags: bool = typer.Option(False, "--tags", help="Also print the skill tags"),
) -> None:
    """Show the resume content that is sent for critique."""
    settings = get_settings()
    try:
        content = load_resume(Path(settings.resume_path)) if settings.resume_path else DEFAULT_RESUME
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if system:
        typer.echo(SYSTEM_INSTRUCTION)
        typer.echo("")
    typer.echo(build_user_query(content))

    if tags and content.skill_tags:
        typer.echo("")
        typer.echo(f"Skill tags: {content.tags_line()}")


if __name__ == "__main__":
    app()
