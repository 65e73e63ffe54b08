"""
Command-line interface for tc-personalization.

Computes personalization profiles, aggregates analysis passes, runs
multi-pass document analysis, and manages stored profiles.

Usage:
    tc-personalization compute-profile quiz.json
    tc-personalization aggregate passes.json --profile profile.json
    tc-personalization analyze terms.txt --quiz quiz.json --passes 3
    tc-personalization init-db
    tc-personalization submit USER_ID quiz.json
    tc-personalization insights USER_ID
    tc-personalization recompute-stale
    tc-personalization stats
    tc-personalization serve-metrics --port 9100
    tc-personalization health

JSON results go to stdout; logs go to stderr.
"""

import asyncio
import json
import sys
from typing import Any

import click
from pydantic import ValidationError as PydanticValidationError

from src.analysis.schemas import AnalysisPass, InsufficientDataError
from src.observability.logging import bind_context, clear_context, get_logger, setup_logging
from src.observability.metrics import get_metrics
from src.personalization.computer import compute_profile
from src.personalization.errors import ProfileNotFoundError, ValidationError
from src.personalization.insights import build_insights
from src.personalization.schemas import ComputedProfile, ProfileRecord
from src.personalization.validation import parse_response


def _load_json(stream: Any) -> Any:
    try:
        return json.load(stream)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{stream.name}: invalid JSON ({e})") from e


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _record_to_dict(record: ProfileRecord) -> dict[str, Any]:
    return {
        "userId": record.user_id,
        "profile": record.profile.to_record(),
        "updatedAt": record.updated_at.isoformat(),
    }


async def _authorize(user_id: str, token: str | None) -> None:
    """Ensure the credential belongs to ``user_id`` (no-op in dev mode)."""
    from src.auth.identity import AuthenticationError, StaticTokenVerifier

    identity = await StaticTokenVerifier().verify_credential(token)
    if identity.provider != "dev-mode" and identity.user_id != user_id:
        raise AuthenticationError(f"Credential does not belong to {user_id!r}")


def _parse_passes(data: Any) -> list[AnalysisPass]:
    """Accept a list of passes or an object with a ``passes`` list."""
    if isinstance(data, dict):
        data = data.get("passes")
    if not isinstance(data, list):
        raise click.ClickException("Expected a JSON list of analysis passes")
    try:
        return [
            AnalysisPass.from_dict(item, pass_id=f"pass-{i}")
            for i, item in enumerate(data, start=1)
        ]
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise click.ClickException(f"Invalid analysis pass: {e}") from e


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """T&C personalization - profile computation and multi-pass risk analysis."""
    setup_logging("DEBUG" if debug else None)
    clear_context()
    bind_context(command=ctx.invoked_subcommand)


@main.command("compute-profile")
@click.argument("quiz", type=click.File("r"))
@click.option("--insights", "with_insights", is_flag=True, help="Include dashboard insights")
def compute_profile_cmd(quiz: Any, with_insights: bool) -> None:
    """Compute a profile from a quiz response (use - for stdin).

    Example:
        tc-personalization compute-profile quiz.json --insights
    """
    raw = _load_json(quiz)
    try:
        response = parse_response(raw)
    except ValidationError as e:
        raise click.ClickException(f"Invalid quiz response: {e}") from e

    profile = compute_profile(response)
    output: dict[str, Any] = profile.to_record()
    if with_insights:
        output = {"profile": output, "insights": build_insights(response, profile)}
    _echo_json(output)


@main.command()
@click.argument("passes", type=click.File("r"))
@click.option(
    "--profile",
    "profile_file",
    type=click.File("r"),
    help="Computed profile JSON for personalized alerts",
)
def aggregate(passes: Any, profile_file: Any | None) -> None:
    """Aggregate analysis passes into one result.

    Example:
        tc-personalization aggregate passes.json --profile profile.json
    """
    from src.analysis.aggregator import aggregate_analysis

    parsed = _parse_passes(_load_json(passes))

    profile = None
    if profile_file is not None:
        try:
            profile = ComputedProfile.model_validate(_load_json(profile_file))
        except PydanticValidationError as e:
            raise click.ClickException(f"Invalid computed profile: {e}") from e

    try:
        result = aggregate_analysis(parsed, profile)
    except InsufficientDataError as e:
        raise click.ClickException(f"Analysis unavailable: {e}") from e
    _echo_json(result.to_dict())


@main.command()
@click.argument("document", type=click.File("r"))
@click.option("--quiz", type=click.File("r"), help="Quiz response JSON to personalize with")
@click.option("--passes", "pass_count", type=click.IntRange(1, 10), help="Number of passes")
@click.option(
    "--provider",
    type=click.Choice(["openai", "anthropic"]),
    help="LLM provider (defaults to ANALYSIS_LLM_PROVIDER)",
)
def analyze(document: Any, quiz: Any | None, pass_count: int | None, provider: str | None) -> None:
    """Run a multi-pass AI analysis of a terms document.

    Example:
        tc-personalization analyze terms.txt --quiz quiz.json --passes 3
    """
    from src.analysis.config import AnalysisConfig
    from src.analysis.driver import MultiPassDriver
    from src.analysis.llm_client import LLMPassClient

    text = document.read()
    if not text.strip():
        raise click.ClickException("Document is empty")

    profile = None
    if quiz is not None:
        try:
            profile = compute_profile(_load_json(quiz))
        except ValidationError as e:
            raise click.ClickException(f"Invalid quiz response: {e}") from e

    config = AnalysisConfig()
    if provider:
        config = config.model_copy(update={"llm_provider": provider})

    async def run() -> dict[str, Any]:
        client = LLMPassClient(config)
        try:
            driver = MultiPassDriver(client, config=config)
            result = await driver.analyze(text, profile=profile, pass_count=pass_count)
            return result.to_dict()
        finally:
            await client.close()

    try:
        _echo_json(asyncio.run(run()))
    except InsufficientDataError as e:
        raise click.ClickException(f"Analysis unavailable: {e}") from e


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from src.personalization.repository import PostgresProfileRepository
    from src.storage.database import Database

    async def run():
        async with Database() as db:
            await PostgresProfileRepository(db).create_table()

    asyncio.run(run())
    click.echo("Database initialized successfully")


@main.command()
@click.argument("user_id")
@click.argument("quiz", type=click.File("r"))
@click.option("--token", envvar="TC_AUTH_TOKEN", help="Credential of the profile owner")
def submit(user_id: str, quiz: Any, token: str | None) -> None:
    """Validate, compute and store a user's quiz response."""
    from src.auth.identity import AuthenticationError
    from src.personalization.repository import PostgresProfileRepository
    from src.personalization.service import PersonalizationService
    from src.storage.database import Database

    bind_context(user_id=user_id)
    raw = _load_json(quiz)

    async def run() -> ProfileRecord:
        await _authorize(user_id, token)
        async with Database() as db:
            service = PersonalizationService(PostgresProfileRepository(db))
            return await service.submit(user_id, raw)

    try:
        record = asyncio.run(run())
    except AuthenticationError as e:
        raise click.ClickException(f"Not authorized: {e}") from e
    except ValidationError as e:
        raise click.ClickException(f"Invalid quiz response: {e}") from e
    _echo_json(_record_to_dict(record))


@main.command()
@click.argument("user_id")
@click.option("--token", envvar="TC_AUTH_TOKEN", help="Credential of the profile owner")
def insights(user_id: str, token: str | None) -> None:
    """Show dashboard insights for a stored profile."""
    from src.auth.identity import AuthenticationError
    from src.personalization.repository import PostgresProfileRepository
    from src.personalization.service import PersonalizationService
    from src.storage.database import Database

    bind_context(user_id=user_id)

    async def run() -> dict[str, Any]:
        await _authorize(user_id, token)
        async with Database() as db:
            service = PersonalizationService(PostgresProfileRepository(db))
            return await service.insights(user_id)

    try:
        _echo_json(asyncio.run(run()))
    except AuthenticationError as e:
        raise click.ClickException(f"Not authorized: {e}") from e
    except ProfileNotFoundError as e:
        raise click.ClickException(str(e)) from e


@main.command("recompute-stale")
def recompute_stale() -> None:
    """Recompute stored profiles computed under an older rule set."""
    from src.personalization.repository import PostgresProfileRepository
    from src.personalization.service import PersonalizationService
    from src.storage.database import Database

    async def run() -> int:
        async with Database() as db:
            service = PersonalizationService(PostgresProfileRepository(db))
            return await service.recompute_stale()

    count = asyncio.run(run())
    click.echo(f"Recomputed {count} stale profile(s)")


@main.command()
def stats() -> None:
    """Show stored profile counts per computation version."""
    from src.personalization.repository import PostgresProfileRepository
    from src.personalization.weights import COMPUTATION_VERSION
    from src.storage.database import Database

    async def run() -> dict[str, int]:
        async with Database() as db:
            return await PostgresProfileRepository(db).count_by_version()

    counts = asyncio.run(run())
    click.echo(f"Stored profiles: {sum(counts.values())}")
    for version, count in sorted(counts.items()):
        marker = "" if version == COMPUTATION_VERSION else "  (stale)"
        click.echo(f"  v{version}: {count}{marker}")


@main.command("serve-metrics")
@click.option("--port", type=int, help="Metrics port (defaults to METRICS_PORT)")
def serve_metrics(port: int | None) -> None:
    """Expose Prometheus metrics until interrupted."""
    get_metrics().start_server(port)

    async def run():
        await asyncio.Event().wait()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("Metrics server stopped")


@main.command()
def health() -> None:
    """Check database connectivity."""
    import asyncpg

    from src.storage.database import Database

    logger = get_logger(__name__)

    async def check() -> bool:
        db = Database()
        try:
            await db.connect()
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("Postgres connection failed", error=str(e))
            return False
        try:
            return await db.health_check()
        finally:
            await db.close()

    healthy = asyncio.run(check())
    icon, color = ("✓", "green") if healthy else ("✗", "red")
    click.echo(click.style(f"  {icon} postgres: {healthy}", fg=color))
    sys.exit(0 if healthy else 1)


if __name__ == "__main__":
    main()
