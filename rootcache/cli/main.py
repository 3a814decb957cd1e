"""Command-line interface for rootcache store maintenance."""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import click
from pydantic import BaseModel

from rootcache import __version__
from rootcache.core.config import (
    load_feedback_config,
    load_lifecycle_config,
    load_quality_config,
    settings,
)
from rootcache.core.models import FeedbackKind
from rootcache.feedback.models import FeedbackResult
from rootcache.feedback.processor import FeedbackProcessor
from rootcache.observability.logging import configure_logging
from rootcache.quality.lifecycle import LifecycleManager
from rootcache.quality.models import PruneResult, QualityMetrics, RecordEvaluation
from rootcache.quality.scorer import QualityScorer
from rootcache.store.base import RecordStore
from rootcache.store.factory import create_record_store

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _with_store(operation: Callable[[RecordStore], Awaitable[T]]) -> T:
    """Build the configured store, run ``operation`` and close the store.

    Any failure is reported on stderr and exits with status 1.
    """

    async def execute() -> T:
        store = await create_record_store(settings)
        try:
            return await operation(store)
        finally:
            await store.close()

    try:
        return asyncio.run(execute())
    except Exception as e:
        logger.error(f"Error: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _lifecycle_manager(store: RecordStore) -> LifecycleManager:
    return LifecycleManager(
        store,
        config=load_lifecycle_config(),
        scorer=QualityScorer(load_quality_config()),
    )


def _echo_json(payload: BaseModel | Sequence[BaseModel]) -> None:
    if isinstance(payload, BaseModel):
        data = payload.model_dump(mode="json")
    else:
        data = [item.model_dump(mode="json") for item in payload]
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level.lower(),
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
    show_default=True,
)
def cli(log_level: str) -> None:
    """rootcache - analysis result caching and record maintenance."""
    configure_logging(level=log_level, stream=sys.stderr, force=True)


@cli.command()
@click.option(
    "--mode",
    type=click.Choice(["all", "low-quality", "expired"]),
    default="all",
    help="Which records to prune",
    show_default=True,
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def prune(mode: str, output_json: bool) -> None:
    """Delete low-quality and/or expired analysis records."""

    async def operation(store: RecordStore) -> PruneResult:
        manager = _lifecycle_manager(store)
        if mode == "low-quality":
            return await manager.prune_low_quality()
        if mode == "expired":
            return await manager.prune_expired()
        return await manager.prune_all()

    result = _with_store(operation)

    if output_json:
        _echo_json(result)
        return

    click.echo(f"Scanned: {result.total_scanned}")
    click.echo(f"Removed (low quality): {result.removed_low_quality}")
    click.echo(f"Removed (expired): {result.removed_expired}")
    click.echo(f"Retained: {result.retained}")
    if result.failed:
        click.echo(f"Failed deletes: {result.failed}")
    click.echo(f"Duration: {result.duration_seconds:.2f}s")


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def metrics(output_json: bool) -> None:
    """Show aggregate quality metrics for stored records."""

    async def operation(store: RecordStore) -> QualityMetrics:
        return await _lifecycle_manager(store).get_quality_metrics()

    result = _with_store(operation)

    if output_json:
        _echo_json(result)
        return

    click.echo(f"Total records: {result.total_records}")
    click.echo(f"Above threshold: {result.above_threshold}")
    click.echo(f"Below threshold: {result.below_threshold}")
    click.echo(f"Validated: {result.validated}")
    click.echo(f"Old: {result.old_records}")
    click.echo(f"Average quality: {result.average_quality:.3f}")
    click.echo(f"Median quality: {result.median_quality:.3f}")
    click.echo("\nDistribution:")
    for bucket, count in result.distribution.model_dump().items():
        click.echo(f"  {bucket}: {count}")


@cli.command()
@click.option("--limit", type=int, default=20, help="Maximum rows", show_default=True)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def attention(limit: int, output_json: bool) -> None:
    """List records that are low quality, expired or close to expiring."""

    async def operation(store: RecordStore) -> list[RecordEvaluation]:
        return await _lifecycle_manager(store).get_records_needing_attention(limit)

    evaluations = _with_store(operation)

    if output_json:
        _echo_json(evaluations)
        return

    if not evaluations:
        click.echo("No records need attention")
        return

    for evaluation in evaluations:
        age_days = evaluation.age_seconds / 86400
        click.echo(
            f"{evaluation.record_id}  quality={evaluation.quality:.2f}  "
            f"age={age_days:.0f}d  {evaluation.recommendation.value}"
        )


@cli.command()
def recalculate() -> None:
    """Rescore every record and persist scores that drifted."""

    async def operation(store: RecordStore) -> int:
        return await _lifecycle_manager(store).recalculate_all_quality_scores()

    updated = _with_store(operation)
    click.echo(f"Updated {updated} records")


@cli.command()
@click.argument("record_id")
@click.argument("kind", type=click.Choice([kind.value for kind in FeedbackKind]))
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def feedback(record_id: str, kind: str, output_json: bool) -> None:
    """Apply positive or negative feedback to a record."""

    async def operation(store: RecordStore) -> FeedbackResult:
        processor = FeedbackProcessor(store, config=load_feedback_config())
        return await processor.handle_feedback(record_id, kind)

    result = _with_store(operation)

    if output_json:
        _echo_json(result)
        return

    click.echo(result.message)
    click.echo(
        f"Quality: {result.previous_quality:.2f} -> {result.new_quality:.2f}"
    )


@cli.command()
def version() -> None:
    """Show version information."""
    click.echo(f"rootcache v{__version__}")


if __name__ == "__main__":
    cli()
