"""Unit tests for LifecycleManager."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from rootcache.core.exceptions import ConcurrentUpdateError, StoreError
from rootcache.observability.logging import LogEvents
from rootcache.quality.lifecycle import LifecycleManager
from rootcache.quality.models import LifecycleConfig, Recommendation


@pytest.fixture
def manager(store):
    return LifecycleManager(store)


async def _seed(store, *records):
    for record in records:
        await store.put(record)


class TestEvaluate:
    """Evaluation precedence."""

    def test_keep(self, manager, make_record):
        evaluation = manager.evaluate(make_record(quality_score=0.7))
        assert evaluation.recommendation is Recommendation.KEEP
        assert not evaluation.is_below_threshold
        assert not evaluation.is_expired

    def test_low_quality_unvalidated_is_pruned(self, manager, make_record):
        evaluation = manager.evaluate(make_record(quality_score=0.2))
        assert evaluation.recommendation is Recommendation.PRUNE

    def test_low_quality_validated_is_flagged(self, manager, make_record):
        evaluation = manager.evaluate(
            make_record(quality_score=0.2, user_validated=True)
        )
        assert evaluation.recommendation is Recommendation.FLAG

    def test_expired_wins_over_validation(self, manager, make_record, old_age_days):
        evaluation = manager.evaluate(
            make_record(age_days=old_age_days, quality_score=0.9, user_validated=True)
        )
        assert evaluation.is_expired
        assert evaluation.recommendation is Recommendation.PRUNE

    def test_threshold_is_exclusive(self, manager, make_record):
        evaluation = manager.evaluate(make_record(quality_score=0.3))
        assert not evaluation.is_below_threshold


class TestPruning:
    """prune_low_quality, prune_expired and prune_all."""

    async def test_prune_low_quality_spares_validated(
        self, manager, store, make_record
    ):
        low = make_record(quality_score=0.1)
        validated_low = make_record(quality_score=0.1, user_validated=True)
        good = make_record(quality_score=0.9)
        await _seed(store, low, validated_low, good)

        result = await manager.prune_low_quality()

        assert result.removed_low_quality == 1
        assert result.removed_expired == 0
        assert result.retained == 2
        assert result.total_scanned == 3
        assert await store.get_by_id(low.id) is None
        assert await store.get_by_id(validated_low.id) is not None

    async def test_prune_low_quality_ignores_age(
        self, manager, store, make_record, old_age_days
    ):
        await _seed(store, make_record(age_days=old_age_days, quality_score=0.9))

        result = await manager.prune_low_quality()

        assert result.total_removed == 0
        assert await store.count() == 1

    async def test_prune_expired_removes_validated(
        self, manager, store, make_record, old_age_days
    ):
        old = make_record(age_days=old_age_days, user_validated=True)
        fresh = make_record(quality_score=0.1)
        await _seed(store, old, fresh)

        result = await manager.prune_expired()

        assert result.removed_expired == 1
        assert result.removed_low_quality == 0
        assert await store.get_by_id(fresh.id) is not None

    async def test_prune_all_counts_expired_first(
        self, manager, store, make_record, old_age_days
    ):
        await _seed(
            store,
            make_record(age_days=old_age_days, quality_score=0.1),
            make_record(quality_score=0.1),
            make_record(quality_score=0.1, user_validated=True),
            make_record(quality_score=0.8),
        )

        result = await manager.prune_all()

        assert result.removed_expired == 1
        assert result.removed_low_quality == 1
        assert result.retained == 2
        assert result.total_removed == 2
        assert await store.count() == 2

    async def test_prune_all_logs_flagged_records(self, manager, store, make_record):
        validated = make_record(quality_score=0.1, user_validated=True)
        await _seed(store, validated)

        with patch("rootcache.quality.lifecycle.logger") as mock_logger:
            await manager.prune_all()

        mock_logger.info.assert_any_call(
            LogEvents.RECORD_FLAGGED, record_id=validated.id, quality=0.1
        )

    @pytest.mark.parametrize("operation", ["prune_low_quality", "prune_expired"])
    async def test_single_rule_prunes_do_not_flag(
        self, manager, store, make_record, operation
    ):
        await _seed(store, make_record(quality_score=0.1, user_validated=True))

        with patch("rootcache.quality.lifecycle.logger") as mock_logger:
            result = await getattr(manager, operation)()

        assert result.retained == 1
        events = [c.args[0] for c in mock_logger.info.call_args_list]
        assert LogEvents.RECORD_FLAGGED not in events
        assert LogEvents.RECORDS_PRUNED in events

    async def test_prune_empty_store(self, manager):
        result = await manager.prune_all()

        assert result.total_scanned == 0
        assert result.total_removed == 0

    async def test_enumeration_failure_is_fail_open(self, manager, store):
        store.list_records = AsyncMock(side_effect=StoreError("down", "scan"))

        result = await manager.prune_all()

        assert result.total_scanned == 0
        assert manager.get_prune_stats().enumeration_failures == 1

    async def test_failed_delete_is_counted(self, manager, store, make_record):
        low_a = make_record(quality_score=0.1)
        low_b = make_record(quality_score=0.1)
        await _seed(store, low_a, low_b)

        original_delete = store.delete

        async def flaky_delete(record_id):
            if record_id == low_a.id:
                raise StoreError("disk full", "delete", record_id)
            return await original_delete(record_id)

        store.delete = flaky_delete

        result = await manager.prune_low_quality()

        assert result.removed_low_quality == 1
        assert result.failed == 1
        assert result.retained == 1
        assert await store.get_by_id(low_a.id) is not None

    async def test_prune_stats_accumulate(self, manager, store, make_record):
        await _seed(store, make_record(quality_score=0.1))
        first = await manager.prune_all()

        await _seed(store, make_record(quality_score=0.1), make_record(quality_score=0.2))
        second = await manager.prune_all()

        stats = manager.get_prune_stats()
        assert stats.total_operations == 2
        assert stats.total_records_pruned == 3
        assert manager.last_prune_result is second
        assert first.total_removed == 1

    async def test_prune_result_serializes_total(self, manager, store, make_record):
        await _seed(store, make_record(quality_score=0.1))

        result = await manager.prune_all()

        assert result.model_dump()["total_removed"] == 1


class TestQualityMetrics:
    async def test_empty_store_is_all_zeros(self, manager):
        metrics = await manager.get_quality_metrics()

        assert metrics.total_records == 0
        assert metrics.average_quality == 0.0
        assert metrics.median_quality == 0.0
        assert metrics.distribution.excellent == 0

    async def test_aggregates(self, manager, store, make_record):
        await _seed(
            store,
            make_record(quality_score=0.9, user_validated=True),
            make_record(quality_score=0.7),
            make_record(quality_score=0.5, age_days=100),
            make_record(quality_score=0.1),
        )

        metrics = await manager.get_quality_metrics()

        assert metrics.total_records == 4
        assert metrics.above_threshold == 3
        assert metrics.below_threshold == 1
        assert metrics.validated == 1
        assert metrics.old_records == 1
        assert metrics.average_quality == pytest.approx(0.55)
        assert metrics.median_quality == pytest.approx(0.6)
        assert metrics.distribution.model_dump() == {
            "excellent": 1,
            "good": 1,
            "fair": 1,
            "poor": 1,
        }

    async def test_bucket_boundaries(self, manager, store, make_record):
        await _seed(
            store,
            make_record(quality_score=0.8),
            make_record(quality_score=0.6),
            make_record(quality_score=0.4),
        )

        distribution = (await manager.get_quality_metrics()).distribution

        assert (distribution.excellent, distribution.good, distribution.fair) == (1, 1, 1)


class TestRecordsNeedingAttention:
    async def test_selects_and_sorts_worst_first(
        self, manager, store, make_record, old_age_days
    ):
        nearly_expired = make_record(quality_score=0.6, age_days=120)
        expired = make_record(quality_score=0.9, age_days=old_age_days)
        low = make_record(quality_score=0.2)
        healthy = make_record(quality_score=0.8, age_days=10)
        await _seed(store, nearly_expired, expired, low, healthy)

        evaluations = await manager.get_records_needing_attention()

        assert [e.record_id for e in evaluations] == [
            low.id,
            nearly_expired.id,
            expired.id,
        ]

    async def test_limit(self, manager, store, make_record):
        await _seed(store, *(make_record(quality_score=0.1) for _ in range(5)))

        assert len(await manager.get_records_needing_attention(limit=2)) == 2


class TestRecalculation:
    async def test_updates_only_drifted_scores(self, manager, store, make_record):
        stale = make_record(confidence=0.7, quality_score=0.7, age_days=90)
        stable = make_record(confidence=0.7, quality_score=0.705)
        await _seed(store, stale, stable)

        updated = await manager.recalculate_all_quality_scores()

        assert updated == 1
        rescored = await store.get_by_id(stale.id)
        assert rescored.quality_score == pytest.approx(0.525, abs=1e-3)
        assert rescored.version == 2
        assert (await store.get_by_id(stable.id)).version == 1

    async def test_conflict_skips_record(self, manager, store, make_record):
        stale = make_record(confidence=0.7, quality_score=0.2)
        await _seed(store, stale)
        store.update = AsyncMock(
            side_effect=ConcurrentUpdateError(stale.id, 1, 2)
        )

        assert await manager.recalculate_all_quality_scores() == 0


class TestAutoPrune:
    async def test_start_and_stop(self, store, make_record):
        manager = LifecycleManager(store, LifecycleConfig(auto_prune_interval=0.01))
        await _seed(store, make_record(quality_score=0.1))

        task = manager.start_auto_prune()
        assert manager.start_auto_prune() is task

        await asyncio.sleep(0.08)
        manager.stop_auto_prune()

        assert not task.running
        assert await store.count() == 0
        assert manager.get_prune_stats().total_operations >= 1
        await manager.aclose()

    async def test_context_manager_honors_config(self, store):
        config = LifecycleConfig(auto_prune=True, auto_prune_interval=60)

        async with LifecycleManager(store, config) as manager:
            assert manager.auto_prune_task.running

        assert not manager.auto_prune_task.running

    async def test_context_manager_without_auto_prune(self, store):
        async with LifecycleManager(store) as manager:
            assert manager.auto_prune_task is None

    async def test_dispose_is_idempotent(self, manager):
        manager.dispose()
        manager.start_auto_prune()
        manager.dispose()
        manager.dispose()

        assert not manager.auto_prune_task.running
        await manager.aclose()
