"""
Tests for the Currency Signal Pipeline.

============================================================
PURPOSE
============================================================
1. Stages run in order: collect, score strength, rank power
2. A crashing stage is recorded and later stages still run
3. Reports serialize and land in the cycle history

============================================================
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from core.clock import FixedClock
from event_sources.config import CollectionConfig
from event_sources.models import CollectionResult, SourceMetadata
from event_sources.orchestrator import CollectionOrchestrator
from normalization.models import CanonicalEconomicEvent, Impact, Sentiment
from orchestrator.models import PipelineReport, PipelineStage, StageResult
from orchestrator.pipeline import CurrencySignalPipeline, CycleHistory
from scoring_engine.power_score import PowerRankingEngine


# ============================================================
# FIXTURES
# ============================================================

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_event(currency, sentiment=Sentiment.BULLISH, score=80.0):
    return CanonicalEconomicEvent(
        currency=currency,
        event_type="INTEREST_RATE_DECISION",
        title=f"{currency} Rate Decision",
        event_date=NOW,
        impact=Impact.HIGH,
        sentiment=sentiment,
        confidence_score=90.0,
        source="Forex Factory",
        sentiment_score=score,
    )


def make_source(name, events=None, error=None):
    source = MagicMock()
    source.metadata = SourceMetadata(name=name, display_name=name.title())
    if error is not None:
        source.collect = AsyncMock(side_effect=error)
    else:
        source.collect = AsyncMock(
            return_value=CollectionResult(source=name, success=True, events=list(events or []))
        )
    source.close = AsyncMock()
    source.get_stats = MagicMock(return_value={})
    return source


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def orchestrator(clock):
    config = CollectionConfig(currencies=["USD", "EUR", "JPY"])
    return CollectionOrchestrator(config=config, clock=clock)


@pytest.fixture
def pipeline(orchestrator, clock):
    return CurrencySignalPipeline(orchestrator, clock=clock)


# ============================================================
# CYCLE TESTS
# ============================================================

class TestRunCycle:

    @pytest.mark.asyncio
    async def test_full_cycle(self, pipeline, orchestrator):
        orchestrator.register(make_source("calendar", [
            make_event("USD", score=80.0),
            make_event("EUR", Sentiment.BEARISH, score=20.0),
        ]))
        orchestrator.register(make_source("broken", error=RuntimeError("down")))

        report = await pipeline.run_cycle()

        assert report.success is True
        assert [r.stage for r in report.stage_results] == PipelineStage.get_ordered_stages()
        assert report.event_count == 2
        assert report.batch.failed_sources == ["broken"]

        assert [r.currency for r in report.strength] == ["USD", "EUR", "JPY"]
        usd, eur, jpy = report.strength
        assert usd.sentiment is Sentiment.BULLISH
        assert eur.sentiment is Sentiment.BEARISH
        assert jpy.strength_score == 50.0

        assert report.power[0].currency == "USD"
        assert {s.currency for s in report.power} == {"USD", "EUR", "JPY"}
        assert report.stage_results[2].context["leader"] == "USD"
        assert report.completed_at == NOW

    @pytest.mark.asyncio
    async def test_empty_collection_still_scores(self, pipeline):
        report = await pipeline.run_cycle()

        assert report.success is True
        assert report.event_count == 0
        assert all(r.strength_score == 50.0 for r in report.strength)
        assert all(s.total_score == 50 for s in report.power)

    @pytest.mark.asyncio
    async def test_stage_crash_recorded_and_later_stages_run(self, orchestrator, clock):
        engine = MagicMock(spec=PowerRankingEngine)
        engine.rank.side_effect = ValueError("bad ranking")
        pipeline = CurrencySignalPipeline(orchestrator, power_engine=engine, clock=clock)
        orchestrator.register(make_source("calendar", [make_event("USD")]))

        report = await pipeline.run_cycle()

        assert report.success is False
        failed = report.stage_results[-1]
        assert failed.stage is PipelineStage.RANK_POWER
        assert failed.error == "bad ranking"
        assert failed.error_type == "ValueError"
        assert len(report.strength) == 3
        assert report.power == []

    @pytest.mark.asyncio
    async def test_collect_crash_leaves_neutral_scores(self, orchestrator, clock):
        orchestrator.collect_all = AsyncMock(side_effect=RuntimeError("fan-out broke"))
        pipeline = CurrencySignalPipeline(orchestrator, clock=clock)

        report = await pipeline.run_cycle()

        assert report.stage_results[0].success is False
        assert report.stage_results[1].success is True
        assert report.batch is None
        assert [r.strength_score for r in report.strength] == [50.0, 50.0, 50.0]

    @pytest.mark.asyncio
    async def test_source_filter_passed_through(self, pipeline, orchestrator):
        orchestrator.register(make_source("a", [make_event("USD")]))
        orchestrator.register(make_source("b", [make_event("EUR")]))

        report = await pipeline.run_cycle(["b"])

        assert [e.currency for e in report.batch.events] == ["EUR"]

    @pytest.mark.asyncio
    async def test_report_to_dict_and_history(self, pipeline, orchestrator):
        orchestrator.register(make_source("calendar", [make_event("USD")]))

        report = await pipeline.run_cycle()
        data = report.to_dict()

        assert data["success"] is True
        assert data["event_count"] == 1
        assert set(data["timings_ms"]) == {"collect", "score_strength", "rank_power"}
        assert data["collection"] is not None
        assert data["strength"][0]["currency"] == "USD"
        assert data["stage_results"][0]["stage"] == "collect"
        assert pipeline.history.get_last() is report

    @pytest.mark.asyncio
    async def test_close(self, pipeline, orchestrator):
        source = make_source("a")
        orchestrator.register(source)

        await pipeline.close()

        source.close.assert_awaited_once()


# ============================================================
# HISTORY TESTS
# ============================================================

def make_report(success=True):
    report = PipelineReport(cycle_id="c", started_at=NOW)
    report.add_stage_result(StageResult(
        stage=PipelineStage.COLLECT,
        success=success,
        started_at=NOW,
        completed_at=NOW,
        duration_ms=1.0,
    ))
    return report


class TestCycleHistory:

    def test_empty(self):
        stats = CycleHistory().get_statistics()
        assert stats["total_cycles"] == 0
        assert CycleHistory().get_last() is None

    def test_bounded(self):
        history = CycleHistory(max_size=3)
        for _ in range(5):
            history.add(make_report())

        assert len(history.get_recent(10)) == 3

    def test_statistics(self):
        history = CycleHistory()
        history.add(make_report())
        history.add(make_report(success=False))

        stats = history.get_statistics()
        assert stats["total_cycles"] == 2
        assert stats["successful_cycles"] == 1
        assert stats["failed_cycles"] == 1
        assert stats["success_rate"] == 0.5
        assert stats["last_cycle_time"] == NOW.isoformat()
