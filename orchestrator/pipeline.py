"""
Orchestrator - Signal Pipeline.

============================================================
RESPONSIBILITY
============================================================
Runs one signal cycle end to end:

    collect (+ normalize) -> strength -> power ranking

- Execute stages in strict order
- Track per-stage timing
- Source failures are data, not errors: an empty batch still
  produces neutral scores for every configured currency

============================================================
"""

import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from core.clock import ClockProtocol, get_clock
from event_sources.orchestrator import CollectionOrchestrator
from scoring_engine.power_score import PowerRankingEngine
from scoring_engine.strength_score import TieredStrengthAggregator

from .models import PipelineReport, PipelineStage, StageResult


logger = logging.getLogger(__name__)


StageHandler = Callable[[], Union[Dict[str, Any], Awaitable[Dict[str, Any]]]]


# ============================================================
# SIGNAL PIPELINE
# ============================================================

class CurrencySignalPipeline:
    """
    Collect -> score -> rank.

    Usage:
        pipeline = CurrencySignalPipeline(
            orchestrator=create_default_orchestrator(config),
            strength_aggregator=TieredStrengthAggregator(),
            power_engine=PowerRankingEngine(universe=config.currencies),
            currencies=config.currencies,
        )
        report = await pipeline.run_cycle()
    """

    def __init__(
        self,
        orchestrator: CollectionOrchestrator,
        strength_aggregator: Optional[TieredStrengthAggregator] = None,
        power_engine: Optional[PowerRankingEngine] = None,
        currencies: Optional[List[str]] = None,
        clock: Optional[ClockProtocol] = None,
        history_size: int = 100,
    ):
        self.orchestrator = orchestrator
        self._clock = clock or get_clock()
        self.currencies = list(currencies or orchestrator.config.currencies)
        self.strength_aggregator = strength_aggregator or TieredStrengthAggregator(clock=self._clock)
        self.power_engine = power_engine or PowerRankingEngine(
            universe=self.currencies,
            clock=self._clock,
        )
        self.history = CycleHistory(max_size=history_size)

    async def run_cycle(
        self,
        source_names: Optional[List[str]] = None,
    ) -> PipelineReport:
        """
        Execute one cycle.

        Never raises for source failures. A stage that crashes is
        recorded as failed and later stages run on what is available.
        """
        report = PipelineReport(
            cycle_id=str(uuid.uuid4()),
            started_at=self._clock.now(),
        )
        logger.info(f"Cycle {report.cycle_id[:8]} START")

        async def collect() -> Dict[str, Any]:
            report.batch = await self.orchestrator.collect_all(source_names)
            return {
                "events": len(report.batch.events),
                "simulated_events": len(report.batch.simulated_events),
                "succeeded_sources": report.batch.succeeded_sources,
                "failed_sources": report.batch.failed_sources,
            }

        def score_strength() -> Dict[str, Any]:
            events = report.batch.events if report.batch else []
            report.strength = self.strength_aggregator.calculate_all(events, self.currencies)
            return {"currencies": len(report.strength)}

        def rank_power() -> Dict[str, Any]:
            events = report.batch.events if report.batch else []
            report.power = self.power_engine.rank(events)
            return {
                "currencies": len(report.power),
                "leader": report.power[0].currency if report.power else None,
            }

        handlers: Dict[PipelineStage, StageHandler] = {
            PipelineStage.COLLECT: collect,
            PipelineStage.SCORE_STRENGTH: score_strength,
            PipelineStage.RANK_POWER: rank_power,
        }

        for stage in PipelineStage.get_ordered_stages():
            report.add_stage_result(await self._execute_stage(stage, handlers[stage]))

        report.completed_at = self._clock.now()
        self.history.add(report)

        logger.info(
            f"Cycle {report.cycle_id[:8]} COMPLETE: {report.event_count} events, "
            f"{len(report.strength)} strength results, {len(report.power)} ranked"
        )
        return report

    async def _execute_stage(
        self,
        stage: PipelineStage,
        handler: StageHandler,
    ) -> StageResult:
        """Execute one stage with timing and error capture."""
        started_at = self._clock.now()
        started = time.monotonic()

        logger.info(f"Stage [{stage.order:02d}] START: {stage.description}")

        try:
            context = handler()
            if hasattr(context, "__await__"):
                context = await context

            duration_ms = (time.monotonic() - started) * 1000
            logger.info(
                f"Stage [{stage.order:02d}] COMPLETE: {stage.description} ({duration_ms:.0f}ms)"
            )
            return StageResult(
                stage=stage,
                success=True,
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=duration_ms,
                context=context or {},
            )

        except Exception as e:
            duration_ms = (time.monotonic() - started) * 1000
            logger.error(
                f"Stage [{stage.order:02d}] ERROR: {stage.description} "
                f"- {type(e).__name__}: {e}",
                exc_info=True,
            )
            return StageResult(
                stage=stage,
                success=False,
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=duration_ms,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def close(self) -> None:
        await self.orchestrator.close()


# ============================================================
# CYCLE HISTORY
# ============================================================

class CycleHistory:
    """
    Tracks recent pipeline reports.
    """

    def __init__(self, max_size: int = 100):
        self._max_size = max_size
        self._reports: List[PipelineReport] = []

    def add(self, report: PipelineReport) -> None:
        self._reports.append(report)
        if len(self._reports) > self._max_size:
            self._reports = self._reports[-self._max_size:]

    def get_recent(self, limit: int = 10) -> List[PipelineReport]:
        return self._reports[-limit:]

    def get_last(self) -> Optional[PipelineReport]:
        return self._reports[-1] if self._reports else None

    def get_statistics(self) -> Dict[str, Any]:
        """Get cycle statistics."""
        if not self._reports:
            return {
                "total_cycles": 0,
                "success_rate": 0.0,
                "average_events": 0.0,
            }

        successes = sum(1 for r in self._reports if r.success)
        return {
            "total_cycles": len(self._reports),
            "successful_cycles": successes,
            "failed_cycles": len(self._reports) - successes,
            "success_rate": successes / len(self._reports),
            "average_events": sum(r.event_count for r in self._reports) / len(self._reports),
            "last_cycle_time": self._reports[-1].started_at.isoformat(),
        }
