"""
Cost tracker - records what each AI processing attempt cost.

Cost is computed from the token counts reported by the model and the
configured per-million-token rates. Reprocessing a call creates another row.
"""
import logging
from datetime import timedelta
from typing import Optional

from call_analysis.config import AISettings
from call_analysis.models.tracking import CostRecord, CostSummary
from call_analysis.repositories.cost_repo import CostRepository
from call_analysis.utils import generate_id, utc_now

logger = logging.getLogger(__name__)


def _round_usd(value: float) -> float:
    return round(value, 6)


class CostTracker:
    """Service for recording and summarizing AI costs."""

    def __init__(self, repo: CostRepository, settings: Optional[AISettings] = None):
        self.repo = repo
        self.settings = settings or AISettings()

    def calculate(
        self,
        client_id: str,
        call_id: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        processing_time_ms: Optional[int] = None,
    ) -> CostRecord:
        """Build the cost row without storing it."""
        input_cost = (input_tokens / 1_000_000) * self.settings.input_cost_per_million
        output_cost = (output_tokens / 1_000_000) * self.settings.output_cost_per_million

        return CostRecord(
            cost_id=generate_id(),
            timestamp=utc_now(),
            client_id=client_id,
            call_id=call_id,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            input_cost_usd=_round_usd(input_cost),
            output_cost_usd=_round_usd(output_cost),
            total_cost_usd=_round_usd(input_cost + output_cost),
            processing_time_ms=processing_time_ms,
        )

    async def record(
        self,
        client_id: str,
        call_id: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        processing_time_ms: Optional[int] = None,
    ) -> CostRecord:
        """
        Record a single AI processing cost entry.

        A failed insert is logged and the computed record is still returned,
        so cost tracking never fails the processing it belongs to.
        """
        record = self.calculate(
            client_id=client_id,
            call_id=call_id,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            processing_time_ms=processing_time_ms,
        )

        try:
            await self.repo.create(record)
            logger.debug(
                f"Cost recorded for call {call_id}: ${record.total_cost_usd} "
                f"({input_tokens} in / {output_tokens} out)"
            )
        except Exception as e:
            logger.error(f"Failed to record cost for call {call_id}: {e}")

        return record

    async def get_summary(self, period: str = "today", client_id: Optional[str] = None) -> CostSummary:
        """
        Cost summary for 'today', 'week' (last 7 days) or 'month' (last 30 days).

        Unknown periods fall back to 'today'.
        """
        now = utc_now()
        if period == "week":
            since = now - timedelta(days=7)
        elif period == "month":
            since = now - timedelta(days=30)
        else:
            period = "today"
            since = now.replace(hour=0, minute=0, second=0, microsecond=0)

        totals = await self.repo.get_totals(since, client_id)
        by_client = await self.repo.get_by_client(since, client_id)

        summary = CostSummary(period=period, by_client=[dict(row) for row in by_client])
        if totals:
            summary.total_calls_processed = totals["total_calls_processed"] or 0
            summary.total_cost_usd = totals["total_cost_usd"] or 0.0
            summary.avg_cost_per_call_usd = totals["avg_cost_per_call_usd"] or 0.0
        return summary
