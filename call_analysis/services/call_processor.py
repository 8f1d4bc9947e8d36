"""
Call processor - runs one sales call through AI analysis.

For a call whose transcript has arrived, the processor:
1. Loads the call and its client (for the client prompt section)
2. Marks the call as processing
3. Builds the two-layer prompt (PromptBuilder)
4. Calls the LLM
5. Parses and validates the response (ResponseParser)
6. Writes outcome, scores and notes onto the call and transitions its state
7. Replaces the call's stored objections
8. Records the cost (CostTracker)
9. Writes an audit entry

If any step fails the call is marked processing_status='error' with the
message and keeps its attendance state, so it can be reprocessed later.
process_call never raises.
"""
import logging
import time
from typing import Any, Optional

import asyncpg

from call_analysis.config import AISettings
from call_analysis.exceptions import NotFoundError, ResponseParseError, TaxonomyError
from call_analysis.models.analysis import NormalizedAnalysis, NormalizedObjection, ParseFailure
from call_analysis.models.call import (
    CallMetadata,
    ObjectionRecord,
    ProcessingFailure,
    ProcessingResult,
    ProcessingSuccess,
)
from call_analysis.models.enums import AuditAction, ProcessingStatus, TriggerSource
from call_analysis.repositories import (
    AuditRepository,
    CallRepository,
    ClientRepository,
    CostRepository,
    ObjectionRepository,
)
from call_analysis.repositories.call_repo import UPDATABLE_COLUMNS
from call_analysis.services.audit_logger import AuditLogger
from call_analysis.services.call_state_manager import CallStateManager
from call_analysis.services.cost_tracker import CostTracker
from call_analysis.services.llm_client import GeminiClient
from call_analysis.services.prompt_builder import PromptBuilder
from call_analysis.services.protocols import (
    AuditLog,
    CallStore,
    ClientStore,
    CostLedger,
    LLMClient,
    ObjectionStore,
    StateTransitioner,
)
from call_analysis.services.response_parser import ResponseParser
from call_analysis.taxonomy import Taxonomy, default_taxonomy
from call_analysis.utils import generate_id, parse_transcript_timestamp, utc_now

logger = logging.getLogger(__name__)


def build_objection_records(
    call_id: str,
    client_id: str,
    closer_id: Optional[str],
    objections: list[NormalizedObjection],
) -> list[ObjectionRecord]:
    """Map normalized objections to stored rows, deriving timestamp seconds/minutes."""
    now = utc_now()
    records = []
    for obj in objections:
        seconds, minutes = parse_transcript_timestamp(obj.timestamp_approximate)
        records.append(ObjectionRecord(
            objection_id=generate_id(),
            call_id=call_id,
            client_id=client_id,
            closer_id=closer_id,
            objection_type=obj.objection_type,
            objection_text=obj.objection_text,
            resolved=obj.was_overcome,
            resolution_text=obj.closer_response or None,
            resolution_method="handled" if obj.was_overcome else None,
            timestamp_seconds=seconds,
            timestamp_minutes=minutes,
            created_at=now,
            last_modified=now,
        ))
    return records


class CallProcessor:
    """Orchestrates AI analysis of a single call."""

    def __init__(
        self,
        call_store: CallStore,
        client_store: ClientStore,
        state_manager: StateTransitioner,
        objection_store: ObjectionStore,
        cost_ledger: CostLedger,
        audit_log: AuditLog,
        llm_client: LLMClient,
        taxonomy: Optional[Taxonomy] = None,
        settings: Optional[AISettings] = None,
    ):
        self.call_store = call_store
        self.client_store = client_store
        self.state_manager = state_manager
        self.objection_store = objection_store
        self.cost_ledger = cost_ledger
        self.audit_log = audit_log
        self.llm_client = llm_client
        self.settings = settings or AISettings()

        taxonomy = taxonomy or default_taxonomy()
        self.prompt_builder = PromptBuilder(taxonomy)
        self.response_parser = ResponseParser(taxonomy)

    async def process_call(self, call_id: str, client_id: str, transcript: str) -> ProcessingResult:
        """
        Process a single call through the AI pipeline.

        Args:
            call_id: The call to process
            client_id: Client scope
            transcript: Full transcript text

        Returns:
            ProcessingSuccess with outcome, scores and cost, or ProcessingFailure
            with the error message
        """
        start = time.monotonic()

        try:
            call = await self.call_store.find_by_id(call_id, client_id)
            if not call:
                raise NotFoundError("Call", call_id)

            client = await self.client_store.find_by_id(client_id)
            if not client:
                raise NotFoundError("Client", client_id)

            await self.call_store.update(
                call_id, client_id, {"processing_status": ProcessingStatus.PROCESSING.value}
            )

            prompt = self.prompt_builder.build_prompt(client, CallMetadata.from_call(call), transcript)

            response = await self.llm_client.complete(
                model=self.settings.model,
                max_tokens=self.settings.max_tokens,
                system_prompt=prompt.system_prompt,
                user_message=prompt.user_message,
            )

            parse_result = self.response_parser.parse(response.text)
            if isinstance(parse_result, ParseFailure):
                raise ResponseParseError(parse_result.error, parse_result.raw_response)
            analysis = parse_result.data

            await self._apply_results(call, call_id, client_id, analysis)

            objection_count = await self._replace_objections(
                call_id, client_id, call.get("closer_id"), analysis.objections
            )

            processing_time_ms = self._elapsed_ms(start)
            cost = await self.cost_ledger.record(
                client_id=client_id,
                call_id=call_id,
                model=self.settings.model,
                input_tokens=response.input_tokens,
                output_tokens=response.output_tokens,
                processing_time_ms=processing_time_ms,
            )

            await self.audit_log.log(
                client_id=client_id,
                entity_type="call",
                entity_id=call_id,
                action=AuditAction.AI_PROCESSED.value,
                field_changed="call_outcome",
                old_value=None,
                new_value=analysis.call_outcome,
                trigger_source=TriggerSource.AI_PROCESSING.value,
                trigger_detail=self.settings.model,
                metadata={
                    "scores": analysis.scores,
                    "objection_count": objection_count,
                    "cost_usd": cost.total_cost_usd,
                    "processing_time_ms": processing_time_ms,
                },
            )

            logger.info(
                f"AI processing complete for call {call_id} (client {client_id}): "
                f"outcome={analysis.call_outcome}, objections={objection_count}, "
                f"cost=${cost.total_cost_usd}, time={processing_time_ms}ms"
            )

            return ProcessingSuccess(
                outcome=analysis.call_outcome,
                scores=analysis.scores,
                summary=analysis.summary,
                coaching_notes=analysis.coaching_notes,
                objection_count=objection_count,
                cost_usd=cost.total_cost_usd,
                processing_time_ms=processing_time_ms,
            )

        except Exception as e:
            processing_time_ms = self._elapsed_ms(start)
            error_message = str(e)
            logger.error(
                f"AI processing failed for call {call_id} (client {client_id}): {error_message}",
                exc_info=True,
            )

            await self._mark_errored(call_id, client_id, error_message)
            await self._audit_error(call_id, client_id, error_message, processing_time_ms)

            return ProcessingFailure(error=error_message, processing_time_ms=processing_time_ms)

    async def _apply_results(
        self,
        call: Any,
        call_id: str,
        client_id: str,
        analysis: NormalizedAnalysis,
    ) -> None:
        """Write the analysis onto the call and move it to the outcome state.

        When the state transition is rejected (e.g. the call already has an
        outcome) the fields are still saved, without changing state.
        """
        updates: dict[str, Any] = {
            "call_outcome": analysis.call_outcome,
            "processing_status": ProcessingStatus.COMPLETE.value,
            "processing_error": None,
            "ai_summary": analysis.summary,
            "ai_feedback": analysis.coaching_notes,
            "lost_reason": analysis.disqualification_reason,
        }
        for key, value in analysis.scores.items():
            if value is not None:
                updates[key] = value

        transitioned = await self.state_manager.transition_state(
            call_id,
            client_id,
            analysis.call_outcome,
            TriggerSource.AI_OUTCOME.value,
            updates,
        )

        if not transitioned:
            logger.warning(
                f"State transition rejected for call {call_id} "
                f"({call.get('attendance')!r} -> {analysis.call_outcome!r}), saving results directly"
            )
            await self.call_store.update(call_id, client_id, updates)

    async def _replace_objections(
        self,
        call_id: str,
        client_id: str,
        closer_id: Optional[str],
        objections: list[NormalizedObjection],
    ) -> int:
        """Delete the call's stored objections, then insert the new ones.

        Not atomic: a failed insert leaves the call with no objections until
        it is reprocessed.
        """
        await self.objection_store.delete_by_call_id(call_id, client_id)

        records = build_objection_records(call_id, client_id, closer_id, objections)
        if not records:
            return 0

        await self.objection_store.create_many(records)
        logger.debug(
            f"Stored {len(records)} objections for call {call_id}: "
            f"{', '.join(r.objection_type for r in records)}"
        )
        return len(records)

    async def _mark_errored(self, call_id: str, client_id: str, error_message: str) -> None:
        """Best-effort: record the failure on the call without masking it."""
        try:
            await self.call_store.update(call_id, client_id, {
                "processing_status": ProcessingStatus.ERROR.value,
                "processing_error": error_message,
            })
        except Exception as update_error:
            logger.error(f"Failed to mark call {call_id} as errored: {update_error}")

    async def _audit_error(
        self, call_id: str, client_id: str, error_message: str, processing_time_ms: int
    ) -> None:
        try:
            await self.audit_log.log(
                client_id=client_id,
                entity_type="call",
                entity_id=call_id,
                action=AuditAction.ERROR.value,
                trigger_source=TriggerSource.AI_PROCESSING.value,
                metadata={"error": error_message, "processing_time_ms": processing_time_ms},
            )
        except Exception as audit_error:
            logger.error(f"Failed to audit processing error for call {call_id}: {audit_error}")

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)


def build_call_processor(
    pool: asyncpg.Pool,
    llm_client: Optional[LLMClient] = None,
    taxonomy: Optional[Taxonomy] = None,
    settings: Optional[AISettings] = None,
) -> CallProcessor:
    """Wire a CallProcessor with the asyncpg repositories and the Gemini client.

    Scores are written to calls columns named after the score keys, so a
    taxonomy whose score keys have no column is rejected here instead of
    failing every update.
    """
    taxonomy = taxonomy or default_taxonomy()
    missing = [key for key in taxonomy.score_keys if key not in UPDATABLE_COLUMNS]
    if missing:
        raise TaxonomyError(
            f"Score types have no calls column: {', '.join(missing)}",
            details={"score_keys": missing},
        )

    settings = settings or AISettings.from_env()
    call_repo = CallRepository(pool)
    audit_logger = AuditLogger(AuditRepository(pool))

    return CallProcessor(
        call_store=call_repo,
        client_store=ClientRepository(pool),
        state_manager=CallStateManager(call_repo, audit_logger),
        objection_store=ObjectionRepository(pool),
        cost_ledger=CostTracker(CostRepository(pool), settings),
        audit_log=audit_logger,
        llm_client=llm_client or GeminiClient(temperature=settings.temperature),
        taxonomy=taxonomy,
        settings=settings,
    )
