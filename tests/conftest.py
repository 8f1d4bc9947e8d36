"""
Pytest fixtures for call analysis tests.

Collaborators are in-memory fakes, so no database or API key is needed.
The real CallStateManager, AuditLogger and CostTracker run on top of the
fake repositories.
"""
import json
from typing import Any, Optional

import pytest

from call_analysis.config import AISettings
from call_analysis.services.audit_logger import AuditLogger
from call_analysis.services.call_processor import CallProcessor
from call_analysis.services.call_state_manager import CallStateManager
from call_analysis.services.cost_tracker import CostTracker
from call_analysis.services.llm_client import LLMResponse
from call_analysis.taxonomy import Taxonomy

CLIENT_ID = "client-1"
CALL_ID = "call-1"


# =============================================================================
# Fakes
# =============================================================================

class FakeCallStore:
    """Calls keyed by (call_id, client_id); records every update."""

    def __init__(self):
        self.calls: dict[tuple[str, str], dict[str, Any]] = {}
        self.updates: list[dict[str, Any]] = []
        self.fail_updates_with: Optional[Exception] = None

    def add(self, call: dict[str, Any]) -> dict[str, Any]:
        self.calls[(call["call_id"], call["client_id"])] = call
        return call

    async def find_by_id(self, call_id: str, client_id: str):
        return self.calls.get((call_id, client_id))

    async def update(self, call_id: str, client_id: str, fields: dict[str, Any]) -> None:
        if self.fail_updates_with is not None:
            raise self.fail_updates_with
        call = self.calls.get((call_id, client_id))
        if call is None:
            # UPDATE matching no rows
            return
        self.updates.append(dict(fields))
        call.update(fields)

    async def find_errored(self, client_id: str) -> list[dict[str, Any]]:
        return [
            call for (_, cid), call in self.calls.items()
            if cid == client_id and call.get("processing_status") == "error"
        ]


class FakeClientStore:
    def __init__(self):
        self.clients: dict[str, dict[str, Any]] = {}

    async def find_by_id(self, client_id: str):
        return self.clients.get(client_id)


class FakeObjectionStore:
    def __init__(self):
        self.rows: dict[str, list] = {}
        self.calls: list[str] = []

    async def find_by_call_id(self, call_id: str, client_id: str) -> list:
        """Stored rows in transcript order, untimed rows last."""
        rows = [r for r in self.rows.get(call_id, []) if r.client_id == client_id]
        return sorted(rows, key=lambda r: (r.timestamp_seconds is None, r.timestamp_seconds or 0))

    async def delete_by_call_id(self, call_id: str, client_id: str) -> int:
        self.calls.append("delete")
        removed = self.rows.pop(call_id, [])
        return len(removed)

    async def create_many(self, records: list) -> None:
        self.calls.append("create_many")
        for record in records:
            self.rows.setdefault(record.call_id, []).append(record)


class FakeCostRepository:
    def __init__(self):
        self.records: list = []
        self.fail_with: Optional[Exception] = None

    async def create(self, record) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.records.append(record)


class FakeAuditRepository:
    def __init__(self):
        self.entries: list = []
        self.fail_with: Optional[Exception] = None

    async def create(self, entry) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        # Same check the JSONB column makes
        json.dumps(entry.metadata)
        self.entries.append(entry)

    async def find_by_entity(self, entity_type: str, entity_id: str) -> list:
        return [e for e in self.entries if e.entity_type == entity_type and e.entity_id == entity_id]

    def actions(self) -> list[str]:
        return [e.action for e in self.entries]


class FakeLLM:
    """Returns a canned response, or raises the configured error."""

    def __init__(self, text: str = "", input_tokens: int = 1000, output_tokens: int = 500):
        self.text = text
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.error: Optional[Exception] = None
        self.requests: list[dict[str, Any]] = []

    async def complete(self, model: str, max_tokens: int, system_prompt: str, user_message: str) -> LLMResponse:
        self.requests.append({
            "model": model,
            "max_tokens": max_tokens,
            "system_prompt": system_prompt,
            "user_message": user_message,
        })
        if self.error is not None:
            raise self.error
        return LLMResponse(text=self.text, input_tokens=self.input_tokens, output_tokens=self.output_tokens)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def taxonomy() -> Taxonomy:
    return Taxonomy()


@pytest.fixture
def settings() -> AISettings:
    return AISettings(
        model="test-model",
        max_tokens=4000,
        temperature=0.0,
        input_cost_per_million=3.0,
        output_cost_per_million=15.0,
    )


@pytest.fixture
def client_record() -> dict[str, Any]:
    return {
        "client_id": CLIENT_ID,
        "company_name": "Acme Coaching",
        "offer_name": "Growth Program",
        "offer_price": "5000",
        "offer_description": "12-week coaching program",
        "ai_prompt_overall": "High-ticket coaching sales.",
    }


@pytest.fixture
def call_record() -> dict[str, Any]:
    return {
        "call_id": CALL_ID,
        "client_id": CLIENT_ID,
        "closer_id": "closer-1",
        "closer": "Jamie",
        "prospect_name": "Pat Prospect",
        "prospect_email": "pat@example.com",
        "call_type": "First Call",
        "duration_minutes": 45,
        "attendance": "Show",
        "processing_status": "queued",
        "processing_error": None,
    }


@pytest.fixture
def call_store(call_record) -> FakeCallStore:
    store = FakeCallStore()
    store.add(call_record)
    return store


@pytest.fixture
def client_store(client_record) -> FakeClientStore:
    store = FakeClientStore()
    store.clients[CLIENT_ID] = client_record
    return store


@pytest.fixture
def objection_store() -> FakeObjectionStore:
    return FakeObjectionStore()


@pytest.fixture
def cost_repo() -> FakeCostRepository:
    return FakeCostRepository()


@pytest.fixture
def audit_repo() -> FakeAuditRepository:
    return FakeAuditRepository()


@pytest.fixture
def audit_logger(audit_repo) -> AuditLogger:
    return AuditLogger(audit_repo)


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def processor(
    call_store, client_store, objection_store, cost_repo, audit_logger, llm, taxonomy, settings
) -> CallProcessor:
    return CallProcessor(
        call_store=call_store,
        client_store=client_store,
        state_manager=CallStateManager(call_store, audit_logger),
        objection_store=objection_store,
        cost_ledger=CostTracker(cost_repo, settings),
        audit_log=audit_logger,
        llm_client=llm,
        taxonomy=taxonomy,
        settings=settings,
    )
