"""
Interfaces of the collaborators the call processor depends on.

The asyncpg repositories and services in this package implement them; tests
swap in in-memory fakes.
"""
from typing import Any, Mapping, Optional, Protocol

from call_analysis.models.call import ObjectionRecord
from call_analysis.models.tracking import CostRecord
from call_analysis.services.llm_client import LLMResponse


class CallStore(Protocol):
    async def find_by_id(self, call_id: str, client_id: str) -> Optional[Mapping[str, Any]]: ...

    async def update(self, call_id: str, client_id: str, fields: dict[str, Any]) -> None: ...


class ClientStore(Protocol):
    async def find_by_id(self, client_id: str) -> Optional[Mapping[str, Any]]: ...


class StateTransitioner(Protocol):
    async def transition_state(
        self,
        call_id: str,
        client_id: str,
        new_state: str,
        trigger: str,
        additional_updates: Optional[dict[str, Any]] = None,
    ) -> bool: ...


class ObjectionStore(Protocol):
    async def find_by_call_id(self, call_id: str, client_id: str) -> list[Any]: ...

    async def delete_by_call_id(self, call_id: str, client_id: str) -> int: ...

    async def create_many(self, records: list[ObjectionRecord]) -> None: ...


class CostLedger(Protocol):
    async def record(
        self,
        client_id: str,
        call_id: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        processing_time_ms: Optional[int] = None,
    ) -> CostRecord: ...


class AuditLog(Protocol):
    async def log(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        trigger_source: str,
        client_id: Optional[str] = None,
        field_changed: Optional[str] = None,
        old_value: Any = None,
        new_value: Any = None,
        trigger_detail: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None: ...


class LLMClient(Protocol):
    async def complete(
        self,
        model: str,
        max_tokens: int,
        system_prompt: str,
        user_message: str,
    ) -> LLMResponse: ...
