"""
Repository layer for data access.
"""
from .call_repo import CallRepository
from .client_repo import ClientRepository
from .objection_repo import ObjectionRepository
from .cost_repo import CostRepository
from .audit_repo import AuditRepository

__all__ = [
    "CallRepository",
    "ClientRepository",
    "ObjectionRepository",
    "CostRepository",
    "AuditRepository",
]
