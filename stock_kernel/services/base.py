"""
BaseService -- abstract base for all write services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service that mutates stock state.  Concrete services receive a
    SQLAlchemy ``Session`` and persist with ``session.flush()``, never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Extended by the kernel services here and by the orchestration
    services in ``stock_services``.

Invariants enforced:
    Flush-only -- services flush within the caller's transaction and
    never commit or roll back.  ``session_scope()`` or the test harness
    owns the boundary, which is what makes a confirm (consumption for
    every item, the lock row, the status change) all-or-nothing.

Failure modes:
    - A subclass that commits on its own breaks the atomicity of
      multi-step operations such as count confirmation.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from stock_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for write services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT host read-only listing queries; those belong in
          ``stock_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
