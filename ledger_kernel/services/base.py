"""
BaseService -- abstract base for kernel write services.

Services receive a SQLAlchemy ``Session`` from the caller and persist with
``session.flush()`` only.  They never commit or roll back: the unit of work
in ``ledger_services`` owns the transaction, so posting an intent (resolve
two accounts, allocate a numbering, write a transaction and its entries)
either lands completely or not at all.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read-model queries -- those belong in
          ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
