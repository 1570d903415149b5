"""
BaseService -- abstract base for kernel services that write.

Responsibility:
    Common constructor and session contract.  Services receive a SQLAlchemy
    ``Session`` from the caller and use ``session.flush()``, never
    ``session.commit()``; the caller (``session_scope`` or a test fixture)
    owns commit and rollback.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from approval_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never commits or rolls back; writes are flushed into
          the caller's transaction.
    """

    def __init__(self, session: Session):
        self.session = session
