"""
Bookkeeping tables behind identifier allocation and request idempotency.
"""
import enum

from sqlalchemy import Column, Integer, String, UniqueConstraint

from .base import BaseModel, OwnedMixin


class EntityKind(str, enum.Enum):
    """Entity kinds that receive sequential display codes."""
    CUSTOMER = "customer"
    PRODUCT = "product"
    SUPPLIER = "supplier"
    BILL = "bill"


class IdSequence(OwnedMixin, BaseModel):
    """Per-owner counter for one entity kind."""
    __tablename__ = 'id_sequences'
    __table_args__ = (
        UniqueConstraint('user_id', 'kind', name='uq_id_sequences_owner_kind'),
    )

    kind = Column(String(20), nullable=False)
    last_value = Column(Integer, nullable=False, default=0)


class IdempotencyKey(OwnedMixin, BaseModel):
    """Records which resource a client-supplied idempotency key produced."""
    __tablename__ = 'idempotency_keys'
    __table_args__ = (
        UniqueConstraint('user_id', 'key', name='uq_idempotency_keys_owner_key'),
    )

    key = Column(String(128), nullable=False)
    operation = Column(String(50), nullable=False)
    resource_id = Column(Integer, nullable=False)
