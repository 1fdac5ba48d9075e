from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..models.ledger import IdSequence, IdempotencyKey


class SequenceRepository:
    """Per-owner counters backing display codes"""

    def seed(self, db: Session, owner_id: int, kinds: Iterable[str]) -> None:
        for kind in kinds:
            db.add(IdSequence(user_id=owner_id, kind=kind, last_value=0))
        db.flush()

    def increment(self, db: Session, owner_id: int, kind: str) -> Optional[int]:
        """
        Bump the counter and return the new value, or None when the sequence
        row does not exist. The UPDATE holds the row lock until commit.
        """
        updated = (
            db.query(IdSequence)
            .filter(IdSequence.user_id == owner_id, IdSequence.kind == kind)
            .update({IdSequence.last_value: IdSequence.last_value + 1}, synchronize_session=False)
        )
        if updated == 0:
            return None
        return (
            db.query(IdSequence.last_value)
            .filter(IdSequence.user_id == owner_id, IdSequence.kind == kind)
            .scalar()
        )


class IdempotencyRepository:
    def find(self, db: Session, owner_id: int, key: str) -> Optional[IdempotencyKey]:
        return (
            db.query(IdempotencyKey)
            .filter(IdempotencyKey.user_id == owner_id, IdempotencyKey.key == key)
            .first()
        )

    def record(self, db: Session, owner_id: int, key: str, operation: str, resource_id: int) -> IdempotencyKey:
        entry = IdempotencyKey(user_id=owner_id, key=key, operation=operation, resource_id=resource_id)
        db.add(entry)
        db.flush()
        return entry
