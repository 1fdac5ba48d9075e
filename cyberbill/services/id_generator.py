"""
Sequential, human-readable identifiers (CUST0007, BILL0042, ...) per owner.
"""
from typing import Dict

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..config.settings import get_settings
from ..config.logging import get_logger
from ..core.exceptions import GenerationError
from ..models.ledger import EntityKind
from ..repositories.ledger_repo import SequenceRepository

logger = get_logger("services.id_generator")

PREFIXES: Dict[EntityKind, str] = {
    EntityKind.CUSTOMER: "CUST",
    EntityKind.PRODUCT: "PROD",
    EntityKind.SUPPLIER: "SUP",
    EntityKind.BILL: "BILL",
}


def format_code(kind: EntityKind, value: int, width: int = None) -> str:
    width = width or get_settings().ID_PAD_WIDTH
    return f"{PREFIXES[kind]}{value:0{width}d}"


class IdGenerator:
    """
    Allocates codes from a counter row per (owner, kind).

    The increment runs inside the caller's transaction, so the row stays
    locked until the caller commits and a rolled back caller gives its
    number back. Code columns also carry a unique (owner, code) constraint.
    """

    def __init__(self, sequences: SequenceRepository = None):
        self.sequences = sequences or SequenceRepository()

    def seed(self, db: Session, owner_id: int) -> None:
        """Create every counter for a new owner"""
        self.sequences.seed(db, owner_id, [kind.value for kind in EntityKind])

    def next_id(self, db: Session, owner_id: int, entity_kind: EntityKind) -> str:
        kind = EntityKind(entity_kind)
        try:
            value = self.sequences.increment(db, owner_id, kind.value)
            if value is None:
                # Owners created before counters existed get theirs lazily
                self.sequences.seed(db, owner_id, [kind.value])
                value = self.sequences.increment(db, owner_id, kind.value)
        except IntegrityError as e:
            raise GenerationError(kind.value, "concurrent sequence initialisation, retry") from e
        except OperationalError as e:
            logger.error(f"Sequence store unavailable for {kind.value}: {e}")
            raise GenerationError(kind.value, "store unavailable") from e

        if value is None:
            raise GenerationError(kind.value)

        code = format_code(kind, value)
        logger.debug(f"Allocated {code} for owner {owner_id}")
        return code


id_generator = IdGenerator()
