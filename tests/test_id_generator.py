from cyberbill.models import EntityKind, IdSequence
from cyberbill.services.id_generator import IdGenerator, format_code, id_generator


def test_codes_are_sequential_per_kind(db, owner):
    codes = [id_generator.next_id(db, owner.id, EntityKind.BILL) for _ in range(3)]
    db.commit()

    assert codes == ["BILL0001", "BILL0002", "BILL0003"]
    assert id_generator.next_id(db, owner.id, EntityKind.CUSTOMER) == "CUST0001"
    assert id_generator.next_id(db, owner.id, EntityKind.SUPPLIER) == "SUP0001"
    assert id_generator.next_id(db, owner.id, EntityKind.PRODUCT) == "PROD0001"


def test_owners_have_independent_sequences(db, owner, other_owner):
    assert id_generator.next_id(db, owner.id, EntityKind.BILL) == "BILL0001"
    assert id_generator.next_id(db, owner.id, EntityKind.BILL) == "BILL0002"
    assert id_generator.next_id(db, other_owner.id, EntityKind.BILL) == "BILL0001"


def test_rolled_back_allocation_is_reused(db, owner):
    id_generator.next_id(db, owner.id, EntityKind.BILL)
    db.rollback()

    assert id_generator.next_id(db, owner.id, EntityKind.BILL) == "BILL0001"


def test_missing_sequence_is_seeded_on_first_use(db, owner):
    db.query(IdSequence).filter(IdSequence.user_id == owner.id).delete()
    db.commit()

    generator = IdGenerator()
    assert generator.next_id(db, owner.id, EntityKind.SUPPLIER) == "SUP0001"
    assert generator.next_id(db, owner.id, EntityKind.SUPPLIER) == "SUP0002"


def test_codes_grow_past_pad_width():
    assert format_code(EntityKind.CUSTOMER, 7) == "CUST0007"
    assert format_code(EntityKind.CUSTOMER, 12345) == "CUST12345"
