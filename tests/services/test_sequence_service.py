"""
Tests for SequenceService (locked counter allocation).

Runs on in-memory SQLite; the row lock itself is a no-op there, so these
tests cover monotonicity, seeding and the savepoint path.
"""

import pytest

from sales_kernel.services.sequence_service import SequenceCounter, SequenceService


class TestNextValue:

    def test_first_value_is_one(self, db_session):
        assert SequenceService(db_session).next_value("test_seq") == 1

    def test_strictly_increasing(self, db_session):
        seq = SequenceService(db_session)
        values = [seq.next_value("test_seq") for _ in range(5)]
        assert values == [1, 2, 3, 4, 5]

    def test_sequences_are_independent(self, db_session):
        seq = SequenceService(db_session)
        seq.next_value("a")
        seq.next_value("a")
        assert seq.next_value("b") == 1

    def test_counter_row_persisted(self, db_session):
        SequenceService(db_session).next_value("test_seq")
        row = db_session.query(SequenceCounter).filter_by(name="test_seq").one()
        assert row.current_value == 1

    def test_rollback_returns_value(self, db_engine):
        from sqlalchemy.orm import Session

        with Session(bind=db_engine) as session:
            SequenceService(session).next_value("rolled")
            session.rollback()
        with Session(bind=db_engine) as session:
            assert SequenceService(session).current_value("rolled") is None


class TestEnsureAtLeast:

    def test_seeds_new_counter(self, db_session):
        seq = SequenceService(db_session)
        assert seq.ensure_at_least("s", 42) == 42
        assert seq.next_value("s") == 43

    def test_raises_existing_counter(self, db_session):
        seq = SequenceService(db_session)
        seq.next_value("s")
        assert seq.ensure_at_least("s", 10) == 10
        assert seq.next_value("s") == 11

    def test_never_lowers(self, db_session):
        seq = SequenceService(db_session)
        seq.ensure_at_least("s", 50)
        assert seq.ensure_at_least("s", 5) == 50
        assert seq.next_value("s") == 51

    def test_negative_floor_seeds_zero(self, db_session):
        seq = SequenceService(db_session)
        assert seq.ensure_at_least("s", -3) == 0
        assert seq.next_value("s") == 1

    def test_seeding_is_logged(self, db_session, captured_logs):
        SequenceService(db_session).ensure_at_least("s", 7)
        assert any(r["message"] == "sequence_seeded" for r in captured_logs())


class TestCurrentAndReset:

    def test_current_value_none_before_use(self, db_session):
        assert SequenceService(db_session).current_value("unused") is None

    def test_current_value_does_not_increment(self, db_session):
        seq = SequenceService(db_session)
        seq.next_value("s")
        assert seq.current_value("s") == 1
        assert seq.current_value("s") == 1

    @pytest.mark.parametrize("existing", [False, True])
    def test_reset(self, db_session, existing):
        seq = SequenceService(db_session)
        if existing:
            seq.next_value("s")
        seq.reset("s", 100)
        assert seq.next_value("s") == 101
