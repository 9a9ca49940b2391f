"""Tests for session_scope (commit / rollback around a unit of work)."""

import pytest

from sales_kernel.db.engine import get_engine, get_session, reset_engine, session_scope
from sales_kernel.services.sequence_service import SequenceService


class TestSessionScope:

    def test_commits_on_success(self, db_engine):
        with session_scope() as session:
            SequenceService(session).next_value("committed")

        with get_session() as session:
            assert SequenceService(session).current_value("committed") == 1

    def test_rolls_back_and_reraises(self, db_engine, captured_logs):
        with pytest.raises(RuntimeError, match="sale insert failed"):
            with session_scope() as session:
                SequenceService(session).next_value("aborted")
                raise RuntimeError("sale insert failed")

        with get_session() as session:
            assert SequenceService(session).current_value("aborted") is None
        assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())


class TestUninitialized:

    def test_accessors_raise(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()
