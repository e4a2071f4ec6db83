"""
tests/test_reconciliation.py — Ripple Count Reconciliation Tests
==================================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from conftest import seed_ritual
from buzzwin.database.models import Ritual, RitualMember
from buzzwin.services import ritual_service
from buzzwin.services.reconciliation_service import reconcile_ripple_counts


@pytest.fixture
def engine(db_engine):
    return db_engine


class TestReconcileRipples:
    def test_consistent_counts_need_no_correction(self, engine):
        rid = seed_ritual(engine)
        ritual_service.join_ritual(engine, rid, "alice")

        report = reconcile_ripple_counts(engine)
        assert report["checked"] == 1
        assert report["corrected"] == 0
        assert report["corrections"] == []
        assert "timestamp" in report

    def test_drifted_counts_are_reset_to_membership(self, engine):
        inflated = seed_ritual(engine, title="Inflated", ripple_count=7)
        deflated = seed_ritual(engine, title="Deflated", ripple_count=0)
        with Session(engine) as session:
            session.add_all([
                RitualMember(ritual_id=inflated, user_id="alice"),
                RitualMember(ritual_id=deflated, user_id="alice"),
                RitualMember(ritual_id=deflated, user_id="bob"),
            ])
            session.commit()

        report = reconcile_ripple_counts(engine)
        assert report["corrected"] == 2
        diffs = {c["ritual_id"]: c["diff"] for c in report["corrections"]}
        assert diffs == {inflated: -6, deflated: 2}

        with Session(engine) as session:
            assert session.get(Ritual, inflated).ripple_count == 1
            assert session.get(Ritual, deflated).ripple_count == 2

    def test_logs_warning_on_corrections(self, engine, caplog):
        seed_ritual(engine, ripple_count=3)
        with caplog.at_level("WARNING"):
            reconcile_ripple_counts(engine)
        assert "corrected 1/1" in caplog.text
