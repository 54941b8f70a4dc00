# tests/test_stats_service.py
"""Unit tests for dashboard counters."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date
from unittest.mock import MagicMock, patch
from sqlalchemy import text
from app.models.employee import Employee
from app.models.school import School
from app.models.vehicle import Vehicle
from app.services.stats_service import get_dashboard_stats

EMPTY_SUMMARY = ({"expired": 0, "14-days": 0, "30-days": 0}, [])


def boom():
    raise RuntimeError("relation does not exist")


class TestDashboardStats:
    def test_failed_counter_reads_zero_and_is_reported(self):
        queries = {"employees": lambda: 12, "vehicles": boom}
        with patch("app.services.stats_service.count_queries", return_value=queries), \
             patch("app.services.stats_service.get_expiry_summary", return_value=EMPTY_SUMMARY):
            stats = get_dashboard_stats(MagicMock(), date(2025, 1, 15))

        assert stats["counts"] == {"employees": 12, "vehicles": 0}
        assert stats["errors"] == ["vehicles: relation does not exist"]
        assert stats["expiry"]["employees"]["expired"] == 0

    def test_expiry_errors_merged(self):
        summary = ({"expired": 1, "14-days": 0, "30-days": 2}, ["drivers: timeout"])
        with patch("app.services.stats_service.count_queries", return_value={}), \
             patch("app.services.stats_service.get_expiry_summary", return_value=summary):
            stats = get_dashboard_stats(MagicMock())

        assert stats["expiry"]["vehicles"]["30-days"] == 2
        assert stats["errors"] == ["drivers: timeout", "drivers: timeout"]

    def test_counts_against_database(self, db_session):
        db_session.add_all([
            Employee(full_name="A", can_work=True),
            Employee(full_name="B", can_work=False),
            Vehicle(spare_vehicle=True, off_the_road=False),
            Vehicle(spare_vehicle=True, off_the_road=True),
            Vehicle(spare_vehicle=False, off_the_road=False),
        ])
        db_session.commit()

        stats = get_dashboard_stats(db_session)

        counts = stats["counts"]
        assert counts["employees"] == 2
        assert counts["vehicles"] == 3
        assert counts["spare_vehicles"] == 1
        assert counts["vor_vehicles"] == 1
        assert counts["flagged_employees"] == 1
        assert stats["errors"] == []

    def test_each_counter_runs_in_its_own_savepoint(self):
        db = MagicMock()
        queries = {"employees": lambda: 1, "vehicles": boom, "schools": lambda: 2}
        with patch("app.services.stats_service.count_queries", return_value=queries), \
             patch("app.services.stats_service.get_expiry_summary", return_value=EMPTY_SUMMARY):
            get_dashboard_stats(db)
        assert db.begin_nested.call_count == 3

    def test_failed_query_leaves_session_usable(self, db_session):
        db_session.add(School(name="Hillside Primary"))
        db_session.commit()

        def broken():
            return db_session.execute(text("SELECT count(*) FROM no_such_table")).scalar()

        queries = {
            "broken": broken,
            "schools": lambda: db_session.query(School).count(),
        }
        with patch("app.services.stats_service.count_queries", return_value=queries):
            stats = get_dashboard_stats(db_session)

        assert stats["counts"] == {"broken": 0, "schools": 1}
        assert len(stats["errors"]) == 1
        assert stats["errors"][0].startswith("broken: ")
        assert stats["expiry"]["employees"] == {"expired": 0, "14-days": 0, "30-days": 0}
