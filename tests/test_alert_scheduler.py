"""Tests for internal due dates, alerts and urgency labels."""

from datetime import date

import pytest

from prazo_engine.core.alert_scheduler import AlertScheduler, business_days_between, urgency_label
from prazo_engine.core.models import DeadlineClass


class TestInternalDueDate:
    def test_moves_back_in_business_days(self, view):
        scheduler = AlertScheduler(internal_margin_days=2)
        # Tuesday minus two business days over the weekend
        assert scheduler.internal_due_date(date(2026, 3, 10), date(2026, 3, 2), view) == date(2026, 3, 6)

    def test_never_before_start(self, view):
        scheduler = AlertScheduler(internal_margin_days=5)
        assert scheduler.internal_due_date(date(2026, 3, 4), date(2026, 3, 3), view) == date(2026, 3, 3)

    def test_jumps_back_over_recess(self, view):
        scheduler = AlertScheduler(internal_margin_days=1)
        assert scheduler.internal_due_date(date(2027, 1, 21), date(2026, 12, 1), view) == date(2026, 12, 18)

    def test_negative_margin_rejected(self):
        with pytest.raises(ValueError):
            AlertScheduler(internal_margin_days=-1)


class TestAlertDates:
    def test_peremptory_offsets(self, view):
        alerts = AlertScheduler().alert_dates(
            date(2027, 2, 24), date(2026, 12, 9), DeadlineClass.PEREMPTORY, view
        )
        assert alerts == [date(2027, 2, 19), date(2027, 2, 22), date(2027, 2, 23), date(2027, 2, 24)]

    def test_default_offsets_dropped_before_start(self, view):
        alerts = AlertScheduler().alert_dates(
            date(2026, 3, 12), date(2026, 3, 9), DeadlineClass.DILATORY, view
        )
        # D-7 falls before the start of the count
        assert alerts == [date(2026, 3, 9), date(2026, 3, 11), date(2026, 3, 12)]

    def test_alerts_are_business_days(self, view):
        alerts = AlertScheduler().alert_dates(
            date(2027, 1, 22), date(2026, 11, 1), DeadlineClass.PEREMPTORY, view
        )
        assert all(view.is_countable(d) for d in alerts)
        assert alerts == sorted(set(alerts))


class TestRemaining:
    def test_business_days_between(self, view):
        assert business_days_between(date(2026, 3, 5), date(2026, 3, 10), view) == 3
        assert business_days_between(date(2026, 3, 10), date(2026, 3, 5), view) == -3
        assert business_days_between(date(2026, 3, 5), date(2026, 3, 5), view) == 0

    @pytest.mark.parametrize("reference,due,label", [
        (date(2026, 3, 11), date(2026, 3, 10), "OVERDUE"),
        (date(2026, 3, 10), date(2026, 3, 10), "DUE_TODAY"),
        (date(2026, 3, 6), date(2026, 3, 10), "URGENT"),
        (date(2026, 3, 3), date(2026, 3, 10), "ATTENTION"),
        (date(2026, 3, 2), date(2026, 3, 20), "ON_TRACK"),
        (date(2026, 3, 2), None, "NO_FIXED_TERM"),
    ])
    def test_urgency_label(self, view, reference, due, label):
        assert urgency_label(reference, due, view) == label
