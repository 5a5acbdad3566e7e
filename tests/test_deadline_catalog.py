"""Tests for the deadline definition catalog."""

import pytest

from prazo_engine.core.deadline_catalog import DeadlineCatalog
from prazo_engine.core.exceptions import CalendarDataError, ConfigurationNotFound
from prazo_engine.core.models import CountingMode, DeadlineClass, ProceduralCategory


class TestDeadlineCatalog:
    def test_bundled_catalog(self, catalog):
        assert len(catalog) == 55
        assert catalog.version == "2026.1"
        assert "CPC-001" in catalog

    def test_lookup_by_code(self, catalog):
        entry = catalog.get("cpc-001")
        assert entry.name == "Contestação"
        assert entry.base_days == 15
        assert entry.counting_mode == CountingMode.BUSINESS_DAYS
        assert entry.doubling_eligible and entry.joinder_eligible

    def test_lookup_by_name_ignores_accents_and_case(self, catalog):
        assert catalog.get("CONTESTACAO").code == "CPC-001"
        assert catalog.get("  contestação ").code == "CPC-001"

    def test_unknown_key(self, catalog):
        with pytest.raises(ConfigurationNotFound) as exc:
            catalog.get("CPC-999")
        assert exc.value.details == {"kind": "catalog", "key": "CPC-999"}

    def test_special_entries(self, catalog):
        assert catalog.get("ESP-006").base_days == 0
        assert catalog.get("ELE-001").counting_mode == CountingMode.HOURS
        assert not catalog.get("ESP-001").extends_on_non_business_day
        assert catalog.get("CPC-025").deadline_class == DeadlineClass.IMPROPER

    def test_by_category(self, catalog):
        judge_acts = catalog.by_category(ProceduralCategory.JUDGE_ACT)
        assert judge_acts
        assert all(not e.doubling_eligible for e in judge_acts)

    def test_search(self, catalog):
        codes = {e.code for e in catalog.search("contestacao")}
        assert "CPC-001" in codes

    def test_duplicate_codes_rejected(self, catalog):
        entry = catalog.get("CPC-001")
        with pytest.raises(CalendarDataError):
            DeadlineCatalog([entry, entry])

    def test_round_trip(self, catalog):
        restored = DeadlineCatalog.from_dict(catalog.to_dict())
        assert restored.codes() == catalog.codes()
        assert restored.get("RJ-001") == catalog.get("RJ-001")
