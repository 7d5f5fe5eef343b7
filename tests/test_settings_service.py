# tests/test_settings_service.py
"""Company settings: defaults, legacy tariff migration and write validation."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from pydantic import ValidationError
from parkpay.database import SessionLocal
from parkpay.models.company_settings import CompanySettings
from parkpay.schemas.company_settings import CompanySettingsIn, TariffsIn
from parkpay.services.settings_service import (
    get_company_settings, get_public_settings, get_tariffs, migrate_tariffs, update_company_settings,
)

VALID_TARIFFS = {"day_rate": 2.5, "night_rate": 3.25, "exchange_rate": 36.5,
                 "night_start": "19:00", "night_end": "05:30"}


class TestReadSettings:
    def test_default_is_synthesized_not_persisted(self, db):
        current = get_company_settings(db)

        assert current["tariffs"] == {"day_rate": 3.0, "night_rate": 3.9, "exchange_rate": 35.0,
                                      "night_start": "18:00", "night_end": "06:00"}
        assert current["mobile_payment"]["bank"] == ""
        assert db.query(CompanySettings).count() == 0

    def test_legacy_single_rate_is_migrated_and_persisted(self, db):
        db.add(CompanySettings(tariffs={"hourly_rate": 5, "exchange_rate": 36}))
        db.commit()

        tariffs = get_company_settings(db, commit=True)["tariffs"]
        db.close()

        assert tariffs == {"day_rate": 5.0, "night_rate": 6.5, "exchange_rate": 36.0,
                           "night_start": "18:00", "night_end": "06:00"}
        other = SessionLocal()
        try:
            assert other.query(CompanySettings).one().tariffs["day_rate"] == 5.0
        finally:
            other.close()

    def test_migration_inside_a_transition_waits_for_its_commit(self, db):
        db.add(CompanySettings(tariffs={"hourly_rate": 5, "exchange_rate": 36}))
        db.commit()

        assert get_tariffs(db)["day_rate"] == 5.0
        db.rollback()

        assert db.query(CompanySettings).one().tariffs == {"hourly_rate": 5, "exchange_rate": 36}

    def test_partial_shape_keeps_its_day_rate(self):
        tariffs, changed = migrate_tariffs({"day_rate": 5.0, "exchange_rate": 40.0})
        assert changed
        assert tariffs["day_rate"] == 5.0
        assert tariffs["night_rate"] == 6.5
        assert tariffs["exchange_rate"] == 40.0

        tariffs, _ = migrate_tariffs({"night_rate": 7.0, "hourly_rate": 4})
        assert tariffs["day_rate"] == 4.0
        assert tariffs["night_rate"] == 7.0

    def test_current_shape_is_left_alone(self):
        tariffs, changed = migrate_tariffs(dict(VALID_TARIFFS))
        assert not changed
        assert tariffs == VALID_TARIFFS

    def test_public_settings_have_no_row_id(self, db):
        public = get_public_settings(db)
        assert set(public) == {"mobile_payment", "bank_transfer", "tariffs"}


class TestWriteSettings:
    def test_upsert_keeps_a_single_row(self, db):
        first = update_company_settings(db, CompanySettingsIn(tariffs=TariffsIn(**VALID_TARIFFS)))
        second = update_company_settings(db, CompanySettingsIn(
            mobile_payment={"bank": "0102", "national_id": "J-1234", "phone": "04141234567"},
            tariffs=TariffsIn(**{**VALID_TARIFFS, "day_rate": 4}),
        ))

        assert first["created"] is True
        assert second["created"] is False
        assert db.query(CompanySettings).count() == 1
        assert get_tariffs(db)["day_rate"] == 4.0
        assert get_company_settings(db)["mobile_payment"]["bank"] == "0102"

    def test_rates_are_rounded_to_two_decimals(self):
        tariffs = TariffsIn(**{**VALID_TARIFFS, "day_rate": 3.456, "exchange_rate": 40.001})
        assert tariffs.day_rate == 3.46
        assert tariffs.exchange_rate == 40.0

    @pytest.mark.parametrize("field,value", [
        ("day_rate", "3"),
        ("night_rate", True),
        ("exchange_rate", -1),
        ("day_rate", None),
        ("night_start", "24:00"),
        ("night_end", "6:00"),
        ("night_start", "18h00"),
    ])
    def test_invalid_tariffs_are_rejected(self, field, value):
        with pytest.raises(ValidationError):
            TariffsIn(**{**VALID_TARIFFS, field: value})

    def test_invalid_payload_writes_nothing(self, db):
        with pytest.raises(ValidationError):
            update_company_settings(db, CompanySettingsIn(tariffs={**VALID_TARIFFS, "day_rate": "abc"}))
        assert db.query(CompanySettings).count() == 0
