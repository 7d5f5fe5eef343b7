# tests/test_stats_service.py
"""Dashboard counters."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timedelta
from parkpay.schemas.car import CarCreate
from parkpay.schemas.payment import PaymentCreate
from parkpay.services import ticket_service
from parkpay.services.staff_service import seed_reference_data
from parkpay.services.stats_service import compute_stats

NOW = datetime(2025, 6, 1, 15, 30, 0)


class TestComputeStats:
    def test_empty_lot(self, db):
        stats = compute_stats(db, now=NOW)
        assert set(stats.values()) == {0}
        assert len(stats) == 8

    def test_counts_follow_the_lifecycle(self, db):
        ticket_service.create_ticket_inventory(db, count=5, prefix="PARK")
        seed_reference_data(db)
        ticket_service.register_car(db, CarCreate(ticket_code="PARK001", plate="ABC123"))
        ticket_service.register_car(db, CarCreate(ticket_code="PARK002", plate="XYZ789"))
        ticket_service.confirm_parking(db, "PARK001")
        ticket_service.submit_payment(db, PaymentCreate(
            ticket_code="PARK001", transfer_reference="REF-1", bank="0102",
            phone="04141234567", national_id="V-1", amount_paid=2.0,
        ), now=NOW - timedelta(hours=1))

        assert compute_stats(db, now=NOW) == {
            "pending_payments": 1,
            "pending_confirmations": 1,
            "total_staff": 2,
            "today_payments": 1,
            "total_tickets": 5,
            "available_tickets": 3,
            "cars_parked": 2,
            "paid_tickets": 0,
        }

        # the payment was yesterday from tomorrow's point of view
        assert compute_stats(db, now=NOW + timedelta(days=1))["today_payments"] == 0
