# tests/test_payment_queue.py
"""Review queue ordering and urgency scoring."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timedelta
from parkpay.models.payment import Payment
from parkpay.schemas.car import CarCreate
from parkpay.schemas.payment import PaymentCreate
from parkpay.services import ticket_service
from parkpay.services.payment_queue import urgency_score, build_review_queue

BASE = datetime(2025, 6, 1, 12, 0, 0)


def submit(db, code, paid_at, exit_time=None):
    body = PaymentCreate(ticket_code=code, transfer_reference=f"REF-{code}", bank="0134",
                         phone="04121234567", national_id="V-1", amount_paid=3.0, exit_time=exit_time)
    return ticket_service.submit_payment(db, body, now=paid_at)


class TestUrgencyScore:
    def test_thresholds(self):
        assert urgency_score(None, BASE) == 0
        assert urgency_score(BASE - timedelta(minutes=1), BASE) == 4
        assert urgency_score(BASE + timedelta(minutes=14), BASE) == 3
        assert urgency_score(BASE + timedelta(minutes=15), BASE) == 2
        assert urgency_score(BASE + timedelta(minutes=29), BASE) == 2
        assert urgency_score(BASE + timedelta(minutes=45), BASE) == 1
        assert urgency_score(BASE + timedelta(minutes=60), BASE) == 0


class TestReviewQueue:
    def test_most_urgent_first_then_newest(self, db):
        ticket_service.create_ticket_inventory(db, count=4, prefix="PARK")
        for i, code in enumerate(["PARK001", "PARK002", "PARK003", "PARK004"]):
            ticket_service.register_car(db, CarCreate(ticket_code=code, plate=f"AAA10{i}"))

        submit(db, "PARK001", BASE, exit_time="60min")                        # 48 min left → 1
        submit(db, "PARK002", BASE + timedelta(minutes=5))                    # no exit time → 0
        submit(db, "PARK003", BASE + timedelta(minutes=10), exit_time="5min")  # 3 min left → 3
        submit(db, "PARK004", BASE + timedelta(minutes=20))                   # no exit time → 0

        queue = build_review_queue(db, now=BASE + timedelta(minutes=12))

        assert [row["ticket_code"] for row in queue] == ["PARK003", "PARK001", "PARK004", "PARK002"]
        assert [row["urgency"] for row in queue] == [3, 1, 0, 0]
        assert queue[0]["ticket_status"] == "payment_pending"
        assert queue[0]["car_info"]["plate"] == "AAA102"

    def test_validated_payments_leave_the_queue(self, db):
        ticket_service.create_ticket_inventory(db, count=1, prefix="PARK")
        ticket_service.register_car(db, CarCreate(ticket_code="PARK001", plate="ABC123"))
        payment = submit(db, "PARK001", BASE)
        ticket_service.validate_payment(db, payment.id)

        assert build_review_queue(db, now=BASE) == []

    def test_car_snapshot_falls_back_to_live_car(self, db):
        ticket_service.create_ticket_inventory(db, count=1, prefix="PARK")
        ticket_service.register_car(db, CarCreate(ticket_code="PARK001", plate="ABC123", color="Blue"))
        payment = submit(db, "PARK001", BASE)
        db.query(Payment).filter(Payment.id == payment.id).one().car_info = None
        db.commit()

        row = build_review_queue(db, now=BASE)[0]
        assert row["car_info"]["plate"] == "ABC123"
        assert row["car_info"]["color"] == "Blue"
