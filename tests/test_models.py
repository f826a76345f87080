import base64
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fintrans.exceptions import InvalidTransitionError
from fintrans.models import TransactionDirection, TransactionRecord, TransactionStatus, UserProfile


def test_new_record_is_pending_sent_and_stamped() -> None:
    before = datetime.now(timezone.utc)

    record = TransactionRecord(counterparty="Alice", amount="200")

    assert record.status is TransactionStatus.PENDING
    assert record.direction is TransactionDirection.SENT
    assert record.amount == Decimal("200.00")
    assert record.timestamp >= before
    assert record.id


def test_record_ids_are_unique() -> None:
    ids = {TransactionRecord(counterparty="Alice", amount=1).id for _ in range(50)}

    assert len(ids) == 50


@pytest.mark.parametrize("amount", [0, "-5", "0.001"])
def test_record_requires_positive_amount(amount) -> None:
    with pytest.raises(ValueError):
        TransactionRecord(counterparty="Alice", amount=amount)


def test_record_resolves_once_from_pending() -> None:
    record = TransactionRecord(counterparty="Alice", amount=10)

    record.complete()

    assert record.status is TransactionStatus.COMPLETED
    with pytest.raises(InvalidTransitionError):
        record.fail()
    assert record.status is TransactionStatus.COMPLETED


def test_record_cannot_be_resolved_back_to_pending() -> None:
    record = TransactionRecord(counterparty="Alice", amount=10)

    with pytest.raises(InvalidTransitionError):
        record.resolve(TransactionStatus.PENDING)


def test_processor_decision_must_be_terminal() -> None:
    assert TransactionStatus.decision("completed") is TransactionStatus.COMPLETED
    assert TransactionStatus.decision("failed") is TransactionStatus.FAILED
    with pytest.raises(ValueError):
        TransactionStatus.decision("pending")
    with pytest.raises(ValueError):
        TransactionStatus.decision("approved")


def test_record_dictionary_form() -> None:
    record = TransactionRecord(counterparty="Bob", amount="12.5", id="tx-1")
    record.fail()

    data = record.to_dict()

    assert data["id"] == "tx-1"
    assert data["direction"] == "sent"
    assert data["counterparty"] == "Bob"
    assert data["amount"] == "12.50"
    assert data["status"] == "failed"
    assert TransactionRecord.from_dict(data) == record


def test_received_records_are_supported() -> None:
    record = TransactionRecord.from_dict(
        {
            "id": "tx-2",
            "direction": "received",
            "counterparty": "Erin",
            "amount": 40,
            "timestamp": "2026-01-02T03:04:05+00:00",
            "status": "completed",
        }
    )

    assert record.direction is TransactionDirection.RECEIVED
    assert record.amount == Decimal("40.00")
    assert record.timestamp.year == 2026


def test_profile_creation_assigns_id_and_token() -> None:
    profile = UserProfile.create("Dana", balance=1000)

    assert profile.name == "Dana"
    assert profile.balance == Decimal("1000.00")
    assert base64.b64decode(profile.token).decode("ascii") == profile.id
    assert UserProfile.create("Dana", balance=1000).id != profile.id
    assert UserProfile.from_dict(profile.to_dict()) == profile
