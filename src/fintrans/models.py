"""Domain models used by the fintrans package."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping
from uuid import uuid4

from .exceptions import InvalidTransitionError
from .money import AmountLike, require_positive, to_decimal


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionDirection(str, Enum):
    """Which side of a transfer the profile owner was on."""

    SENT = "sent"
    RECEIVED = "received"


class TransactionStatus(str, Enum):
    """Lifecycle of a transfer: pending until the processor decides."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING

    @classmethod
    def decision(cls, value: str) -> "TransactionStatus":
        """Parse a processor decision, which must be a terminal status."""

        status = cls(value)
        if not status.is_terminal:
            raise ValueError(f"'{value}' is not a processor decision.")
        return status


@dataclass(slots=True)
class UserProfile:
    """The signed-in demo user together with their spendable balance."""

    id: str
    name: str
    balance: Decimal
    token: str

    def __post_init__(self) -> None:
        self.balance = to_decimal(self.balance)

    @classmethod
    def create(cls, name: str, *, balance: AmountLike) -> "UserProfile":
        profile_id = str(uuid4())
        token = base64.b64encode(profile_id.encode("ascii")).decode("ascii")
        return cls(id=profile_id, name=name, balance=to_decimal(balance), token=token)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "balance": str(self.balance),
            "token": self.token,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserProfile":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            balance=to_decimal(data["balance"]),
            token=str(data["token"]),
        )


@dataclass(slots=True)
class TransactionRecord:
    """Represents a single transfer in a user's transaction log.

    Records are created ``pending`` and resolved exactly once, either to
    ``completed`` or to ``failed``.
    """

    counterparty: str
    amount: Decimal
    direction: TransactionDirection = TransactionDirection.SENT
    status: TransactionStatus = TransactionStatus.PENDING
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.amount = require_positive(to_decimal(self.amount))
        self.direction = TransactionDirection(self.direction)
        self.status = TransactionStatus(self.status)

    @property
    def is_pending(self) -> bool:
        return self.status is TransactionStatus.PENDING

    def resolve(self, status: TransactionStatus) -> None:
        target = TransactionStatus(status)
        if not target.is_terminal:
            raise InvalidTransitionError(f"Transaction {self.id} cannot be resolved to '{target.value}'.")
        if not self.is_pending:
            raise InvalidTransitionError(
                f"Transaction {self.id} is already {self.status.value}; cannot become {target.value}."
            )
        self.status = target

    def complete(self) -> None:
        self.resolve(TransactionStatus.COMPLETED)

    def fail(self) -> None:
        self.resolve(TransactionStatus.FAILED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "direction": self.direction.value,
            "counterparty": self.counterparty,
            "amount": str(self.amount),
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TransactionRecord":
        return cls(
            id=str(data["id"]),
            direction=TransactionDirection(data["direction"]),
            counterparty=str(data["counterparty"]),
            amount=to_decimal(data["amount"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            status=TransactionStatus(data["status"]),
        )


__all__ = [
    "TransactionDirection",
    "TransactionRecord",
    "TransactionStatus",
    "UserProfile",
    "utcnow",
]
