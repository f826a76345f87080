"""Optimistic transfer submission for a signed-in profile.

A transfer is applied locally before the processor has answered: the record
is logged as ``pending`` and the balance is deducted straight away. Once the
processor responds the record takes the processor's decision. Only when the
call itself fails is the deduction rolled back; a ``failed`` decision from the
processor leaves the balance deducted.

Transfers are not serialized. Overlapping transfers each resolve their own
record by id, and balance adjustments from them are applied in whatever order
the calls finish. Each state change is made under a lock; transfers may be
started from worker threads while completions run on the event loop.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from .client import ProcessorClient
from .exceptions import InsufficientFundsError, TransferValidationError
from .models import TransactionDirection, TransactionRecord, TransactionStatus, UserProfile
from .money import format_currency, parse_amount
from .ops import StructuredLogger
from .stores import ProfileStore, TransactionLogStore


@dataclass(slots=True)
class TransferOutcome:
    """Result of a transfer once the processor call has finished."""

    record: TransactionRecord
    balance: Decimal
    error: Optional[str] = None

    @property
    def status(self) -> TransactionStatus:
        return self.record.status

    @property
    def rolled_back(self) -> bool:
        return self.error is not None


def validate_transfer(balance: Decimal, recipient: str | None, amount_input: str | None) -> Decimal:
    """Return the parsed amount or raise :class:`TransferValidationError`."""

    if not (recipient or "").strip():
        raise TransferValidationError("Enter a recipient.")
    try:
        amount = parse_amount(amount_input)
    except ValueError as exc:
        raise TransferValidationError("Enter an amount greater than zero.") from exc
    if amount <= Decimal("0"):
        raise TransferValidationError("Enter an amount greater than zero.")
    if amount > balance:
        raise InsufficientFundsError(
            f"Insufficient funds: {format_currency(amount)} is more than your balance of "
            f"{format_currency(balance)}."
        )
    return amount


class TransferFlow:
    """Hold one profile's wallet state and run transfers against it."""

    def __init__(
        self,
        profile: UserProfile,
        *,
        processor: ProcessorClient,
        profiles: ProfileStore,
        history: TransactionLogStore,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.profile = profile
        self._processor = processor
        self._profiles = profiles
        self._history_store = history
        self._logger = logger or StructuredLogger()
        self._history: List[TransactionRecord] = history.load(profile.id)
        self.busy = False
        self.recipient = ""
        self.amount_input = ""
        self.closed = False
        self._lock = threading.Lock()

    def close(self) -> None:
        """Stop mirroring the profile to storage, e.g. after sign-out.

        Transfers still in flight keep resolving their records, but balance
        changes no longer recreate the removed profile entry.
        """

        self.closed = True

    @property
    def balance(self) -> Decimal:
        return self.profile.balance

    @property
    def history(self) -> Tuple[TransactionRecord, ...]:
        """Newest first."""

        return tuple(self._history)

    @property
    def has_pending(self) -> bool:
        return any(record.is_pending for record in self._history)

    def get_record(self, record_id: str) -> Optional[TransactionRecord]:
        for record in self._history:
            if record.id == record_id:
                return record
        return None

    def start_transfer(
        self,
        recipient: str | None = None,
        amount_input: str | None = None,
    ) -> TransactionRecord:
        """Validate the form and apply the transfer optimistically."""

        with self._lock:
            if recipient is not None:
                self.recipient = recipient
            if amount_input is not None:
                self.amount_input = amount_input
            amount = validate_transfer(self.balance, self.recipient, self.amount_input)

            record = TransactionRecord(
                counterparty=self.recipient.strip(),
                amount=amount,
                direction=TransactionDirection.SENT,
            )
            self._history.insert(0, record)
            self._save_history()
            self._adjust_balance(-amount)
            self.busy = True
        self._logger.log(
            "transfer_started",
            user=self.profile.id,
            transaction=record.id,
            to=record.counterparty,
            amount=str(amount),
            balance=str(self.balance),
        )
        return record

    async def finish_transfer(self, record: TransactionRecord) -> TransferOutcome:
        """Wait for the processor and reconcile ``record`` with its answer."""

        error: Optional[str] = None
        try:
            decision = await self._processor.process(self.profile.id, record)
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
            with self._lock:
                self._resolve(record, TransactionStatus.FAILED)
                self._adjust_balance(record.amount)
            self._logger.log(
                "transfer_rolled_back",
                user=self.profile.id,
                transaction=record.id,
                error=error,
                balance=str(self.balance),
            )
        else:
            with self._lock:
                self._resolve(record, decision)
            self._logger.log(
                "transfer_resolved",
                user=self.profile.id,
                transaction=record.id,
                status=record.status.value,
                balance=str(self.balance),
            )
        finally:
            with self._lock:
                self.busy = False
                self.recipient = ""
                self.amount_input = ""
        return TransferOutcome(record=record, balance=self.balance, error=error)

    async def submit_transfer(
        self,
        recipient: str | None = None,
        amount_input: str | None = None,
    ) -> TransferOutcome:
        record = self.start_transfer(recipient, amount_input)
        return await self.finish_transfer(record)

    def _resolve(self, record: TransactionRecord, status: TransactionStatus) -> None:
        record.resolve(status)
        self._save_history()

    def _adjust_balance(self, delta: Decimal) -> None:
        self.profile.balance = self.profile.balance + delta
        if not self.closed:
            self._profiles.save(self.profile)

    def _save_history(self) -> None:
        self._history_store.save(self.profile.id, self._history)


__all__ = ["TransferFlow", "TransferOutcome", "validate_transfer"]
