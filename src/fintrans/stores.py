"""Persisted profile and transaction log stores.

Both stores read the whole value on load and rewrite it on every change.
Missing or malformed entries load as the empty default.
"""

from __future__ import annotations

import json
from typing import Iterable, List, Optional

from .config import HISTORY_KEY_PREFIX, PROFILE_KEY, STARTING_BALANCE
from .exceptions import SignInError
from .models import TransactionRecord, UserProfile
from .money import AmountLike
from .ops import StructuredLogger
from .storage import KeyValueStorage

# InvalidOperation from decimal is an ArithmeticError, not a ValueError.
_MALFORMED = (ValueError, TypeError, KeyError, ArithmeticError)


class ProfileStore:
    """Keep the signed-in profile under a single storage key."""

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = PROFILE_KEY,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.storage = storage
        self.key = key
        self._logger = logger

    def load(self) -> Optional[UserProfile]:
        raw = self.storage.get_item(self.key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise TypeError("profile entry is not an object")
            return UserProfile.from_dict(data)
        except _MALFORMED as exc:
            if self._logger:
                self._logger.log("storage_malformed", key=self.key, error=str(exc))
            return None

    def save(self, profile: UserProfile) -> None:
        self.storage.set_item(self.key, json.dumps(profile.to_dict()))

    def clear(self) -> None:
        self.storage.remove_item(self.key)

    def sign_in(self, name: str, *, starting_balance: AmountLike = STARTING_BALANCE) -> UserProfile:
        display_name = (name or "").strip()
        if not display_name:
            raise SignInError("Enter name")
        profile = UserProfile.create(display_name, balance=starting_balance)
        self.save(profile)
        if self._logger:
            self._logger.log("signed_in", user=profile.id, name=profile.name)
        return profile

    def sign_out(self) -> None:
        profile = self.load()
        self.clear()
        if self._logger and profile is not None:
            self._logger.log("signed_out", user=profile.id)


class TransactionLogStore:
    """Keep each user's ordered transaction log, newest first."""

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        prefix: str = HISTORY_KEY_PREFIX,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.storage = storage
        self.prefix = prefix
        self._logger = logger

    def key_for(self, user_id: str) -> str:
        return f"{self.prefix}{user_id}"

    def load(self, user_id: str) -> List[TransactionRecord]:
        key = self.key_for(user_id)
        raw = self.storage.get_item(key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError("transaction log entry is not a list")
            return [TransactionRecord.from_dict(item) for item in data]
        except _MALFORMED as exc:
            if self._logger:
                self._logger.log("storage_malformed", key=key, error=str(exc))
            return []

    def save(self, user_id: str, records: Iterable[TransactionRecord]) -> None:
        payload = [record.to_dict() for record in records]
        self.storage.set_item(self.key_for(user_id), json.dumps(payload))


__all__ = ["ProfileStore", "TransactionLogStore"]
