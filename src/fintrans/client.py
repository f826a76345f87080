"""Clients the transfer flow uses to reach the transfer processor."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from .config import PROCESSOR_TIMEOUT_SECONDS
from .exceptions import ProcessorError
from .models import TransactionRecord, TransactionStatus
from .processor import TransferProcessor


class ProcessorClient(ABC):
    @abstractmethod
    async def process(self, user_id: str, record: TransactionRecord) -> TransactionStatus:
        """Return the processor's decision for ``record``.

        Implementations raise :class:`ProcessorError` when no decision could
        be obtained.
        """


class HttpProcessorClient(ProcessorClient):
    """POST transfers to a remote ``/api/transactions`` endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = PROCESSOR_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client

    async def process(self, user_id: str, record: TransactionRecord) -> TransactionStatus:
        body = {"userId": user_id, "tx": record.to_dict()}
        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=body)
            response.raise_for_status()
            payload = response.json()
            return TransactionStatus.decision(payload["status"])
        except httpx.HTTPError as exc:
            raise ProcessorError(f"Transfer processor request failed: {exc}") from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise ProcessorError(f"Transfer processor sent an unusable response: {exc!r}") from exc


class LocalProcessorClient(ProcessorClient):
    """Call a :class:`TransferProcessor` in the same process."""

    def __init__(self, processor: TransferProcessor) -> None:
        self.processor = processor

    async def process(self, user_id: str, record: TransactionRecord) -> TransactionStatus:
        return await self.processor.decide(record.amount)


__all__ = ["HttpProcessorClient", "LocalProcessorClient", "ProcessorClient"]
