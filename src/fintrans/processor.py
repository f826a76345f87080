"""Mock transfer processor and the HTTP route that exposes it.

The processor approves every transfer after a short artificial delay unless
the amount is above a fixed threshold, in which case it reports a failure.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from .config import FAILURE_THRESHOLD, PROCESSOR_DELAY_SECONDS
from .models import TransactionStatus
from .money import AmountLike, exact_decimal
from .ops import StructuredLogger

TRANSACTIONS_PATH = "/api/transactions"


class TransferPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    amount: Decimal


class ProcessTransferRequest(BaseModel):
    userId: str
    tx: TransferPayload


class TransferProcessor:
    """Decide whether a transfer goes through."""

    def __init__(
        self,
        *,
        delay: float = PROCESSOR_DELAY_SECONDS,
        threshold: AmountLike = FAILURE_THRESHOLD,
    ) -> None:
        self.delay = delay
        self.threshold = exact_decimal(threshold)

    async def decide(self, amount: AmountLike) -> TransactionStatus:
        value = exact_decimal(amount)
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if value > self.threshold:
            return TransactionStatus.FAILED
        return TransactionStatus.COMPLETED


def build_processor_router(
    processor: TransferProcessor,
    *,
    logger: Optional[StructuredLogger] = None,
) -> APIRouter:
    """Return a router serving ``/api/transactions`` backed by ``processor``."""

    router = APIRouter()

    @router.post(TRANSACTIONS_PATH)
    async def process_transaction(request: Request) -> JSONResponse:
        try:
            payload: Dict[str, Any] = await request.json()
            body = ProcessTransferRequest.model_validate(payload)
            status = await processor.decide(body.tx.amount)
        except Exception as exc:
            if logger:
                logger.log("processor_error", error=repr(exc))
            return JSONResponse({"error": "server error"}, status_code=500)
        if logger:
            logger.log("transfer_decided", user=body.userId, transaction=body.tx.id, status=status.value)
        return JSONResponse({"status": status.value})

    @router.api_route(TRANSACTIONS_PATH, methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"])
    async def reject_method() -> JSONResponse:
        return JSONResponse(
            {"error": "Method not allowed"},
            status_code=405,
            headers={"Allow": "POST"},
        )

    return router


def create_processor_app(
    processor: Optional[TransferProcessor] = None,
    *,
    logger: Optional[StructuredLogger] = None,
) -> FastAPI:
    """Build a standalone app that only serves the processor route."""

    app = FastAPI(title="fintrans transfer processor")
    app.include_router(build_processor_router(processor or TransferProcessor(), logger=logger))
    return app


__all__ = [
    "ProcessTransferRequest",
    "TRANSACTIONS_PATH",
    "TransferPayload",
    "TransferProcessor",
    "build_processor_router",
    "create_processor_app",
]
