"""Convert wallet state to JSON friendly dictionaries."""

from __future__ import annotations

import json
from typing import Dict, TYPE_CHECKING

from .models import TransactionRecord

if TYPE_CHECKING:  # pragma: no cover
    from .transfers import TransferFlow


class ApiExporter:
    def wallet_snapshot(self, flow: "TransferFlow") -> Dict[str, object]:
        return {
            "user": {"id": flow.profile.id, "name": flow.profile.name},
            "balance": float(flow.balance),
            "busy": flow.busy,
            "transactions": [self._serialise_transaction(record) for record in flow.history],
        }

    def to_json(self, payload: Dict[str, object]) -> str:
        return json.dumps(payload, sort_keys=True)

    def _serialise_transaction(self, record: TransactionRecord) -> Dict[str, object]:
        return {
            "id": record.id,
            "direction": record.direction.value,
            "counterparty": record.counterparty,
            "amount": float(record.amount),
            "timestamp": record.timestamp.isoformat(),
            "status": record.status.value,
        }


__all__ = ["ApiExporter"]
