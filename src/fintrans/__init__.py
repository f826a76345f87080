"""fintrans: a demo wallet with optimistic mock money transfers."""

from .api import ApiExporter
from .client import HttpProcessorClient, LocalProcessorClient, ProcessorClient
from .exceptions import (
    FinTransError,
    InsufficientFundsError,
    InvalidTransitionError,
    ProcessorError,
    SignInError,
    TransferValidationError,
)
from .models import TransactionDirection, TransactionRecord, TransactionStatus, UserProfile
from .ops import StructuredLogger
from .processor import TransferProcessor, build_processor_router, create_processor_app
from .storage import KeyValueStorage, MemoryStorage, NamespacedStorage
from .stores import ProfileStore, TransactionLogStore
from .transfers import TransferFlow, TransferOutcome, validate_transfer

__all__ = [
    "ApiExporter",
    "FinTransError",
    "HttpProcessorClient",
    "InsufficientFundsError",
    "InvalidTransitionError",
    "KeyValueStorage",
    "LocalProcessorClient",
    "MemoryStorage",
    "NamespacedStorage",
    "ProcessorClient",
    "ProcessorError",
    "ProfileStore",
    "SignInError",
    "StructuredLogger",
    "TransactionDirection",
    "TransactionLogStore",
    "TransactionRecord",
    "TransactionStatus",
    "TransferFlow",
    "TransferOutcome",
    "TransferProcessor",
    "TransferValidationError",
    "UserProfile",
    "build_processor_router",
    "create_processor_app",
    "validate_transfer",
]
