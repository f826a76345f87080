"""Custom exception hierarchy for the fintrans package."""

from __future__ import annotations


class FinTransError(Exception):
    """Base class for all fintrans specific errors."""


class TransferValidationError(FinTransError, ValueError):
    """Raised when transfer input is rejected before any state changes."""


class InsufficientFundsError(TransferValidationError):
    """Raised when a transfer amount exceeds the available balance."""


class SignInError(FinTransError, ValueError):
    """Raised when a demo sign-in is attempted without a display name."""


class ProcessorError(FinTransError):
    """Raised when the transfer processor could not be reached or answered badly."""


class InvalidTransitionError(FinTransError):
    """Raised when a transaction record is moved out of a terminal state."""
