"""Exception types raised inside DraftGate."""
from __future__ import annotations


class DraftGateError(Exception):
    """Base class for DraftGate errors."""


class CorrectionServiceError(DraftGateError):
    """The correction service could not produce a usable answer.

    Raised inside the client only; the message boundary turns it into a
    ``{"success": False, "error": ...}`` response.
    """


class ConfigurationError(DraftGateError):
    """A required setting (usually the API key) is missing or invalid."""
