"""Authentication engine for the configured user directory."""

from .engine import AuthenticationOutcome, authenticate, password_digest

__all__ = ["AuthenticationOutcome", "authenticate", "password_digest"]
