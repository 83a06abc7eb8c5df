"""Shared-secret lookup used by the packet codec."""

from abc import ABC, abstractmethod
from typing import Any


class SecretProvider(ABC):
    """Supplies the shared secret for a remote address."""

    @abstractmethod
    def fetch_secret(self, remote_address: Any) -> bytes:
        """
        Return the secret used to decode requests from, and sign responses
        to, ``remote_address`` (an ``(ip, port)`` tuple).
        """


class StaticSecretProvider(SecretProvider):
    """One secret for every client."""

    def __init__(self, secret: bytes | str):
        self._secret = secret.encode("utf-8") if isinstance(secret, str) else secret

    def fetch_secret(self, remote_address: Any) -> bytes:
        return self._secret


__all__ = ["SecretProvider", "StaticSecretProvider"]
