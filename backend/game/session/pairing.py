"""Pairing transport interface.

The visual code exchange (QR encode on one device, scan on the other) lives
outside this package. The session layer only needs the remote player id the
exchange produced.
"""

from typing import Protocol

from game.logic.exceptions import InvalidPairingError


class PairingTransport(Protocol):
    """Deliver the remote player's identifier into a session."""

    async def exchange_pairing_code(self) -> str: ...


class StaticPairingTransport:
    """Transport that hands back a fixed code (already-scanned value, tests)."""

    def __init__(self, code: str) -> None:
        self._code = code

    async def exchange_pairing_code(self) -> str:
        return self._code


def normalize_pairing_code(code: str) -> str:
    """Strip scanner whitespace and reject empty codes."""
    normalized = code.strip()
    if not normalized:
        raise InvalidPairingError("pairing code is empty")
    return normalized
