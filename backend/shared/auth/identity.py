"""Identity provider interface.

Credentials, sign-in and sign-up live with the external identity provider.
The game only needs a stable opaque player id and whether it is signed in.
"""

from dataclasses import dataclass
from typing import Protocol


class IdentityProvider(Protocol):
    """Current player identity as reported by the authentication backend."""

    @property
    def player_id(self) -> str: ...

    @property
    def is_authenticated(self) -> bool: ...


@dataclass(frozen=True)
class StaticIdentity:
    """Fixed identity snapshot (tests, tooling, already-resolved sign-in)."""

    player_id: str
    is_authenticated: bool = True
