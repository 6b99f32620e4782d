"""Identity interfaces shared by the session and scoring layers."""

from shared.auth.identity import IdentityProvider, StaticIdentity

__all__ = [
    "IdentityProvider",
    "StaticIdentity",
]
