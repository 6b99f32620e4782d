"""Persistence models for the data access layer."""

from datetime import datetime
from typing import Any, Self

from pydantic import BaseModel, Field

# Document field names in the store schema.
FIELD_NAME = "name"
FIELD_WINS = "wins"
FIELD_LOSSES = "losses"
FIELD_DRAWS = "draws"
FIELD_CREATED_AT = "createdAt"


class PlayerRecord(BaseModel, frozen=True):
    """Durable win/loss/draw tally for one player identity."""

    player_id: str
    name: str = ""
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    draws: int = Field(default=0, ge=0)
    created_at: datetime | None = None

    @property
    def games_played(self) -> int:
        return self.wins + self.losses + self.draws

    @property
    def win_rate(self) -> float:
        """Percentage of decisive games won; draws do not count either way."""
        decisive = self.wins + self.losses
        return (self.wins / decisive) * 100 if decisive > 0 else 0.0

    @classmethod
    def from_document(cls, player_id: str, data: dict[str, Any]) -> Self:
        """Build a record from a stored document, defaulting any missing field."""
        return cls(
            player_id=player_id,
            name=data.get(FIELD_NAME) or "",
            wins=data.get(FIELD_WINS) or 0,
            losses=data.get(FIELD_LOSSES) or 0,
            draws=data.get(FIELD_DRAWS) or 0,
            created_at=data.get(FIELD_CREATED_AT),
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            FIELD_NAME: self.name,
            FIELD_WINS: self.wins,
            FIELD_LOSSES: self.losses,
            FIELD_DRAWS: self.draws,
        }
        if self.created_at is not None:
            document[FIELD_CREATED_AT] = self.created_at.isoformat()
        return document
