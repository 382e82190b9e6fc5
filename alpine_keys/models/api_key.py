"""API Key data model.

Stores API keys for authentication. Only the SHA3-256 hash of the secret
portion is persisted; the plaintext key and secret are handed out once by
the codec (see ``alpine_keys.services.api_key.NewApiKey``) and never live
on this record.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, Relationship, SQLModel

from alpine_keys.models.links import ApiKeyTeamLink
from alpine_keys.utils.datetime import as_utc, utcnow

if TYPE_CHECKING:
    from alpine_keys.models.team import Team


class ApiKey(SQLModel, table=True):
    """API Key record.

    Current-format keys have a ``public_id`` used for lookup. Keys issued
    before public ids existed are flagged ``is_legacy``; when they were
    migrated they received a ``public_id`` derived from the legacy secret
    and a ``secret_hash``.
    """

    __tablename__ = "apikeys"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Nullable for records that predate public ids
    public_id: Optional[str] = Field(default=None, unique=True, max_length=5)

    # Hex-encoded SHA3-256 of the secret; nullable only for unmigrated legacy keys
    secret_hash: Optional[str] = Field(default=None, max_length=64)

    comment: Optional[str] = Field(default=None, max_length=255)

    created: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    last_used: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )

    is_legacy: bool = Field(default=False)

    # Ordered by team name for stable display
    teams: list["Team"] = Relationship(
        link_model=ApiKeyTeamLink,
        sa_relationship_kwargs={
            "lazy": "selectin",
            "order_by": "Team.name",
        },
    )

    @property
    def name(self) -> str:
        """Display name of the key: its masked form."""
        from alpine_keys.services.api_key import ApiKeyService

        return ApiKeyService.mask(self)

    @property
    def team_ids(self) -> list[int]:
        """IDs of associated teams, in display order."""
        return [team.id for team in self.teams if team.id is not None]

    def touch(self, now: datetime) -> None:
        """Record a successful authentication at ``now``.

        ``last_used`` never moves backwards.
        """
        now = as_utc(now)
        if self.last_used is None or now > as_utc(self.last_used):
            self.last_used = now
