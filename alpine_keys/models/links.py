"""Association tables."""

from typing import Optional

from sqlmodel import Field, SQLModel


class ApiKeyTeamLink(SQLModel, table=True):
    """Many-to-many link between API keys and teams.

    Holds references only; deleting an API key drops its links, never the team.
    """

    __tablename__ = "apikeys_teams"

    apikey_id: Optional[int] = Field(
        default=None,
        foreign_key="apikeys.id",
        primary_key=True,
        ondelete="CASCADE",
    )
    team_id: Optional[int] = Field(
        default=None,
        foreign_key="teams.id",
        primary_key=True,
    )
