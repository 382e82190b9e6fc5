"""Team data model.

Teams are referenced by API keys; this package does not manage their
lifecycle beyond simple creation.
"""

import uuid
from typing import Optional

from sqlmodel import Field, SQLModel


class Team(SQLModel, table=True):
    """Team - a named group that API keys can be associated with."""

    __tablename__ = "teams"

    id: Optional[int] = Field(default=None, primary_key=True)
    uuid: str = Field(default_factory=lambda: str(uuid.uuid4()), unique=True)
    name: str = Field(index=True, max_length=255)
