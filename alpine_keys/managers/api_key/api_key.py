"""ApiKeyManager - persists API keys and authenticates presented keys.

The key format, hashing and comparison live in ApiKeyService; this
manager supplies the lookups and stores the results.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from alpine_keys.config import get_settings
from alpine_keys.errors import ConflictError, NotFoundError
from alpine_keys.models.api_key import ApiKey
from alpine_keys.models.links import ApiKeyTeamLink
from alpine_keys.models.team import Team
from alpine_keys.services.api_key import PUBLIC_ID_LENGTH, ApiKeyService, NewApiKey
from alpine_keys.validators.api_key import validate_api_key

logger = structlog.get_logger()


class ApiKeyManager:
    """Manages API key persistence and authentication."""

    def __init__(self, db_session: AsyncSession, *, prefix: str | None = None) -> None:
        self._db = db_session
        self._log = logger.bind(manager="api_key")
        self._settings = get_settings()
        self._prefix = prefix or self._settings.api_key.prefix

    async def get_by_id(self, api_key_id: int) -> ApiKey | None:
        """Get API key by ID."""
        result = await self._db.execute(select(ApiKey).where(ApiKey.id == api_key_id))
        return result.scalars().first()

    async def get(self, api_key_id: int) -> ApiKey:
        """Get API key by ID.

        Raises:
            NotFoundError: If no such key exists
        """
        record = await self.get_by_id(api_key_id)
        if record is None:
            raise NotFoundError(f"API key not found: {api_key_id}")
        return record

    async def find_by_public_id(self, public_id: str) -> ApiKey | None:
        """Find the record owning a public id."""
        result = await self._db.execute(select(ApiKey).where(ApiKey.public_id == public_id))
        return result.scalars().first()

    async def find_legacy_candidate(self, raw_key_material: str) -> ApiKey | None:
        """Find the migrated legacy record for a legacy secret.

        Migrated legacy records are indexed by the first PUBLIC_ID_LENGTH
        characters of their secret.
        """
        if len(raw_key_material) < PUBLIC_ID_LENGTH:
            return None
        result = await self._db.execute(
            select(ApiKey).where(
                ApiKey.is_legacy == True,  # noqa: E712
                ApiKey.public_id == raw_key_material[:PUBLIC_ID_LENGTH],
            )
        )
        return result.scalars().first()

    async def list(self, *, team_id: int | None = None) -> list[ApiKey]:
        """List API keys, optionally only those associated with a team."""
        query = select(ApiKey)
        if team_id is not None:
            query = query.join(ApiKeyTeamLink).where(ApiKeyTeamLink.team_id == team_id)
        result = await self._db.execute(query.order_by(ApiKey.id))
        return list(result.scalars().all())

    async def save(self, record: ApiKey) -> ApiKey:
        """Insert or update a record. The ID is assigned on first insert.

        Raises:
            ValidationError: If the record violates a constraint
        """
        validate_api_key(record)
        self._db.add(record)
        await self._db.commit()
        await self._db.refresh(record)
        return record

    async def delete(self, api_key_id: int) -> None:
        """Delete a record and its team links.

        Raises:
            NotFoundError: If no such key exists
        """
        record = await self.get(api_key_id)
        await self._db.delete(record)
        await self._db.commit()

    async def create(
        self,
        *,
        comment: str | None = None,
        team_ids: Sequence[int] | None = None,
    ) -> NewApiKey:
        """Create and persist a new API key.

        Returns:
            The saved record and the plaintext key (shown only once)
        """

        async def build(public_id: str) -> NewApiKey:
            new_key = ApiKeyService.generate(comment=comment, public_id=public_id, prefix=self._prefix)
            if team_ids:
                new_key.record.teams = await self._load_teams(team_ids)
            return new_key

        record, key = await self._save_with_public_id(build)
        self._log.info(
            "api_key.create",
            api_key_id=record.id,
            masked_key=self.mask(record),
            teams=record.team_ids,
        )
        return NewApiKey(record, key)

    async def regenerate(self, api_key_id: int) -> NewApiKey:
        """Issue a new public id and secret for an existing key.

        The old plaintext key stops working. Legacy keys become current-format.
        """
        was_legacy = (await self.get(api_key_id)).is_legacy

        async def build(public_id: str) -> NewApiKey:
            # Re-read: a rolled back attempt leaves the instance expired
            record = await self.get(api_key_id)
            return ApiKeyService.regenerate(record, public_id=public_id, prefix=self._prefix)

        record, key = await self._save_with_public_id(build)
        self._log.info(
            "api_key.regenerate",
            api_key_id=record.id,
            masked_key=self.mask(record),
            was_legacy=was_legacy,
        )
        return NewApiKey(record, key)

    async def revoke(self, api_key_id: int) -> None:
        """Revoke (permanently delete) an API key."""
        await self.delete(api_key_id)
        self._log.info("api_key.revoke", api_key_id=api_key_id)

    async def update_comment(self, api_key_id: int, comment: str | None) -> ApiKey:
        record = await self.get(api_key_id)
        record.comment = comment
        return await self.save(record)

    async def set_teams(self, api_key_id: int, team_ids: Sequence[int]) -> ApiKey:
        """Replace the teams an API key is associated with."""
        record = await self.get(api_key_id)
        record.teams = await self._load_teams(team_ids)
        return await self.save(record)

    async def authenticate(self, presented_key: str) -> ApiKey:
        """Verify a presented key and record its use.

        Returns:
            The matching record with ``last_used`` updated

        Raises:
            AuthenticationError: If verification fails for any reason
        """
        record = await ApiKeyService.averify(
            presented_key,
            self.find_by_public_id,
            self.find_legacy_candidate,
            prefix=self._prefix,
        )
        self._db.add(record)
        await self._db.commit()
        self._log.info(
            "api_key.verify.success",
            api_key_id=record.id,
            masked_key=self.mask(record),
            legacy=record.is_legacy,
        )
        return record

    def mask(self, record: ApiKey) -> str:
        return ApiKeyService.mask(record, prefix=self._prefix)

    async def _save_with_public_id(
        self, build: Callable[[str], Awaitable[NewApiKey]]
    ) -> NewApiKey:
        """Save the key ``build`` makes for the first public id that sticks.

        A candidate is skipped when it is already in the table, or when the
        insert loses a race for it against another writer.

        Raises:
            ConflictError: If every attempt collided
        """
        attempts = self._settings.api_key.max_public_id_attempts
        for _ in range(attempts):
            candidate = ApiKeyService.generate_public_id()
            if await self.find_by_public_id(candidate) is not None:
                self._log.warning("api_key.public_id.collision")
                continue

            new_key = await build(candidate)
            try:
                record = await self.save(new_key.record)
            except IntegrityError:
                await self._db.rollback()
                if await self.find_by_public_id(candidate) is None:
                    raise
                self._log.warning("api_key.public_id.collision", concurrent=True)
                continue
            return NewApiKey(record, new_key.key)

        raise ConflictError(
            "Could not allocate a unique public id",
            details={"attempts": attempts},
        )

    async def _load_teams(self, team_ids: Sequence[int]) -> list[Team]:
        """Load teams by ID.

        Raises:
            NotFoundError: If any team does not exist
        """
        wanted = set(team_ids)
        if not wanted:
            return []
        result = await self._db.execute(select(Team).where(Team.id.in_(wanted)))
        teams = list(result.scalars().all())
        missing = wanted - {team.id for team in teams}
        if missing:
            raise NotFoundError(
                f"Team not found: {sorted(missing)[0]}",
                details={"team_ids": sorted(missing)},
            )
        return sorted(teams, key=lambda team: team.name)
