"""Fake implementations for testing.

These fakes let codec tests run without a database.
"""

from __future__ import annotations

from alpine_keys.models.api_key import ApiKey
from alpine_keys.services.api_key import PUBLIC_ID_LENGTH


class FakeApiKeyStore:
    """In-memory stand-in for the API key persistence layer.

    Records lookups for assertion and assigns IDs on first save.
    """

    def __init__(self) -> None:
        self._records: dict[int, ApiKey] = {}
        self._next_id = 1

        self.lookup_calls: list[str] = []
        self.legacy_lookup_calls: list[str] = []

    def save(self, record: ApiKey) -> ApiKey:
        if record.id is None:
            record.id = self._next_id
            self._next_id += 1
        self._records[record.id] = record
        return record

    def delete(self, api_key_id: int) -> None:
        self._records.pop(api_key_id, None)

    def find_by_public_id(self, public_id: str) -> ApiKey | None:
        self.lookup_calls.append(public_id)
        for record in self._records.values():
            if record.public_id == public_id:
                return record
        return None

    def find_legacy_candidate(self, raw_key_material: str) -> ApiKey | None:
        self.legacy_lookup_calls.append(raw_key_material)
        for record in self._records.values():
            if record.is_legacy and record.public_id == raw_key_material[:PUBLIC_ID_LENGTH]:
                return record
        return None

    async def afind_by_public_id(self, public_id: str) -> ApiKey | None:
        return self.find_by_public_id(public_id)

    async def afind_legacy_candidate(self, raw_key_material: str) -> ApiKey | None:
        return self.find_legacy_candidate(raw_key_material)
