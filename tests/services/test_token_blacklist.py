from __future__ import annotations

import asyncio
import time

from edutrack.services.token_blacklist import InMemoryTokenBlacklist


def test_revoked_until_expiry() -> None:
    blacklist = InMemoryTokenBlacklist()
    asyncio.run(blacklist.revoke("jti-1", time.time() + 60))
    assert asyncio.run(blacklist.is_revoked("jti-1")) is True
    assert asyncio.run(blacklist.is_revoked("jti-2")) is False


def test_already_expired_token_is_not_stored() -> None:
    blacklist = InMemoryTokenBlacklist()
    asyncio.run(blacklist.revoke("jti-1", time.time() - 1))
    assert blacklist._revoked == {}


def test_expired_entries_are_dropped_on_lookup() -> None:
    blacklist = InMemoryTokenBlacklist()
    blacklist._revoked["jti-1"] = time.time() - 1
    assert asyncio.run(blacklist.is_revoked("jti-1")) is False
    assert "jti-1" not in blacklist._revoked
