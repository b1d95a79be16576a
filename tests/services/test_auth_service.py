from __future__ import annotations

from datetime import UTC, datetime

import pytest
from argon2 import PasswordHasher

from edutrack.repos.user_repo import InMemoryUserRepo
from edutrack.services.auth_service import authenticate_user, hash_password, verify_password


def _repo_with(password_hash: str) -> InMemoryUserRepo:
    repo = InMemoryUserRepo()
    repo.add(
        username="alice",
        password_hash=password_hash,
        role="teacher",
        first_name="Alice",
        last_name="Martin",
        created_at=datetime.now(UTC),
    )
    return repo


def test_hash_and_verify() -> None:
    hashed = hash_password("pw123456")
    assert hashed != "pw123456"
    assert verify_password("pw123456", hashed)
    assert not verify_password("wrong", hashed)


def test_hash_rejects_empty_password() -> None:
    with pytest.raises(ValueError):
        hash_password("")


def test_verify_tolerates_garbage_hash() -> None:
    assert verify_password("pw", "not-an-argon2-hash") is False


def test_authenticate_user_rehashes_when_needed() -> None:
    # A deliberately weak configuration the default hasher wants to upgrade.
    old_ph = PasswordHasher(time_cost=1, memory_cost=8 * 1024, parallelism=1)
    old_hash = old_ph.hash("pw123")
    repo = _repo_with(old_hash)

    assert authenticate_user(repo, "alice", "pw123") is not None
    stored = repo.get_by_username("alice")
    assert stored is not None
    assert stored.password_hash != old_hash
    assert verify_password("pw123", stored.password_hash)


def test_authenticate_user_rejects_inactive() -> None:
    repo = _repo_with(hash_password("pw123"))
    user = repo.get_by_username("alice")
    assert user is not None
    repo.update(user.id, is_active=False)
    assert authenticate_user(repo, "alice", "pw123") is None


def test_authenticate_unknown_user() -> None:
    assert authenticate_user(InMemoryUserRepo(), "nobody", "pw") is None
