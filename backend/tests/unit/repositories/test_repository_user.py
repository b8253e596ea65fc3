"""Unit tests for UserRepository."""

import pytest
from hiredesk_auth.models.user import User
from hiredesk_auth.repositories.user import UserRepository
from tests.factories.user import UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self, session):
        return UserRepository()

    def test_add_materializes_pk(self, repo, session):
        """``add`` flushes so the id is available inside the Unit of Work."""
        user = repo.add(User(email="new@example.com", name="New", password_hash="x"))

        assert user.id is not None
        assert repo.get(user.id) is user

    def test_get_by_email_is_case_insensitive(self, repo, session):
        """Fetch a user by email regardless of case and whitespace."""
        u = UserFactory(email="alice@example.com")

        fetched = repo.get_by_email("  ALICE@example.com ")
        assert fetched is not None
        assert fetched.id == u.id

    def test_exists_by_email(self, repo, session):
        """Return existence flags for known and unknown email addresses."""
        UserFactory(email="bob@example.com")

        assert repo.exists_by_email("bob@example.com")
        assert not repo.exists_by_email("nonexistent@example.com")

    def test_lookup_by_token_digests(self, repo, session):
        u = UserFactory(verification_token_hash="v" * 64, reset_token_hash="r" * 64)

        assert repo.get_by_verification_token_hash("v" * 64).id == u.id
        assert repo.get_by_reset_token_hash("r" * 64).id == u.id
        assert repo.get_by_reset_token_hash("v" * 64) is None

    def test_update_rejects_unknown_fields(self, repo, session):
        """Only whitelisted attributes can be assigned through ``update``."""
        u = UserFactory()

        with pytest.raises(ValueError):
            repo.update(u, refresh_token_hash="x" * 64)
        with pytest.raises(ValueError):
            repo.update(u, files_uploaded=99)

        repo.update(u, name="Renamed", email_verified=True)
        assert repo.get(u.id).name == "Renamed"

    def test_swap_refresh_hash_is_conditional(self, repo, session):
        u = UserFactory()
        assert repo.set_refresh_hash(u.id, "a" * 64)

        assert repo.swap_refresh_hash(u.id, "a" * 64, "b" * 64) is True
        assert repo.swap_refresh_hash(u.id, "a" * 64, "c" * 64) is False
        assert repo.get_refresh_hash(u.id) == "b" * 64
        assert u.refresh_token_hash == "b" * 64

    def test_clear_refresh_hash(self, repo, session):
        u = UserFactory()
        repo.set_refresh_hash(u.id, "a" * 64)

        assert repo.clear_refresh_hash(u.id, "b" * 64) is False
        assert repo.clear_refresh_hash(u.id, "a" * 64) is True
        assert repo.get_refresh_hash(u.id) is None
        # Unconditional clear succeeds as long as the row exists
        assert repo.clear_refresh_hash(u.id) is True
        assert repo.clear_refresh_hash(999_999) is False

    def test_consume_verification_token_once(self, repo, session):
        u = UserFactory(verification_token_hash="v" * 64)

        assert repo.consume_verification_token(u.id, "x" * 64) is False
        assert repo.consume_verification_token(u.id, "v" * 64) is True
        assert repo.consume_verification_token(u.id, "v" * 64) is False
        assert u.email_verified is True
        assert u.verification_token_hash is None

    def test_consume_reset_token_once(self, repo, session):
        u = UserFactory(reset_token_hash="r" * 64, password_hash="old")

        assert repo.consume_reset_token(u.id, "r" * 64, "first") is True
        assert repo.consume_reset_token(u.id, "r" * 64, "second") is False
        assert u.password_hash == "first"
        assert u.reset_token_hash is None

    def test_increment_counter_with_ceiling(self, repo, session):
        u = UserFactory()

        assert repo.increment_counter(u.id, "selected_candidate", 10, ceiling=10)
        assert not repo.increment_counter(u.id, "selected_candidate", 1, ceiling=10)
        assert repo.increment_counter(u.id, "files_uploaded", 1000)

        counters = repo.get_counters(u.id)
        assert counters["selected_candidate"] == 10
        assert counters["files_uploaded"] == 1000
        assert u.total_files_uploaded == 1000
        assert u.total_usage == 1010

    def test_increment_unknown_counter(self, repo, session):
        u = UserFactory()

        with pytest.raises(KeyError):
            repo.increment_counter(u.id, "downloads")

    def test_get_counters_for_missing_user(self, repo, session):
        assert repo.get_counters(999_999) is None
