"""
Tests for the session store

Covers credential validation order, persistence under the "auth" key,
the fixed 24 hour expiry window and profile updates.
"""

import json
import pytest
from datetime import datetime, timedelta, timezone

from gesture_transfer.config import GestureTransferConfig
from gesture_transfer.session import (
    SessionStore, Address, AuthResult,
    is_valid_email, is_valid_phone,
    MSG_LOGIN_SUCCESS, MSG_LOGIN_FAILED, MSG_INVALID_EMAIL, MSG_INVALID_PHONE,
    MSG_GMAIL_REQUIRED, MSG_PROFILE_UPDATED, MSG_PROFILE_FAILED, MSG_NO_SESSION
)
from gesture_transfer.storage import InMemoryLocalStorage, AUTH_KEY


class BrokenStorage(InMemoryLocalStorage):
    """Storage whose writes always fail"""

    def set_item(self, key, value):
        raise RuntimeError("quota exceeded")


class TestValidators:
    """Test credential format checks"""

    def test_email(self):
        """Test email syntax"""
        assert is_valid_email("user@gmail.com")
        assert is_valid_email("first.last@yahoo.co.id")
        assert not is_valid_email("user@gmail")
        assert not is_valid_email("user gmail.com")
        assert not is_valid_email("")

    def test_phone(self):
        """Test phone digits after stripping punctuation"""
        assert is_valid_phone("081234567890")
        assert is_valid_phone("+62 812-3456-7890")
        assert is_valid_phone("(021) 555-12345")
        assert not is_valid_phone("123")
        assert not is_valid_phone("+62812345678901234")
        assert not is_valid_phone("0812abc4567")


class TestSessionStore:
    """Test login, logout, restore and profile updates"""

    def setup_method(self):
        """Set up test fixtures"""
        self.now = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
        self.storage = InMemoryLocalStorage()
        self.settings = GestureTransferConfig(login_delay_seconds=0)
        self.store = self._new_store()

    def _new_store(self, storage=None):
        return SessionStore(storage or self.storage, self.settings, clock=lambda: self.now)

    @pytest.mark.asyncio
    async def test_login_success(self):
        """Test a Gmail login opens and persists a session"""
        result = await self.store.login("user@gmail.com", "081234567890")

        assert result == AuthResult(True, MSG_LOGIN_SUCCESS)
        assert self.store.is_authenticated
        assert self.store.state.is_loading is False
        assert self.store.user.email == "user@gmail.com"
        assert self.store.user.login_time == self.now
        assert self.store.user.profile.member_since == self.now

        blob = json.loads(self.storage.get_item(AUTH_KEY))
        assert blob["is_authenticated"] is True
        assert blob["user"]["email"] == "user@gmail.com"
        assert blob["user"]["login_time"] == self.now.isoformat()

    @pytest.mark.asyncio
    async def test_login_domain_case_insensitive(self):
        """Test the Gmail suffix check ignores case"""
        result = await self.store.login("User@GMAIL.COM", "+62 812-3456-7890")
        assert result.success is True

    @pytest.mark.asyncio
    async def test_login_rejects_other_domain(self):
        """Test non-Gmail addresses are rejected"""
        result = await self.store.login("user@yahoo.com", "081234567890")

        assert result == AuthResult(False, MSG_GMAIL_REQUIRED)
        assert not self.store.is_authenticated
        assert self.store.state.is_loading is False
        assert self.storage.get_item(AUTH_KEY) is None

    @pytest.mark.asyncio
    async def test_login_rejects_short_phone(self):
        """Test short phone numbers are rejected"""
        result = await self.store.login("user@gmail.com", "123")
        assert result == AuthResult(False, MSG_INVALID_PHONE)
        assert not self.store.is_authenticated

    @pytest.mark.asyncio
    async def test_login_validation_order(self):
        """Test email syntax is checked before phone and domain"""
        result = await self.store.login("not-an-email", "123")
        assert result.message == MSG_INVALID_EMAIL

        result = await self.store.login("user@yahoo.com", "123")
        assert result.message == MSG_INVALID_PHONE

    @pytest.mark.asyncio
    async def test_login_storage_failure(self):
        """Test unexpected faults become a generic failure"""
        store = self._new_store(BrokenStorage())
        result = await store.login("user@gmail.com", "081234567890")

        assert result == AuthResult(False, MSG_LOGIN_FAILED)
        assert store.state.is_loading is False

    @pytest.mark.asyncio
    async def test_restore_within_window(self):
        """Test a session younger than 24 hours is restored"""
        await self.store.login("user@gmail.com", "081234567890")

        self.now += timedelta(hours=23, minutes=59)
        restored = self._new_store()
        assert restored.init() is True
        assert restored.is_authenticated
        assert restored.user.email == "user@gmail.com"
        assert restored.user.login_time == self.now - timedelta(hours=23, minutes=59)

    @pytest.mark.asyncio
    async def test_expired_session_discarded(self):
        """Test a 25 hour old session is removed on restore"""
        await self.store.login("user@gmail.com", "081234567890")

        self.now += timedelta(hours=25)
        restored = self._new_store()
        assert restored.init() is False
        assert not restored.is_authenticated
        assert self.storage.get_item(AUTH_KEY) is None

    @pytest.mark.asyncio
    async def test_session_expires_at_exactly_24_hours(self):
        """Test the window boundary is exclusive"""
        await self.store.login("user@gmail.com", "081234567890")

        self.now += timedelta(hours=24)
        assert self._new_store().init() is False

    @pytest.mark.asyncio
    async def test_live_session_expires_without_restart(self):
        """Test a running store drops the session once the window passes"""
        await self.store.login("user@gmail.com", "081234567890")
        assert self.store.is_authenticated

        self.now += timedelta(hours=25)
        assert not self.store.is_authenticated
        assert self.store.user is None
        assert self.storage.get_item(AUTH_KEY) is None

    @pytest.mark.asyncio
    async def test_update_profile_after_expiry(self):
        """Test profile updates are refused once the session has lapsed"""
        await self.store.login("user@gmail.com", "081234567890")

        self.now += timedelta(hours=25)
        result = self.store.update_profile({"full_name": "Jane"})
        assert result == AuthResult(False, MSG_NO_SESSION)
        assert self.storage.get_item(AUTH_KEY) is None

    def test_restore_utc_designator(self):
        """Test login times stamped with a trailing Z are readable"""
        self.storage.set_item(AUTH_KEY, json.dumps({
            "is_authenticated": True,
            "user": {
                "email": "user@gmail.com",
                "phone": "081234567890",
                "login_time": "2024-01-15T08:00:00Z",
                "profile": {
                    "member_since": "2024-01-15T08:00:00Z",
                    "last_login": "2024-01-15T08:00:00Z",
                },
            },
        }))

        assert self.store.init() is True
        assert self.store.user.login_time == datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)

    def test_init_without_session(self):
        """Test init with nothing stored"""
        assert self.store.init() is False
        assert not self.store.is_authenticated

    def test_init_discards_unreadable_blob(self):
        """Test corrupt data is removed"""
        self.storage.set_item(AUTH_KEY, "{not json")
        assert self.store.init() is False
        assert self.storage.get_item(AUTH_KEY) is None

        self.storage.set_item(AUTH_KEY, json.dumps({"is_authenticated": True, "user": {"email": "x"}}))
        assert self.store.init() is False
        assert self.storage.get_item(AUTH_KEY) is None

    @pytest.mark.asyncio
    async def test_logout(self):
        """Test logout clears state and storage"""
        await self.store.login("user@gmail.com", "081234567890")
        self.store.logout()

        assert not self.store.is_authenticated
        assert self.store.user is None
        assert self.storage.get_item(AUTH_KEY) is None

    def test_update_profile_without_session(self):
        """Test profile updates need a session"""
        result = self.store.update_profile({"full_name": "Jane"})
        assert result == AuthResult(False, MSG_NO_SESSION)

    @pytest.mark.asyncio
    async def test_update_profile(self):
        """Test profile fields are merged, stamped and persisted"""
        await self.store.login("user@gmail.com", "081234567890")
        self.now += timedelta(hours=1)

        result = self.store.update_profile({
            "full_name": "Jane Doe",
            "address": {"street": "Jl. Sudirman 1", "city": "Jakarta", "state": "DKI",
                        "postal_code": "10220", "country": "Indonesia"},
        })

        assert result == AuthResult(True, MSG_PROFILE_UPDATED)
        profile = self.store.user.profile
        assert profile.full_name == "Jane Doe"
        assert profile.address == Address("Jl. Sudirman 1", "Jakarta", "DKI", "10220", "Indonesia")
        assert profile.last_login == self.now

        restored = self._new_store()
        assert restored.init() is True
        assert restored.user.profile.full_name == "Jane Doe"
        assert restored.user.profile.address.city == "Jakarta"

    @pytest.mark.asyncio
    async def test_update_profile_does_not_extend_session(self):
        """Test profile updates leave login_time alone"""
        await self.store.login("user@gmail.com", "081234567890")
        login_time = self.store.user.login_time

        self.now += timedelta(hours=20)
        self.store.update_profile({"occupation": "Engineer"})
        assert self.store.user.login_time == login_time

        self.now += timedelta(hours=5)
        assert self._new_store().init() is False

    @pytest.mark.asyncio
    async def test_update_profile_unknown_field(self):
        """Test unknown fields are rejected without changes"""
        await self.store.login("user@gmail.com", "081234567890")

        result = self.store.update_profile({"full_name": "Jane", "favourite_colour": "blue"})
        assert result == AuthResult(False, MSG_PROFILE_FAILED)
        assert self.store.user.profile.full_name == ""
