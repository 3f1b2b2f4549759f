"""
Session Store Module

Holds the single signed-in user, persisted to local storage under the "auth"
key. A session is valid for a fixed window after login (24 hours by default)
measured purely from wall-clock time; activity does not extend it.

Every public operation reports failure through an AuthResult rather than an
exception.
"""

from dataclasses import dataclass, field, fields, asdict
from datetime import datetime, timezone, timedelta
from typing import Any, Callable, Dict, Mapping, Optional
import asyncio
import json
import logging
import re

from .config import GestureTransferConfig, get_config
from .logging_config import log_action
from .storage import LocalStorage, AUTH_KEY

logger = logging.getLogger("gesture_transfer.session")

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(r'^\+?\d{10,15}$')
PHONE_NOISE = re.compile(r'[\s\-()]')

MSG_LOGIN_SUCCESS = "Login successful!"
MSG_LOGIN_FAILED = "Login failed. Please try again."
MSG_INVALID_EMAIL = "Please enter a valid Gmail address"
MSG_INVALID_PHONE = "Please enter a valid phone number"
MSG_GMAIL_REQUIRED = "Please use a Gmail address"
MSG_PROFILE_UPDATED = "Profile updated successfully!"
MSG_PROFILE_FAILED = "Failed to update profile. Please try again."
MSG_NO_SESSION = "No active session"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def is_valid_phone(phone: str) -> bool:
    """10-15 digits, optional leading +, ignoring spaces, dashes and parentheses"""
    return bool(PHONE_PATTERN.match(PHONE_NOISE.sub("", phone or "")))


@dataclass
class Address:
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""


@dataclass
class EmergencyContact:
    name: str = ""
    relationship: str = ""
    phone: str = ""


@dataclass
class BankAccount:
    account_number: str = ""
    bank_name: str = ""
    account_holder: str = ""


@dataclass
class PreferredBank:
    bank_id: str = ""
    bank_name: str = ""
    account_number: str = ""
    account_holder: str = ""


@dataclass
class AtmCard:
    card_number: str
    card_holder: str
    expiry_date: str
    issuer_bank: str
    selected_bank_id: str
    card_type: str


@dataclass
class VerificationData:
    timestamp: datetime
    verified: bool
    biometric: Optional[Dict[str, Any]] = None
    atm_card: Optional[AtmCard] = None


_NESTED = {
    "address": Address,
    "emergency_contact": EmergencyContact,
    "bank_account": BankAccount,
    "preferred_bank": PreferredBank,
}


@dataclass
class UserProfile:
    """Editable profile of the signed-in user"""
    member_since: datetime
    last_login: datetime
    full_name: str = ""
    date_of_birth: str = ""
    gender: str = ""
    nationality: str = ""
    address: Address = field(default_factory=Address)
    occupation: str = ""
    emergency_contact: EmergencyContact = field(default_factory=EmergencyContact)
    bank_account: BankAccount = field(default_factory=BankAccount)
    preferred_bank: Optional[PreferredBank] = field(default_factory=PreferredBank)
    verification_data: Optional[VerificationData] = None

    @classmethod
    def blank(cls, now: datetime) -> 'UserProfile':
        return cls(member_since=now, last_login=now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'UserProfile':
        values = dict(data)
        values["member_since"] = _parse_datetime(values["member_since"])
        values["last_login"] = _parse_datetime(values["last_login"])
        for name, nested in _NESTED.items():
            if isinstance(values.get(name), Mapping):
                values[name] = nested(**values[name])
        if isinstance(values.get("verification_data"), Mapping):
            values["verification_data"] = _verification_from_dict(values["verification_data"])
        return cls(**values)


@dataclass
class SessionUser:
    email: str
    phone: str
    login_time: datetime
    profile: UserProfile

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "phone": self.phone,
            "login_time": self.login_time,
            "profile": self.profile.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SessionUser':
        return cls(
            email=data["email"],
            phone=data["phone"],
            login_time=_parse_datetime(data["login_time"]),
            profile=UserProfile.from_dict(data["profile"]),
        )


@dataclass
class AuthState:
    is_authenticated: bool = False
    user: Optional[SessionUser] = None
    is_loading: bool = False


@dataclass
class AuthResult:
    success: bool
    message: str


def _parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _verification_from_dict(data: Mapping[str, Any]) -> VerificationData:
    values = dict(data)
    values["timestamp"] = _parse_datetime(values["timestamp"])
    if isinstance(values.get("atm_card"), Mapping):
        values["atm_card"] = AtmCard(**values["atm_card"])
    return VerificationData(**values)


def _json_default(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _coerce_profile_value(name: str, value: Any) -> Any:
    if name in _NESTED and isinstance(value, Mapping):
        return _NESTED[name](**value)
    if name == "verification_data" and isinstance(value, Mapping):
        return _verification_from_dict(value)
    if name in ("member_since", "last_login") and not isinstance(value, datetime):
        return _parse_datetime(value)
    return value


class SessionStore:
    """
    Authentication state for a single local user
    """

    def __init__(self, storage: LocalStorage,
                 settings: Optional[GestureTransferConfig] = None,
                 clock: Callable[[], datetime] = _utcnow):
        self.storage = storage
        self.settings = settings or get_config()
        self._clock = clock
        self.state = AuthState()

    @property
    def is_authenticated(self) -> bool:
        self._expire_if_stale()
        return self.state.is_authenticated

    @property
    def user(self) -> Optional[SessionUser]:
        self._expire_if_stale()
        return self.state.user

    def _is_expired(self, user: SessionUser) -> bool:
        return self._clock() - user.login_time >= self.ttl

    def _expire_if_stale(self) -> bool:
        """Drop the in-memory session and the stored blob once the window has passed"""
        user = self.state.user
        if user is None or not self._is_expired(user):
            return False

        log_action(logger, "info", "Session expired",
                   user_id=user.email, action="session_expired", resource="session")
        self.state = AuthState()
        self.storage.remove_item(AUTH_KEY)
        return True

    @property
    def ttl(self) -> timedelta:
        return timedelta(hours=self.settings.session_ttl_hours)

    def init(self) -> bool:
        """
        Restore a persisted session.

        Discards the stored blob when it cannot be parsed or when the login
        is older than the session window.

        Returns:
            True if a valid session was restored
        """
        saved = self.storage.get_item(AUTH_KEY)
        if not saved:
            return False

        try:
            parsed = json.loads(saved)
            user = SessionUser.from_dict(parsed["user"])
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unreadable session: {e}")
            self.storage.remove_item(AUTH_KEY)
            return False

        if self._is_expired(user):
            log_action(logger, "info", "Session expired",
                       user_id=user.email, action="session_expired", resource="session")
            self.storage.remove_item(AUTH_KEY)
            return False

        self.state = AuthState(is_authenticated=True, user=user, is_loading=False)
        return True

    async def login(self, email: str, phone: str) -> AuthResult:
        """Validate credentials and open a new session after the simulated delay"""
        self.state.is_loading = True

        await asyncio.sleep(self.settings.login_delay_seconds)

        try:
            if not is_valid_email(email):
                return self._reject(email, MSG_INVALID_EMAIL)

            if not is_valid_phone(phone):
                return self._reject(email, MSG_INVALID_PHONE)

            if not email.lower().endswith(self.settings.allowed_email_domain.lower()):
                return self._reject(email, MSG_GMAIL_REQUIRED)

            now = self._clock()
            user = SessionUser(
                email=email,
                phone=phone,
                login_time=now,
                profile=UserProfile.blank(now),
            )
            self.state = AuthState(is_authenticated=True, user=user, is_loading=False)
            self._persist()

            log_action(logger, "info", "User logged in",
                       user_id=email, action="login", resource="session")
            return AuthResult(True, MSG_LOGIN_SUCCESS)

        except Exception as e:
            logger.error(f"Login failed: {e}", exc_info=True)
            self.state = AuthState()
            return AuthResult(False, MSG_LOGIN_FAILED)

    def _reject(self, email: str, message: str) -> AuthResult:
        self.state.is_loading = False
        log_action(logger, "info", "Login rejected",
                   user_id=email, action="login_rejected", resource="session",
                   extra={"reason": message})
        return AuthResult(False, message)

    def logout(self) -> None:
        email = self.state.user.email if self.state.user else None
        self.state = AuthState()
        self.storage.remove_item(AUTH_KEY)
        log_action(logger, "info", "User logged out",
                   user_id=email, action="logout", resource="session")

    def update_profile(self, profile_data: Mapping[str, Any]) -> AuthResult:
        """
        Shallow-merge profile fields and stamp last_login.

        Nested groups (address, bank_account, ...) are replaced as a whole.
        """
        if not self.user:
            return AuthResult(False, MSG_NO_SESSION)

        known = {f.name for f in fields(UserProfile)}
        unknown = set(profile_data) - known
        if unknown:
            logger.warning(f"Rejected profile update with unknown fields: {sorted(unknown)}")
            return AuthResult(False, MSG_PROFILE_FAILED)

        try:
            updates = {name: _coerce_profile_value(name, value) for name, value in profile_data.items()}
            profile = self.state.user.profile
            for name, value in updates.items():
                setattr(profile, name, value)
            profile.last_login = self._clock()
            self._persist()
        except Exception as e:
            logger.error(f"Profile update failed: {e}", exc_info=True)
            return AuthResult(False, MSG_PROFILE_FAILED)

        log_action(logger, "info", "Profile updated",
                   user_id=self.state.user.email, action="update_profile", resource="profile",
                   extra={"fields": sorted(profile_data)})
        return AuthResult(True, MSG_PROFILE_UPDATED)

    def clear_loading(self) -> None:
        self.state.is_loading = False

    def _persist(self) -> None:
        blob = {
            "is_authenticated": self.state.is_authenticated,
            "user": self.state.user.to_dict() if self.state.user else None,
        }
        self.storage.set_item(AUTH_KEY, json.dumps(blob, default=_json_default))
