"""
Transfer User Directory Module

Mock directory of other users that can receive transfers. The directory is
an explicitly constructed repository object; each instance is seeded with
its own copy of the fixtures so callers never share state by accident.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
import logging

from .banks import get_bank_by_id
from .logging_config import log_action

logger = logging.getLogger("gesture_transfer.users")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PreferredBankAccount:
    bank_id: str
    account_number: str
    account_holder: str


@dataclass
class TransferCounters:
    total_transfers: int = 0
    last_transfer: Optional[datetime] = None


@dataclass
class TransferUser:
    """Directory entry for a user who can send or receive transfers"""
    id: str
    email: str
    full_name: str
    phone: str
    is_online: bool
    last_seen: datetime
    joined_date: datetime
    profile_picture: Optional[str] = None
    preferred_bank: Optional[PreferredBankAccount] = None
    transfer_history: Optional[TransferCounters] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "profile_picture": self.profile_picture,
            "preferred_bank": {
                "bank_id": self.preferred_bank.bank_id,
                "account_number": self.preferred_bank.account_number,
                "account_holder": self.preferred_bank.account_holder,
            } if self.preferred_bank else None,
            "is_online": self.is_online,
            "last_seen": self.last_seen.isoformat(),
            "joined_date": self.joined_date.isoformat(),
            "transfer_history": {
                "total_transfers": self.transfer_history.total_transfers,
                "last_transfer": self.transfer_history.last_transfer.isoformat()
                if self.transfer_history.last_transfer else None,
            } if self.transfer_history else None,
        }


@dataclass
class UserDisplayInfo:
    display_name: str
    bank_info: Optional[str]
    status_indicator: str


def _day(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


def build_mock_users(now: Optional[datetime] = None) -> List[TransferUser]:
    """Fresh copy of the demo directory; online users were last seen at `now`"""
    now = now or _utcnow()
    return [
        TransferUser(
            id="user_001", email="john.doe@gmail.com", full_name="John Doe",
            phone="+62812-3456-7890", profile_picture="👨‍💼",
            preferred_bank=PreferredBankAccount("bca", "1234567890", "JOHN DOE"),
            is_online=True, last_seen=now, joined_date=_day("2023-06-15"),
            transfer_history=TransferCounters(15, _day("2024-01-10")),
        ),
        TransferUser(
            id="user_002", email="sarah.smith@gmail.com", full_name="Sarah Smith",
            phone="+62813-9876-5432", profile_picture="👩‍💻",
            preferred_bank=PreferredBankAccount("mandiri", "0987654321", "SARAH SMITH"),
            is_online=False, last_seen=_day("2024-01-14"), joined_date=_day("2023-08-20"),
            transfer_history=TransferCounters(8, _day("2024-01-12")),
        ),
        TransferUser(
            id="user_003", email="michael.johnson@gmail.com", full_name="Michael Johnson",
            phone="+62814-1111-2222", profile_picture="👨‍🎓",
            preferred_bank=PreferredBankAccount("bni", "5555666677", "MICHAEL JOHNSON"),
            is_online=True, last_seen=now, joined_date=_day("2023-04-10"),
            transfer_history=TransferCounters(22, _day("2024-01-13")),
        ),
        TransferUser(
            id="user_004", email="lisa.wong@gmail.com", full_name="Lisa Wong",
            phone="+62815-3333-4444", profile_picture="👩‍🔬",
            preferred_bank=PreferredBankAccount("bri", "9999888877", "LISA WONG"),
            is_online=False, last_seen=_day("2024-01-13"), joined_date=_day("2023-09-05"),
            transfer_history=TransferCounters(5, _day("2024-01-08")),
        ),
        TransferUser(
            id="user_005", email="david.chen@gmail.com", full_name="David Chen",
            phone="+62816-5555-6666", profile_picture="👨‍🎨",
            preferred_bank=PreferredBankAccount("cimb_niaga", "7777999988", "DAVID CHEN"),
            is_online=True, last_seen=now, joined_date=_day("2023-07-12"),
            transfer_history=TransferCounters(12, _day("2024-01-11")),
        ),
        TransferUser(
            id="user_006", email="anna.martinez@gmail.com", full_name="Anna Martinez",
            phone="+62817-7777-8888", profile_picture="👩‍🏫",
            preferred_bank=PreferredBankAccount("danamon", "1111222233", "ANNA MARTINEZ"),
            is_online=False, last_seen=_day("2024-01-12"), joined_date=_day("2023-05-30"),
            transfer_history=TransferCounters(18, _day("2024-01-09")),
        ),
    ]


class UserDirectory:
    """
    In-memory repository of transfer users
    """

    def __init__(self, users: Optional[List[TransferUser]] = None,
                 clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._users: List[TransferUser] = users if users is not None else build_mock_users(clock())

    def get_all_users(self, exclude_user_id: Optional[str] = None) -> List[TransferUser]:
        """All users except the excluded one (usually the caller)"""
        return [user for user in self._users if user.id != exclude_user_id]

    def get_user_by_id(self, user_id: str) -> Optional[TransferUser]:
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def search_users(self, query: str, exclude_user_id: Optional[str] = None) -> List[TransferUser]:
        """Case-insensitive name/email match or phone substring; blank query returns everyone"""
        if not query.strip():
            return self.get_all_users(exclude_user_id)

        search_query = query.lower()
        return [
            user for user in self._users
            if user.id != exclude_user_id and (
                search_query in user.full_name.lower()
                or search_query in user.email.lower()
                or query in user.phone
            )
        ]

    def get_online_users(self, exclude_user_id: Optional[str] = None) -> List[TransferUser]:
        return [user for user in self._users if user.id != exclude_user_id and user.is_online]

    def get_recent_users(self, exclude_user_id: Optional[str] = None, limit: int = 5) -> List[TransferUser]:
        """Users with a recorded transfer, most recent first"""
        recent = [
            user for user in self._users
            if user.id != exclude_user_id
            and user.transfer_history
            and user.transfer_history.last_transfer
        ]
        recent.sort(key=lambda u: u.transfer_history.last_transfer, reverse=True)
        return recent[:limit]

    def record_transfer(self, user_id: str) -> bool:
        """Bump a user's transfer counter and stamp the time; False if unknown"""
        user = self.get_user_by_id(user_id)
        if not user:
            return False

        if not user.transfer_history:
            user.transfer_history = TransferCounters()
        user.transfer_history.total_transfers += 1
        user.transfer_history.last_transfer = self._clock()

        log_action(logger, "info", "Transfer recorded for user",
                   user_id=user_id, action="record_transfer", resource="transfer_user",
                   extra={"total_transfers": user.transfer_history.total_transfers})
        return True

    def format_user_info(self, user: TransferUser) -> UserDisplayInfo:
        bank = get_bank_by_id(user.preferred_bank.bank_id) if user.preferred_bank else None
        return UserDisplayInfo(
            display_name=user.full_name,
            bank_info=f"{bank.name} • {user.preferred_bank.account_number}" if bank else None,
            status_indicator="🟢" if user.is_online else "⚫",
        )

    def last_seen_label(self, user: TransferUser) -> str:
        return format_last_seen(user.last_seen, now=self._clock())

    @staticmethod
    def can_receive_transfer(user: TransferUser) -> bool:
        return bool(
            user.preferred_bank
            and user.preferred_bank.bank_id
            and user.preferred_bank.account_number
        )


def format_last_seen(when: datetime, now: Optional[datetime] = None) -> str:
    """Relative "last seen" label: Just now, 5m ago, 3h ago, 2d ago, or a date"""
    now = now or _utcnow()
    diff_seconds = (now - when).total_seconds()
    diff_mins = int(diff_seconds // 60)
    diff_hours = int(diff_seconds // 3600)
    diff_days = int(diff_seconds // 86400)

    if diff_mins < 1:
        return "Just now"
    if diff_mins < 60:
        return f"{diff_mins}m ago"
    if diff_hours < 24:
        return f"{diff_hours}h ago"
    if diff_days < 7:
        return f"{diff_days}d ago"
    return when.strftime("%m/%d/%Y")


def format_member_since(when: datetime) -> str:
    """e.g. "June 2023" """
    return when.strftime("%B %Y")
