"""
Transfer History Module

In-memory transfer history, newest first. New records are prepended with a
fresh id and transaction id; the only in-place mutation is a status update
by id. Amounts and rates are taken as given and never re-validated.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging
import uuid

from .currency import format_amount
from .logging_config import log_action
from .users import TransferUser, format_last_seen

logger = logging.getLogger("gesture_transfer.transfers")

CURRENT_USER_ID = "current_user"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransferType(Enum):
    SENT = "sent"
    RECEIVED = "received"
    CONVERSION = "conversion"


class TransferStatus(Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


class TransferMethod(Enum):
    HAND_GESTURE = "hand_gesture"
    BIOMETRIC = "biometric"
    STANDARD = "standard"


@dataclass
class TransferRecord:
    """A single transfer or conversion"""
    id: str
    timestamp: datetime
    type: TransferType
    status: TransferStatus
    from_amount: Decimal
    from_currency: str
    to_amount: Decimal
    to_currency: str
    exchange_rate: Decimal
    transaction_id: str
    method: TransferMethod
    from_user_id: Optional[str] = None
    to_user_id: Optional[str] = None
    from_user_name: Optional[str] = None
    to_user_name: Optional[str] = None
    notes: Optional[str] = None
    fee: Optional[Decimal] = None
    fee_currency: Optional[str] = None
    location: Optional[str] = None
    device: Optional[str] = None

    def involves(self, user_id: str) -> bool:
        return self.from_user_id == user_id or self.to_user_id == user_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "status": self.status.value,
            "from_amount": str(self.from_amount),
            "from_currency": self.from_currency,
            "to_amount": str(self.to_amount),
            "to_currency": self.to_currency,
            "exchange_rate": str(self.exchange_rate),
            "transaction_id": self.transaction_id,
            "method": self.method.value,
            "from_user_id": self.from_user_id,
            "to_user_id": self.to_user_id,
            "from_user_name": self.from_user_name,
            "to_user_name": self.to_user_name,
            "notes": self.notes,
            "fee": str(self.fee) if self.fee is not None else None,
            "fee_currency": self.fee_currency,
            "location": self.location,
            "device": self.device,
        }


@dataclass
class TransferStats:
    total_transfers: int = 0
    total_sent: int = 0
    total_received: int = 0
    total_conversions: int = 0
    completed_transfers: int = 0
    failed_transfers: int = 0
    total_volume: Dict[str, Decimal] = field(default_factory=dict)


def _local(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


def build_mock_history() -> List[TransferRecord]:
    """Fresh copy of the demo history, newest first"""
    D = Decimal
    return [
        TransferRecord(
            id="txn_001", timestamp=_local("2024-01-15T10:30:00"),
            type=TransferType.SENT, status=TransferStatus.COMPLETED,
            from_amount=D("1000000"), from_currency="IDR", to_amount=D("66.67"), to_currency="USD",
            exchange_rate=D("15000"), from_user_id=CURRENT_USER_ID, to_user_id="user_001",
            from_user_name="You", to_user_name="John Doe", transaction_id="TXN20240115103000",
            method=TransferMethod.HAND_GESTURE, notes="Payment for services",
            fee=D("2500"), fee_currency="IDR",
        ),
        TransferRecord(
            id="txn_002", timestamp=_local("2024-01-14T15:45:00"),
            type=TransferType.RECEIVED, status=TransferStatus.COMPLETED,
            from_amount=D("50"), from_currency="USD", to_amount=D("750000"), to_currency="IDR",
            exchange_rate=D("15000"), from_user_id="user_002", to_user_id=CURRENT_USER_ID,
            from_user_name="Sarah Smith", to_user_name="You", transaction_id="TXN20240114154500",
            method=TransferMethod.HAND_GESTURE, notes="Freelance payment",
        ),
        TransferRecord(
            id="txn_003", timestamp=_local("2024-01-13T09:15:00"),
            type=TransferType.CONVERSION, status=TransferStatus.COMPLETED,
            from_amount=D("100"), from_currency="EUR", to_amount=D("108.50"), to_currency="USD",
            exchange_rate=D("1.085"), transaction_id="TXN20240113091500",
            method=TransferMethod.STANDARD, notes="Currency conversion for travel",
        ),
        TransferRecord(
            id="txn_004", timestamp=_local("2024-01-12T14:20:00"),
            type=TransferType.SENT, status=TransferStatus.COMPLETED,
            from_amount=D("2000000"), from_currency="IDR", to_amount=D("133.33"), to_currency="USD",
            exchange_rate=D("15000"), from_user_id=CURRENT_USER_ID, to_user_id="user_003",
            from_user_name="You", to_user_name="Michael Johnson", transaction_id="TXN20240112142000",
            method=TransferMethod.BIOMETRIC, notes="Investment contribution",
            fee=D("5000"), fee_currency="IDR",
        ),
        TransferRecord(
            id="txn_005", timestamp=_local("2024-01-11T11:10:00"),
            type=TransferType.RECEIVED, status=TransferStatus.COMPLETED,
            from_amount=D("25"), from_currency="USD", to_amount=D("375000"), to_currency="IDR",
            exchange_rate=D("15000"), from_user_id="user_004", to_user_id=CURRENT_USER_ID,
            from_user_name="Lisa Wong", to_user_name="You", transaction_id="TXN20240111111000",
            method=TransferMethod.HAND_GESTURE, notes="Lunch money",
        ),
        TransferRecord(
            id="txn_006", timestamp=_local("2024-01-10T16:30:00"),
            type=TransferType.SENT, status=TransferStatus.FAILED,
            from_amount=D("500000"), from_currency="IDR", to_amount=D("33.33"), to_currency="USD",
            exchange_rate=D("15000"), from_user_id=CURRENT_USER_ID, to_user_id="user_005",
            from_user_name="You", to_user_name="David Chen", transaction_id="TXN20240110163000",
            method=TransferMethod.HAND_GESTURE, notes="Payment failed due to network error",
        ),
        TransferRecord(
            id="txn_007", timestamp=_local("2024-01-09T13:45:00"),
            type=TransferType.CONVERSION, status=TransferStatus.COMPLETED,
            from_amount=D("1000"), from_currency="JPY", to_amount=D("6.67"), to_currency="USD",
            exchange_rate=D("150"), transaction_id="TXN20240109134500",
            method=TransferMethod.STANDARD, notes="Travel money conversion",
        ),
    ]


class TransferHistory:
    """
    In-memory repository of transfer records, newest first
    """

    def __init__(self, records: Optional[List[TransferRecord]] = None,
                 clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._history: List[TransferRecord] = records if records is not None else build_mock_history()

    def _new_ids(self, now: datetime):
        taken_ids = {r.id for r in self._history}
        taken_txn = {r.transaction_id for r in self._history}
        while True:
            token = uuid.uuid4().hex
            record_id = f"txn_{int(now.timestamp() * 1000)}_{token[:9]}"
            transaction_id = f"TXN{now.strftime('%Y%m%d%H%M%S')}{token[9:15].upper()}"
            if record_id not in taken_ids and transaction_id not in taken_txn:
                return record_id, transaction_id

    def add_transfer(self, **fields) -> TransferRecord:
        """
        Prepend a new record.

        Args:
            **fields: Every TransferRecord field except id, timestamp and transaction_id

        Returns:
            The stored record with its generated identifiers
        """
        for generated in ("id", "timestamp", "transaction_id"):
            if generated in fields:
                raise ValueError(f"{generated} is assigned by the history and cannot be supplied")

        now = self._clock()
        record_id, transaction_id = self._new_ids(now)
        record = TransferRecord(id=record_id, timestamp=now, transaction_id=transaction_id, **fields)
        self._history.insert(0, record)

        log_action(logger, "info", "Transfer recorded",
                   user_id=record.from_user_id, action="add_transfer", resource=record.id,
                   extra={"type": record.type.value, "status": record.status.value,
                          "transaction_id": record.transaction_id})
        return record

    def get_all_transfers(self, user_id: Optional[str] = None) -> List[TransferRecord]:
        """Full history, or only records where the user is a party"""
        if not user_id:
            return list(self._history)
        return [t for t in self._history if t.involves(user_id)]

    def get_transfers_by_type(self, transfer_type: TransferType,
                              user_id: Optional[str] = None) -> List[TransferRecord]:
        return [t for t in self.get_all_transfers(user_id) if t.type == transfer_type]

    def get_transfers_by_status(self, status: TransferStatus,
                                user_id: Optional[str] = None) -> List[TransferRecord]:
        return [t for t in self.get_all_transfers(user_id) if t.status == status]

    def get_transfers_by_date_range(self, start: datetime, end: datetime,
                                    user_id: Optional[str] = None) -> List[TransferRecord]:
        """Records with start <= timestamp <= end"""
        return [t for t in self.get_all_transfers(user_id) if start <= t.timestamp <= end]

    def get_recent_transfers(self, limit: int = 10, user_id: Optional[str] = None) -> List[TransferRecord]:
        return self.get_all_transfers(user_id)[:limit]

    def search_transfers(self, query: str, user_id: Optional[str] = None) -> List[TransferRecord]:
        """Match counterpart names, notes, transaction id or currency codes"""
        if not query.strip():
            return self.get_all_transfers(user_id)

        q = query.lower()

        def matches(t: TransferRecord) -> bool:
            fields = (t.to_user_name, t.from_user_name, t.notes,
                      t.transaction_id, t.from_currency, t.to_currency)
            return any(f and q in f.lower() for f in fields)

        return [t for t in self.get_all_transfers(user_id) if matches(t)]

    def get_transfer_stats(self, user_id: Optional[str] = None) -> TransferStats:
        """Counts by type/status and completed volume per currency"""
        transfers = self.get_all_transfers(user_id)
        stats = TransferStats(
            total_transfers=len(transfers),
            total_sent=sum(1 for t in transfers if t.type == TransferType.SENT),
            total_received=sum(1 for t in transfers if t.type == TransferType.RECEIVED),
            total_conversions=sum(1 for t in transfers if t.type == TransferType.CONVERSION),
            completed_transfers=sum(1 for t in transfers if t.status == TransferStatus.COMPLETED),
            failed_transfers=sum(1 for t in transfers if t.status == TransferStatus.FAILED),
        )

        for t in transfers:
            if t.status != TransferStatus.COMPLETED:
                continue
            stats.total_volume.setdefault(t.from_currency, Decimal("0"))
            stats.total_volume.setdefault(t.to_currency, Decimal("0"))
            if t.type in (TransferType.SENT, TransferType.CONVERSION):
                stats.total_volume[t.from_currency] += t.from_amount
            if t.type in (TransferType.RECEIVED, TransferType.CONVERSION):
                stats.total_volume[t.to_currency] += t.to_amount

        return stats

    def update_transfer_status(self, transfer_id: str, status: TransferStatus) -> bool:
        record = self.get_transfer_by_id(transfer_id)
        if record is None:
            return False

        previous = record.status
        record.status = status
        log_action(logger, "info", "Transfer status updated",
                   action="update_transfer_status", resource=transfer_id,
                   extra={"from": previous.value, "to": status.value})
        return True

    def get_transfer_by_id(self, transfer_id: str) -> Optional[TransferRecord]:
        for record in self._history:
            if record.id == transfer_id:
                return record
        return None

    @staticmethod
    def format_currency(amount: Decimal, currency: str) -> str:
        return format_amount(amount, currency)

    def format_relative_time(self, when: datetime) -> str:
        return format_last_seen(when, now=self._clock())


def create_transfer_record(
    amount: Decimal,
    from_currency: str,
    to_currency: str,
    converted_amount: Decimal,
    exchange_rate: Decimal,
    selected_user: Optional[TransferUser] = None,
    method: TransferMethod = TransferMethod.HAND_GESTURE,
    notes: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build the fields for TransferHistory.add_transfer after a completed transfer.

    With a selected user this is an outgoing transfer carrying the method's
    fee in IDR; without one it is a plain conversion.
    """
    if selected_user is not None:
        return {
            "type": TransferType.SENT,
            "status": TransferStatus.COMPLETED,
            "from_amount": amount,
            "from_currency": from_currency,
            "to_amount": converted_amount,
            "to_currency": to_currency,
            "exchange_rate": exchange_rate,
            "from_user_id": CURRENT_USER_ID,
            "to_user_id": selected_user.id,
            "from_user_name": "You",
            "to_user_name": selected_user.full_name,
            "method": method,
            "notes": notes,
            "fee": Decimal("2500") if method == TransferMethod.HAND_GESTURE else Decimal("5000"),
            "fee_currency": "IDR",
        }

    return {
        "type": TransferType.CONVERSION,
        "status": TransferStatus.COMPLETED,
        "from_amount": amount,
        "from_currency": from_currency,
        "to_amount": converted_amount,
        "to_currency": to_currency,
        "exchange_rate": exchange_rate,
        "method": method,
        "notes": notes or "Currency conversion",
    }
