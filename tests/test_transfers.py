"""
Tests for transfer history

Tests record creation, filtering, statistics and status updates.
"""

import pytest
from decimal import Decimal
from datetime import datetime, timedelta, timezone

from gesture_transfer.transfers import (
    TransferHistory, TransferType, TransferStatus, TransferMethod,
    CURRENT_USER_ID, create_transfer_record
)
from gesture_transfer.users import UserDirectory


class TestTransferHistory:
    """Test the in-memory transfer repository"""

    def setup_method(self):
        """Set up test fixtures"""
        self.now = datetime(2024, 1, 20, 9, 30, 15, tzinfo=timezone.utc)
        self.history = TransferHistory(clock=lambda: self.now)

    def _conversion_fields(self):
        return create_transfer_record(
            amount=Decimal("10"), from_currency="USD", to_currency="IDR",
            converted_amount=Decimal("150000"), exchange_rate=Decimal("15000"),
        )

    def test_seeded_history(self):
        """Test the demo history is newest first"""
        transfers = self.history.get_all_transfers()
        assert len(transfers) == 7
        assert transfers[0].id == "txn_001"
        timestamps = [t.timestamp for t in transfers]
        assert timestamps == sorted(timestamps, reverse=True)

    def test_add_transfer_prepends(self):
        """Test new records go first with generated identifiers"""
        record = self.history.add_transfer(**self._conversion_fields())

        transfers = self.history.get_all_transfers()
        assert transfers[0] is record
        assert len(transfers) == 8
        assert record.timestamp == self.now
        assert record.id.startswith("txn_")
        assert record.transaction_id.startswith("TXN20240120093015")
        assert record.id not in {t.id for t in transfers[1:]}

    def test_add_transfer_unique_ids(self):
        """Test identifiers stay unique within the same instant"""
        first = self.history.add_transfer(**self._conversion_fields())
        second = self.history.add_transfer(**self._conversion_fields())
        assert first.id != second.id
        assert first.transaction_id != second.transaction_id
        assert self.history.get_all_transfers()[0] is second

    def test_add_transfer_rejects_generated_fields(self):
        """Test callers cannot supply id, timestamp or transaction_id"""
        fields = self._conversion_fields()
        fields["id"] = "txn_custom"
        with pytest.raises(ValueError, match="id is assigned"):
            self.history.add_transfer(**fields)

    def test_get_all_transfers_for_user(self):
        """Test party filter"""
        assert [t.id for t in self.history.get_all_transfers("user_001")] == ["txn_001"]
        assert len(self.history.get_all_transfers(CURRENT_USER_ID)) == 5

    def test_filters(self):
        """Test type, status and date range filters"""
        conversions = self.history.get_transfers_by_type(TransferType.CONVERSION)
        assert [t.id for t in conversions] == ["txn_003", "txn_007"]

        failed = self.history.get_transfers_by_status(TransferStatus.FAILED)
        assert [t.id for t in failed] == ["txn_006"]

        start = datetime(2024, 1, 12, 14, 20, tzinfo=timezone.utc)
        end = datetime(2024, 1, 14, 15, 45, tzinfo=timezone.utc)
        in_range = self.history.get_transfers_by_date_range(start, end)
        assert [t.id for t in in_range] == ["txn_002", "txn_003", "txn_004"]

    def test_get_recent_transfers(self):
        """Test limit"""
        assert [t.id for t in self.history.get_recent_transfers(limit=3)] == ["txn_001", "txn_002", "txn_003"]
        assert len(self.history.get_recent_transfers()) == 7

    def test_search_transfers(self):
        """Test names, notes, transaction ids and currencies"""
        assert [t.id for t in self.history.search_transfers("sarah")] == ["txn_002"]
        assert [t.id for t in self.history.search_transfers("jpy")] == ["txn_007"]
        assert [t.id for t in self.history.search_transfers("travel")] == ["txn_003", "txn_007"]
        assert len(self.history.search_transfers("")) == 7

    def test_get_transfer_stats(self):
        """Test counts and completed volume"""
        stats = self.history.get_transfer_stats()
        assert stats.total_transfers == 7
        assert stats.total_sent == 3
        assert stats.total_received == 2
        assert stats.total_conversions == 2
        assert stats.completed_transfers == 6
        assert stats.failed_transfers == 1
        assert stats.total_volume["IDR"] == Decimal("4125000")
        assert stats.total_volume["USD"] == Decimal("115.17")
        assert stats.total_volume["EUR"] == Decimal("100")
        assert stats.total_volume["JPY"] == Decimal("1000")

    def test_update_transfer_status(self):
        """Test status change in place"""
        assert self.history.update_transfer_status("txn_006", TransferStatus.COMPLETED) is True
        assert self.history.get_transfer_by_id("txn_006").status == TransferStatus.COMPLETED
        assert self.history.get_transfer_stats().failed_transfers == 0

        assert self.history.update_transfer_status("txn_999", TransferStatus.FAILED) is False

    def test_histories_do_not_share_state(self):
        """Test each history owns its fixtures"""
        other = TransferHistory()
        self.history.update_transfer_status("txn_001", TransferStatus.FAILED)
        assert other.get_transfer_by_id("txn_001").status == TransferStatus.COMPLETED

    def test_formatting(self):
        """Test currency and relative time helpers"""
        assert TransferHistory.format_currency(Decimal("1000000"), "IDR") == "Rp 1,000,000"
        assert self.history.format_relative_time(self.now - timedelta(hours=2)) == "2h ago"

    def test_to_dict(self):
        """Test serialization keeps amounts exact"""
        data = self.history.get_transfer_by_id("txn_001").to_dict()
        assert data["from_amount"] == "1000000"
        assert data["method"] == "hand_gesture"
        assert data["fee"] == "2500"


class TestCreateTransferRecord:
    """Test building record fields after a transfer"""

    def setup_method(self):
        """Set up test fixtures"""
        self.user = UserDirectory().get_user_by_id("user_001")

    def test_user_transfer_hand_gesture_fee(self):
        """Test an outgoing transfer with the gesture fee"""
        fields = create_transfer_record(
            Decimal("100"), "USD", "IDR", Decimal("1500000"), Decimal("15000"),
            selected_user=self.user, notes="Dinner",
        )
        assert fields["type"] == TransferType.SENT
        assert fields["from_user_id"] == CURRENT_USER_ID
        assert fields["to_user_id"] == "user_001"
        assert fields["to_user_name"] == "John Doe"
        assert fields["fee"] == Decimal("2500")
        assert fields["fee_currency"] == "IDR"
        assert fields["notes"] == "Dinner"

    def test_user_transfer_other_method_fee(self):
        """Test non-gesture methods carry the higher fee"""
        fields = create_transfer_record(
            Decimal("100"), "USD", "IDR", Decimal("1500000"), Decimal("15000"),
            selected_user=self.user, method=TransferMethod.BIOMETRIC,
        )
        assert fields["fee"] == Decimal("5000")

    def test_conversion(self):
        """Test a conversion without a recipient"""
        fields = create_transfer_record(Decimal("100"), "EUR", "USD", Decimal("117.65"), Decimal("1.1765"))
        assert fields["type"] == TransferType.CONVERSION
        assert fields["notes"] == "Currency conversion"
        assert "fee" not in fields
        assert "to_user_id" not in fields
