"""
Tests for the transfer user directory
"""

import pytest
from datetime import datetime, timedelta, timezone

from gesture_transfer.users import (
    UserDirectory, TransferUser, build_mock_users, format_last_seen, format_member_since
)


class TestUserDirectory:
    """Test directory queries and transfer counters"""

    def setup_method(self):
        """Set up test fixtures"""
        self.now = datetime(2024, 1, 20, 12, 0, tzinfo=timezone.utc)
        self.directory = UserDirectory(clock=lambda: self.now)

    def test_get_all_users(self):
        """Test listing with and without an excluded user"""
        assert len(self.directory.get_all_users()) == 6
        users = self.directory.get_all_users(exclude_user_id="user_001")
        assert len(users) == 5
        assert "user_001" not in [u.id for u in users]

    def test_get_user_by_id(self):
        """Test lookup"""
        assert self.directory.get_user_by_id("user_002").full_name == "Sarah Smith"
        assert self.directory.get_user_by_id("user_999") is None

    def test_search_users(self):
        """Test name, email and phone matching"""
        assert [u.id for u in self.directory.search_users("john")] == ["user_001", "user_003"]
        assert len(self.directory.search_users("GMAIL")) == 6
        assert [u.id for u in self.directory.search_users("3456")] == ["user_001"]
        assert len(self.directory.search_users("   ")) == 6
        assert [u.id for u in self.directory.search_users("john", exclude_user_id="user_001")] == ["user_003"]

    def test_get_online_users(self):
        """Test online filter"""
        assert [u.id for u in self.directory.get_online_users()] == ["user_001", "user_003", "user_005"]
        online = self.directory.get_online_users()
        assert all(u.last_seen == self.now for u in online)

    def test_get_recent_users(self):
        """Test ordering by last transfer, newest first"""
        recent = self.directory.get_recent_users()
        assert [u.id for u in recent] == ["user_003", "user_002", "user_005", "user_001", "user_006"]
        assert len(self.directory.get_recent_users(limit=2)) == 2

    def test_record_transfer(self):
        """Test counters are bumped and stamped"""
        assert self.directory.record_transfer("user_004") is True
        user = self.directory.get_user_by_id("user_004")
        assert user.transfer_history.total_transfers == 6
        assert user.transfer_history.last_transfer == self.now
        assert self.directory.get_recent_users()[0].id == "user_004"

        assert self.directory.record_transfer("user_999") is False

    def test_record_transfer_without_history(self):
        """Test a user without counters starts from zero"""
        user = TransferUser(
            id="user_100", email="new@gmail.com", full_name="New User", phone="+628100000000",
            is_online=False, last_seen=self.now, joined_date=self.now,
        )
        directory = UserDirectory(users=[user], clock=lambda: self.now)
        assert directory.record_transfer("user_100") is True
        assert user.transfer_history.total_transfers == 1

    def test_directories_do_not_share_state(self):
        """Test each directory owns its fixtures"""
        other = UserDirectory(clock=lambda: self.now)
        self.directory.record_transfer("user_001")
        assert other.get_user_by_id("user_001").transfer_history.total_transfers == 15

    def test_format_user_info(self):
        """Test display info"""
        info = self.directory.format_user_info(self.directory.get_user_by_id("user_001"))
        assert info.display_name == "John Doe"
        assert info.bank_info == "BCA • 1234567890"
        assert info.status_indicator == "🟢"

        info = self.directory.format_user_info(self.directory.get_user_by_id("user_002"))
        assert info.status_indicator == "⚫"

    def test_last_seen_label_uses_directory_clock(self):
        """Test relative labels are measured from the injected clock"""
        user = self.directory.get_user_by_id("user_001")
        assert self.directory.last_seen_label(user) == "Just now"

        self.now += timedelta(hours=3)
        assert self.directory.last_seen_label(user) == "3h ago"

    def test_can_receive_transfer(self):
        """Test a preferred bank account is required"""
        assert UserDirectory.can_receive_transfer(self.directory.get_user_by_id("user_001"))
        user = build_mock_users(self.now)[0]
        user.preferred_bank = None
        assert not UserDirectory.can_receive_transfer(user)

    def test_to_dict(self):
        """Test serialization"""
        data = self.directory.get_user_by_id("user_001").to_dict()
        assert data["preferred_bank"]["bank_id"] == "bca"
        assert data["transfer_history"]["last_transfer"].startswith("2024-01-10")
        assert data["last_seen"] == self.now.isoformat()


class TestFormatting:
    """Test relative and calendar labels"""

    def test_format_last_seen(self):
        """Test relative buckets"""
        now = datetime(2024, 1, 20, 12, 0, tzinfo=timezone.utc)
        assert format_last_seen(now - timedelta(seconds=30), now) == "Just now"
        assert format_last_seen(now - timedelta(minutes=5), now) == "5m ago"
        assert format_last_seen(now - timedelta(hours=3), now) == "3h ago"
        assert format_last_seen(now - timedelta(days=2), now) == "2d ago"
        assert format_last_seen(datetime(2024, 1, 5, tzinfo=timezone.utc), now) == "01/05/2024"

    def test_format_member_since(self):
        """Test month and year label"""
        assert format_member_since(datetime(2023, 6, 15, tzinfo=timezone.utc)) == "June 2023"
