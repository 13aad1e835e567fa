"""Tests for src/database/room.py and src/database/participant.py (mocked client)."""

from unittest.mock import MagicMock

import pytest

from src.database.participant import ParticipantManager
from src.database.room import ROOM_PLAYING, ROOM_WAITING, RoomManager
from src.engine.errors import ConcurrentModificationError

NOW = "2024-05-01T12:00:00+00:00"


def _room(**overrides):
    row = {
        "id": "room-uuid",
        "room_id": "brave-otter",
        "host_user_id": "alice",
        "status": "waiting",
        "max_players": 4,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def _participant(user_id, joined_at, ready=True):
    return {
        "id": f"p-{user_id}",
        "room_id": "room-uuid",
        "user_id": user_id,
        "joined_at": joined_at,
        "is_ready": ready,
    }


def _client(table):
    client = MagicMock()
    client.table.return_value = table
    return client


class TestRoomManager:
    def test_get_by_id(self, make_table):
        table = make_table([_room()])
        room = RoomManager(_client(table)).get_by_id("room-uuid")
        assert room.host_user_id == "alice"
        table.eq.assert_called_once_with("id", "room-uuid")

    def test_get_by_id_missing(self, make_table):
        assert RoomManager(_client(make_table([]))).get_by_id("nope") is None

    def test_get_by_code_is_case_insensitive(self, make_table):
        table = make_table([_room()])
        RoomManager(_client(table)).get_by_code("  Brave-Otter ")
        table.eq.assert_called_once_with("room_id", "brave-otter")

    def test_update_status_with_expected(self, make_table):
        table = make_table([_room(status="playing")])
        room = RoomManager(_client(table)).update_status(
            "room-uuid", ROOM_PLAYING, expected=ROOM_WAITING
        )
        assert room.status == "playing"
        table.update.assert_called_once_with({"status": "playing"})
        table.eq.assert_any_call("status", "waiting")

    def test_update_status_lost_race(self, make_table):
        manager = RoomManager(_client(make_table([])))
        with pytest.raises(ConcurrentModificationError, match="no longer waiting"):
            manager.update_status("room-uuid", ROOM_PLAYING, expected=ROOM_WAITING)

    def test_room_code_length_enforced(self, make_table):
        manager = RoomManager(_client(make_table([_room(room_id="ab")])))
        with pytest.raises(ValueError):
            manager.get_by_id("room-uuid")


class TestParticipantManager:
    def test_list_in_join_order(self, make_table):
        table = make_table([
            _participant("bob", "2024-05-01T10:00:00+00:00"),
            _participant("alice", "2024-05-01T10:05:00+00:00", ready=False),
        ])
        participants = ParticipantManager(_client(table)).list_by_room("room-uuid")

        assert [p.user_id for p in participants] == ["bob", "alice"]
        assert participants[1].is_ready is False
        table.order.assert_called_once_with("joined_at")

    def test_list_user_ids(self, make_table):
        table = make_table([
            _participant("bob", "2024-05-01T10:00:00+00:00"),
            _participant("alice", "2024-05-01T10:05:00+00:00"),
        ])
        assert ParticipantManager(_client(table)).list_user_ids("room-uuid") == ["bob", "alice"]

    def test_empty_room(self, make_table):
        assert ParticipantManager(_client(make_table([]))).list_user_ids("room-uuid") == []
