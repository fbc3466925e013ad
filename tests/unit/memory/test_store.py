"""Tests shared by the in-memory and SQL conversation stores.

The ``store`` fixture is parametrized, so every test runs on both backends.
"""

import threading
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from chatrelay.core.exceptions import ConversationNotFoundError, StoreError
from chatrelay.memory.base import UNSET


class TestConversationLifecycle:
    """Create, read and get-or-create."""

    def test_create_and_get(self, store) -> None:
        created = store.create_conversation(owner_id="alice", title="Trip")

        fetched = store.get_conversation(created.id)

        assert fetched.id == created.id
        assert fetched.owner_id == "alice"
        assert fetched.title == "Trip"
        assert fetched.is_pinned is False
        assert fetched.is_archived is False

    def test_get_unknown_returns_none(self, store) -> None:
        assert store.get_conversation("missing") is None

    def test_get_or_create_without_id_allocates(self, store) -> None:
        a = store.get_or_create(owner_id="alice")
        b = store.get_or_create(owner_id="alice")
        assert a.id != b.id

    def test_get_or_create_with_id(self, store) -> None:
        created = store.get_or_create("conv-1", owner_id="alice", title="First")
        again = store.get_or_create("conv-1", owner_id="alice", title="Other")

        assert created.id == again.id == "conv-1"
        assert again.title == "First"


class TestMessages:
    """Append and ordered reads."""

    def test_append_and_list_in_order(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")
        for i in range(5):
            store.append_message(conversation.id, "user" if i % 2 == 0 else "assistant", f"m{i}")

        messages = store.list_messages(conversation.id)

        assert [m.content for m in messages] == ["m0", "m1", "m2", "m3", "m4"]
        assert [m.content for m in store.list_messages(conversation.id, order="desc")] == [
            "m4", "m3", "m2", "m1", "m0"
        ]

    def test_timestamps_are_monotonic(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")
        for i in range(20):
            store.append_message(conversation.id, "user", f"m{i}")

        stamps = [m.created_at for m in store.list_messages(conversation.id)]

        assert stamps == sorted(stamps)

    def test_clock_going_backwards_keeps_order(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")
        first = store.append_message(conversation.id, "user", "first")

        earlier = first.created_at - timedelta(seconds=30)
        with patch("chatrelay.memory.conversation.datetime") as mock_datetime:
            mock_datetime.utcnow.return_value = earlier
            second = store.append_message(conversation.id, "assistant", "second")

        assert second.created_at >= first.created_at
        assert [m.content for m in store.list_messages(conversation.id)] == ["first", "second"]

    def test_limit_returns_most_recent(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")
        for i in range(12):
            store.append_message(conversation.id, "user", f"m{i}")

        recent = store.list_messages(conversation.id, limit=10)

        assert [m.content for m in recent] == [f"m{i}" for i in range(2, 12)]

    def test_limit_zero(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")
        store.append_message(conversation.id, "user", "m0")
        assert store.list_messages(conversation.id, limit=0) == []

    def test_append_to_unknown_conversation(self, store) -> None:
        with pytest.raises(ConversationNotFoundError):
            store.append_message("missing", "user", "hello")

    def test_invalid_role(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")
        with pytest.raises(ValueError):
            store.append_message(conversation.id, "tool", "x")

    def test_append_bumps_updated_at(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")
        store.append_message(conversation.id, "user", "hello")

        assert store.get_conversation(conversation.id).updated_at >= conversation.updated_at

    def test_include_messages(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")
        store.append_message(conversation.id, "user", "hello")

        assert store.get_conversation(conversation.id).messages == []
        full = store.get_conversation(conversation.id, include_messages=True)
        assert [m.content for m in full.messages] == ["hello"]

    def test_concurrent_appends_are_all_stored(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")

        def writer(prefix):
            for i in range(10):
                store.append_message(conversation.id, "user", f"{prefix}{i}")

        threads = [threading.Thread(target=writer, args=(p,)) for p in "abc"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        messages = store.list_messages(conversation.id)
        assert len(messages) == 30
        for prefix in "abc":
            own = [m.content for m in messages if m.content.startswith(prefix)]
            assert own == [f"{prefix}{i}" for i in range(10)]


class TestTouch:
    def test_title_set_only_when_missing(self, store) -> None:
        untitled = store.create_conversation(owner_id="alice")
        titled = store.create_conversation(owner_id="alice", title="Keep me")

        store.touch_conversation(untitled.id, title="New title")
        store.touch_conversation(titled.id, title="Ignored")

        assert store.get_conversation(untitled.id).title == "New title"
        assert store.get_conversation(titled.id).title == "Keep me"

    def test_touch_unknown(self, store) -> None:
        with pytest.raises(ConversationNotFoundError):
            store.touch_conversation("missing")


class TestCrudSurface:
    """Update, toggles, deletes, listing, search and stats."""

    def test_update_fields(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice", title="Old")

        updated = store.update_conversation(conversation.id, title="New", is_pinned=True)

        assert updated.title == "New"
        assert updated.is_pinned is True
        assert updated.is_archived is False

    def test_update_title_unset_keeps_title(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice", title="Keep")
        updated = store.update_conversation(conversation.id, title=UNSET, is_archived=True)
        assert updated.title == "Keep"
        assert updated.is_archived is True

    def test_update_unknown(self, store) -> None:
        with pytest.raises(ConversationNotFoundError):
            store.update_conversation("missing", title="x")

    def test_toggles(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")

        assert store.toggle_pin(conversation.id) is True
        assert store.toggle_pin(conversation.id) is False
        assert store.toggle_archive(conversation.id) is True

    def test_toggle_unknown(self, store) -> None:
        with pytest.raises(ConversationNotFoundError):
            store.toggle_pin("missing")

    def test_delete_removes_messages(self, store) -> None:
        conversation = store.create_conversation(owner_id="alice")
        store.append_message(conversation.id, "user", "hello")

        assert store.delete_conversation(conversation.id) is True
        assert store.get_conversation(conversation.id) is None
        assert store.list_messages(conversation.id) == []
        assert store.delete_conversation(conversation.id) is False

    def test_delete_all_for_owner(self, store) -> None:
        for _ in range(2):
            c = store.create_conversation(owner_id="alice")
            store.append_message(c.id, "user", "hi")
            store.append_message(c.id, "assistant", "hello")
        bob = store.create_conversation(owner_id="bob")

        assert store.delete_all_conversations("alice") == (2, 4)
        assert store.list_conversations("alice") == []
        assert store.get_conversation(bob.id) is not None
        assert store.delete_all_conversations("alice") == (0, 0)

    def test_list_most_recent_first_with_latest_message(self, store) -> None:
        first = store.create_conversation(owner_id="alice", title="first")
        second = store.create_conversation(owner_id="alice", title="second")
        store.create_conversation(owner_id="bob", title="other owner")
        store.append_message(second.id, "user", "older")
        store.append_message(first.id, "user", "q")
        store.append_message(first.id, "assistant", "latest")

        listed = store.list_conversations("alice")

        assert [c.id for c in listed] == [first.id, second.id]
        assert [m.content for m in listed[0].messages] == ["latest"]

    def test_list_limit(self, store) -> None:
        for _ in range(3):
            store.create_conversation(owner_id="alice")
        assert len(store.list_conversations("alice", limit=2)) == 2

    def test_search_title_and_content(self, store) -> None:
        by_title = store.create_conversation(owner_id="alice", title="Paris trip")
        by_content = store.create_conversation(owner_id="alice", title="Misc")
        store.append_message(by_content.id, "user", "Best cafés in PARIS?")
        store.create_conversation(owner_id="alice", title="Rome")
        store.create_conversation(owner_id="bob", title="Paris too")

        found = {c.id for c in store.search_conversations("alice", "paris")}

        assert found == {by_title.id, by_content.id}

    def test_search_wildcards_are_literal(self, store) -> None:
        store.create_conversation(owner_id="alice", title="100% sure")
        store.create_conversation(owner_id="alice", title="1000 things")

        titles = [c.title for c in store.search_conversations("alice", "0%")]

        assert titles == ["100% sure"]

    def test_stats(self, store) -> None:
        a = store.create_conversation(owner_id="alice")
        b = store.create_conversation(owner_id="alice")
        store.create_conversation(owner_id="bob")
        store.append_message(a.id, "user", "hi")
        store.append_message(a.id, "assistant", "hello")
        store.toggle_pin(a.id)
        store.toggle_archive(b.id)

        assert store.get_stats("alice") == {
            "total_conversations": 2,
            "pinned_conversations": 1,
            "archived_conversations": 1,
            "total_messages": 2,
        }
        assert store.get_stats()["total_conversations"] == 3


class TestSQLStoreErrors:
    """Database failures surface as StoreError."""

    def test_sqlalchemy_error_wrapped(self, sql_store) -> None:
        conversation = sql_store.create_conversation(owner_id="alice")

        with patch.object(
            sql_store.db, "_session_factory",
            side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
        ):
            with pytest.raises(StoreError):
                sql_store.append_message(conversation.id, "user", "hello")

    def test_storage_names(self, sql_store, memory_store) -> None:
        assert sql_store.storage == "persistent"
        assert memory_store.storage == "memory"


class TestStoreSelection:
    """MEMORY_PERSISTENT picks the backend."""

    def test_in_memory_by_default(self, with_settings) -> None:
        from chatrelay.memory import InMemoryConversationStore, get_conversation_store

        store = get_conversation_store(with_settings(memory_persistent=False))

        assert isinstance(store, InMemoryConversationStore)
        assert get_conversation_store(with_settings(memory_persistent=False)) is store

    def test_persistent_creates_tables(self, with_settings) -> None:
        from chatrelay.database.connection import reset_database
        from chatrelay.memory import SQLConversationStore, get_conversation_store

        try:
            store = get_conversation_store(with_settings(memory_persistent=True))
            assert isinstance(store, SQLConversationStore)

            conversation = store.create_conversation(owner_id="alice")
            store.append_message(conversation.id, "user", "persisted")
            assert [m.content for m in store.list_messages(conversation.id)] == ["persisted"]
        finally:
            reset_database()
