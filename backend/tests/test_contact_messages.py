from __future__ import annotations

from datetime import timedelta

import pytest

from app.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from app.crud.contact_message import (
    archive_contact_message,
    count_pending_contact_messages,
    create_contact_message,
    get_contact_message,
    list_contact_messages,
    list_pending_contact_messages,
    mark_contact_message_read,
    mark_contact_message_replied,
    message_preview,
)
from app.db.types import utcnow
from app.models.contact_message import MessageStatus


def _message(db, **overrides):
    fields = {
        "name": "João Pereira",
        "email": "joao@fazenda.com.br",
        "phone": "+55 11 99999-0000",
        "message": "Gostaria de saber mais sobre IA para gestão de safra.",
    }
    fields.update(overrides)
    return create_contact_message(db, **fields)


class TestCreate:
    def test_new_message_starts_as_new(self, db) -> None:
        cm = _message(db)
        assert cm.id is not None
        assert cm.status == MessageStatus.new
        assert cm.read_at is None
        assert cm.replied_at is None
        assert cm.created_at is not None

    def test_ids_are_sequential(self, db) -> None:
        first = _message(db)
        second = _message(db)
        assert second.id > first.id

    def test_phone_is_optional(self, db) -> None:
        assert _message(db, phone=None).phone is None
        assert _message(db, phone="   ").phone is None

    @pytest.mark.parametrize("field", ["name", "email", "message"])
    def test_required_fields(self, db, field) -> None:
        with pytest.raises(ValidationError):
            _message(db, **{field: ""})

    def test_malformed_email_is_rejected(self, db) -> None:
        with pytest.raises(ValidationError):
            _message(db, email="not-an-email")


class TestWorkflow:
    def test_view_marks_read_once(self, db) -> None:
        cm = _message(db)
        first_view = utcnow()
        mark_contact_message_read(db, message_id=cm.id, now=first_view)
        assert cm.status == MessageStatus.read
        assert cm.read_at == first_view

        mark_contact_message_read(db, message_id=cm.id, now=first_view + timedelta(hours=1))
        assert cm.read_at == first_view

    def test_reply_keeps_read_at(self, db) -> None:
        cm = _message(db)
        read_time = utcnow()
        reply_time = read_time + timedelta(hours=3)
        mark_contact_message_read(db, message_id=cm.id, now=read_time)
        mark_contact_message_replied(db, message_id=cm.id, now=reply_time)

        db.expire_all()
        stored = get_contact_message(db, message_id=cm.id)
        assert stored.status == MessageStatus.replied
        assert stored.read_at == read_time
        assert stored.replied_at == reply_time

    def test_reply_to_unread_message_records_read(self, db) -> None:
        cm = _message(db)
        reply_time = utcnow()
        mark_contact_message_replied(db, message_id=cm.id, now=reply_time)
        assert cm.status == MessageStatus.replied
        assert cm.read_at == reply_time
        assert cm.replied_at == reply_time

    def test_viewing_replied_message_changes_nothing(self, db) -> None:
        cm = _message(db)
        reply_time = utcnow()
        mark_contact_message_replied(db, message_id=cm.id, now=reply_time)
        mark_contact_message_read(db, message_id=cm.id, now=reply_time + timedelta(days=1))
        assert cm.status == MessageStatus.replied
        assert cm.read_at == reply_time

    def test_second_reply_keeps_replied_at(self, db) -> None:
        cm = _message(db)
        reply_time = utcnow()
        mark_contact_message_replied(db, message_id=cm.id, now=reply_time)
        mark_contact_message_replied(db, message_id=cm.id, now=reply_time + timedelta(days=1))
        assert cm.replied_at == reply_time

    @pytest.mark.parametrize("before", ["new", "read", "replied"])
    def test_archive_from_any_state(self, db, before) -> None:
        cm = _message(db)
        if before == "read":
            mark_contact_message_read(db, message_id=cm.id)
        elif before == "replied":
            mark_contact_message_replied(db, message_id=cm.id)
        archive_contact_message(db, message_id=cm.id)
        assert cm.status == MessageStatus.archived
        assert archive_contact_message(db, message_id=cm.id).status == MessageStatus.archived

    def test_archived_message_cannot_be_replied(self, db) -> None:
        cm = _message(db)
        archive_contact_message(db, message_id=cm.id)
        with pytest.raises(InvalidTransitionError):
            mark_contact_message_replied(db, message_id=cm.id)
        assert cm.replied_at is None

    def test_archived_message_stays_archived_when_viewed(self, db) -> None:
        cm = _message(db)
        archive_contact_message(db, message_id=cm.id)
        mark_contact_message_read(db, message_id=cm.id)
        assert cm.status == MessageStatus.archived
        assert cm.read_at is None

    def test_unknown_message(self, db) -> None:
        with pytest.raises(NotFoundError):
            mark_contact_message_read(db, message_id=999)
        with pytest.raises(NotFoundError):
            mark_contact_message_replied(db, message_id=999)
        with pytest.raises(NotFoundError):
            archive_contact_message(db, message_id=999)


class TestListing:
    def test_pending_includes_new_until_replied(self, db) -> None:
        cm = _message(db)
        assert [m.id for m in list_pending_contact_messages(db)] == [cm.id]

        mark_contact_message_replied(db, message_id=cm.id)
        assert list_pending_contact_messages(db) == []

    def test_pending_is_newest_first(self, db) -> None:
        first = _message(db)
        second = _message(db)
        first.created_at = utcnow() - timedelta(days=1)
        db.commit()

        assert [m.id for m in list_pending_contact_messages(db)] == [second.id, first.id]

    def test_read_message_is_not_pending(self, db) -> None:
        cm = _message(db)
        other = _message(db)
        mark_contact_message_read(db, message_id=cm.id)
        assert [m.id for m in list_pending_contact_messages(db)] == [other.id]

    def test_filter_by_status(self, db) -> None:
        a = _message(db)
        b = _message(db)
        archive_contact_message(db, message_id=b.id)
        assert [m.id for m in list_contact_messages(db, status=MessageStatus.archived)] == [b.id]
        assert {m.id for m in list_contact_messages(db)} == {a.id, b.id}

    def test_preview_is_first_hundred_characters(self, db) -> None:
        body = "x" * 90 + "y" * 60
        cm = _message(db, message=body)
        assert message_preview(cm) == body[:100]
        assert len(message_preview(cm)) == 100

    def test_preview_of_short_message(self, db) -> None:
        cm = _message(db, message="Olá, tudo bem?")
        assert message_preview(cm) == "Olá, tudo bem?"


class TestPendingCount:
    def test_counts_only_new_messages(self, db) -> None:
        assert count_pending_contact_messages(db) == 0
        read = _message(db)
        replied = _message(db)
        archived = _message(db)
        _message(db)
        _message(db)
        mark_contact_message_read(db, message_id=read.id)
        mark_contact_message_replied(db, message_id=replied.id)
        archive_contact_message(db, message_id=archived.id)

        assert count_pending_contact_messages(db) == 2
        assert count_pending_contact_messages(db) == len(list_pending_contact_messages(db))
