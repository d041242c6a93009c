from __future__ import annotations

from dataclasses import replace
from datetime import date

from school_portal.common.datetime_utils import MonotonicClock, arabic_date_label
from school_portal.core.enums import Folder, Role
from school_portal.messages.model import ComposeDraft, Message, message_from_dict, message_to_dict
from school_portal.messages.thread import (
    MessageCache,
    build_message,
    build_reply,
    in_folder,
    reply_target,
    sort_newest_first,
)


def test_new_message_is_unread_without_replies(teacher):
    draft = ComposeDraft(subject=" الاختبار ", content="تذكير", recipient_id="s1")
    m = build_message(teacher, draft, recipient_role=Role.STUDENT, timestamp=5)

    assert m.id is None
    assert m.read is False
    assert m.replies is None
    assert m.subject == "الاختبار"
    assert (m.sender_id, m.sender_name, m.sender_role) == ("t1", "أحمد", Role.TEACHER)


def test_reply_routes_back_to_parent_sender(teacher, student, new_message):
    parent = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, subject="الواجب", message_id="9")

    r = build_reply(student, parent, "شكراً", timestamp=7)

    assert r.subject == "Re: الواجب"
    assert r.recipient_id == parent.sender_id
    assert r.recipient_role == parent.sender_role
    assert r.sender_id == "s1"
    assert not hasattr(r, "replies")


def test_thread_visibility_follows_replies(teacher, student, new_message):
    root = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, message_id="1")

    assert in_folder(root, user_id="s1", role=Role.STUDENT, folder=Folder.INBOX)
    assert not in_folder(root, user_id="t1", role=Role.TEACHER, folder=Folder.INBOX)
    assert in_folder(root, user_id="t1", role=Role.TEACHER, folder=Folder.SENT)

    threaded = root.with_reply(build_reply(student, root, "شكراً", timestamp=2000))
    assert in_folder(threaded, user_id="t1", role=Role.TEACHER, folder=Folder.INBOX)
    assert in_folder(threaded, user_id="s1", role=Role.STUDENT, folder=Folder.SENT)


def test_role_must_match_as_well_as_id(teacher, new_message):
    m = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, message_id="1")
    assert not in_folder(m, user_id="s1", role=Role.TEACHER, folder=Folder.INBOX)


def test_sort_is_newest_first_and_stable_on_ties(teacher, new_message):
    a = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, timestamp=10, message_id="a")
    b = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, timestamp=10, message_id="b")
    c = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, timestamp=20, message_id="c")

    first = sort_newest_first([a, b, c])
    second = sort_newest_first(first)

    assert [m.id for m in first] == ["c", "a", "b"]
    assert [m.id for m in second] == ["c", "a", "b"]


def test_cache_read_flip_is_seen_through_every_lookup(teacher, new_message):
    m = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, message_id="1")
    cache = MessageCache()
    cache.replace_all([m])

    cache.mark_read("1")

    assert cache.get("1").read is True
    assert cache.snapshot()[0].read is True
    assert m.read is False


def test_cache_skips_unpersisted_and_duplicate_ids(teacher, new_message):
    persisted = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, message_id="1")
    draft = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT)
    cache = MessageCache()
    cache.replace_all([persisted, draft, persisted])

    assert len(cache) == 1


def test_message_dict_keeps_replies_absent_when_none(teacher, student, new_message):
    root = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, message_id="1")
    d = message_to_dict(root)
    assert "replies" not in d

    threaded = root.with_reply(build_reply(student, root, "شكراً", timestamp=2))
    back = message_from_dict(message_to_dict(threaded))
    assert isinstance(back, Message)
    assert back.replies[0].content == "شكراً"


def test_monotonic_clock_never_repeats():
    clock = MonotonicClock(lambda: 5)
    assert [clock(), clock(), clock()] == [5, 6, 7]


def test_arabic_date_label():
    assert arabic_date_label(date(2026, 10, 19)) == "الاثنين، ١٩/١٠/٢٠٢٦"


def test_author_replying_in_own_thread_targets_latest_other_party(teacher, student, admin, new_message):
    root = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, message_id="1")

    assert reply_target(teacher, root) == ("s1", Role.STUDENT)

    threaded = root.with_reply(build_reply(student, root, "شكراً", timestamp=2)).with_reply(
        build_reply(teacher, root, "عفواً", timestamp=3)
    )
    assert reply_target(teacher, threaded) == ("s1", Role.STUDENT)
    assert reply_target(admin, threaded) == ("t1", Role.TEACHER)


def test_unread_is_counted_per_viewer(teacher, student, new_message):
    root = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, message_id="1", read=True)
    threaded = root.with_reply(replace(build_reply(student, root, "شكراً", timestamp=2), id="r1"))

    assert threaded.unread_for("t1", Role.TEACHER) == threaded.replies
    assert threaded.unread_for("s1", Role.STUDENT) == ()

    cache = MessageCache()
    cache.replace_all([threaded])
    cache.mark_reply_read("1", "r1")
    assert cache.get("1").unread_for("t1", Role.TEACHER) == ()
    assert cache.get("1").with_reply_read("r1") is cache.get("1")
