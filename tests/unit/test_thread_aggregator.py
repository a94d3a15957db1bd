"""Unit tests for thread aggregation."""

import pytest

from inbox_feed.models import StoredMessage
from inbox_feed.threads import aggregate_thread, is_sent_by

OWNER = "me@example.com"


def _message(message_id: str, **overrides) -> StoredMessage:
    fields = {
        "id": message_id,
        "thread_id": "t1",
        "subject": "Hello",
        "sender": "Bob <bob@example.com>",
        "to": "Me <me@example.com>",
        "date": f"date-{message_id}",
        "snippet": f"snippet-{message_id}",
        "labels": ["INBOX"],
    }
    fields.update(overrides)
    return StoredMessage(**fields)


class TestAggregateThread:
    def test_basic_thread(self) -> None:
        messages = [
            _message("m1", subject="Re: Hello"),
            _message("m2", sender="Me <me@example.com>", to="Bob <bob@example.com>", subject="Re: Re: Hello"),
        ]

        thread = aggregate_thread("t1", messages, OWNER)

        assert thread.id == "t1"
        assert thread.subject == "Hello"
        assert thread.participants == ["Bob"]
        assert thread.message_count == 2
        assert thread.last_message_date == "date-m2"
        assert thread.last_message_snippet == "snippet-m2"
        assert [m.id for m in thread.messages] == ["m1", "m2"]

    def test_is_deterministic(self) -> None:
        messages = [
            _message("m1", cc="Carol <carol@example.com>, Dave <dave@example.com>"),
            _message("m2", labels=["INBOX", "UNREAD"], is_unread=True),
        ]

        assert aggregate_thread("t1", messages, OWNER) == aggregate_thread("t1", messages, OWNER)

    def test_message_subjects_are_left_as_sent(self) -> None:
        thread = aggregate_thread("t1", [_message("m1", subject="Fwd: Re: Plan")], OWNER)

        assert thread.subject == "Plan"
        assert thread.messages[0].subject == "Fwd: Re: Plan"

    def test_subject_comes_from_first_non_empty(self) -> None:
        messages = [_message("m1", subject="  "), _message("m2", subject="RE: Budget")]

        assert aggregate_thread("t1", messages, OWNER).subject == "Budget"

    def test_participants_exclude_owner_by_address_and_name(self) -> None:
        messages = [
            _message(
                "m1",
                sender="Alice Smith <ALICE@example.com>",
                to="me <other@example.com>, Bob <bob@example.com>",
                cc='"Smith, Carol" <carol@example.com>',
            ),
        ]

        thread = aggregate_thread("t1", messages, "alice@example.com")

        assert thread.participants == ["Bob", "Smith, Carol"]

    def test_participants_deduplicated_in_first_seen_order(self) -> None:
        messages = [
            _message("m1", sender="Bob <bob@example.com>", to="Me <me@example.com>, Carol <carol@example.com>"),
            _message("m2", sender="Carol <carol@example.com>", to="Bob <bob@example.com>"),
        ]

        assert aggregate_thread("t1", messages, OWNER).participants == ["Bob", "Carol"]

    def test_name_seen_as_owner_anywhere_is_excluded(self) -> None:
        messages = [
            _message("m1", sender="Sam <sam@example.com>", to="Me <me@example.com>"),
            _message("m2", sender="Sam <me@example.com>", to="Bob <bob@example.com>"),
        ]

        assert aggregate_thread("t1", messages, OWNER).participants == ["Bob"]

    def test_empty_address_group_is_not_a_participant(self) -> None:
        messages = [_message("m1", to="undisclosed-recipients:;")]

        assert aggregate_thread("t1", messages, OWNER).participants == ["Bob"]

    def test_participants_fall_back_to_me(self) -> None:
        messages = [_message("m1", sender="Me <me@example.com>", to="me@example.com")]

        assert aggregate_thread("t1", messages, OWNER).participants == ["me"]

    def test_has_unread_is_union(self) -> None:
        read = [_message("m1"), _message("m2")]
        mixed = [_message("m1"), _message("m2", is_unread=True, labels=["INBOX", "UNREAD"])]

        assert aggregate_thread("t1", read, OWNER).has_unread is False
        assert aggregate_thread("t1", mixed, OWNER).has_unread is True

    def test_labels_are_union_in_first_seen_order(self) -> None:
        messages = [
            _message("m1", labels=["INBOX", "IMPORTANT"]),
            _message("m2", labels=["SENT", "INBOX"]),
            _message("m3", labels=["UNREAD", "IMPORTANT"]),
        ]

        assert aggregate_thread("t1", messages, OWNER).labels == ["INBOX", "IMPORTANT", "SENT", "UNREAD"]

    def test_sent_flag_per_message(self) -> None:
        messages = [
            _message("m1"),
            _message("m2", sender="Me <Me@Example.com>"),
            _message("m3", sender="Alias <alias@example.com>", labels=["SENT"]),
        ]

        thread = aggregate_thread("t1", messages, OWNER)

        assert [m.is_sent for m in thread.messages] == [False, True, True]
        # Inputs are not modified.
        assert [m.is_sent for m in messages] == [False, False, False]

    def test_empty_thread_raises(self) -> None:
        with pytest.raises(ValueError):
            aggregate_thread("t1", [], OWNER)


@pytest.mark.parametrize(
    ("sender", "labels", "expected"),
    [
        ("Me <me@example.com>", [], True),
        ("me@example.com", ["INBOX"], True),
        ("Bob <bob@example.com>", ["SENT"], True),
        ("Bob <bob@example.com>", ["INBOX"], False),
    ],
)
def test_is_sent_by(sender, labels, expected) -> None:
    assert is_sent_by(_message("m1", sender=sender, labels=labels), OWNER) is expected
