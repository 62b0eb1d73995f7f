from __future__ import annotations

import base64
import email

import pytest

from conftest import make_message
from models.email_message import EmailMessage
from services.auto_reply import AutoReplyService, craft_reply
from services.gmail_service import GmailService


def _decode_sent(gmail_client, index: int = 0):
    send = gmail_client.users.return_value.messages.return_value.send
    body = send.call_args_list[index].kwargs["body"]
    return email.message_from_bytes(base64.urlsafe_b64decode(body["raw"]))


def _service(account, gmail_client, *messages) -> AutoReplyService:
    api = gmail_client.users.return_value.messages.return_value
    api.list.return_value.execute.return_value = {"messages": [{"id": m["id"]} for m in messages]}
    api.get.return_value.execute.side_effect = list(messages)
    return AutoReplyService(GmailService(account, gmail_client), "L1", "I'm away.")


def test_unreplied_message_gets_one_reply_and_relabel(account, gmail_client) -> None:
    service = _service(account, gmail_client, make_message("m1", sender="a@b.com", subject="Hi"))

    result = service.run_tick()

    api = gmail_client.users.return_value.messages.return_value
    assert result.replied == ["m1"]
    assert api.send.call_count == 1
    sent = _decode_sent(gmail_client)
    assert sent["To"] == "a@b.com"
    assert sent["Subject"] == "Re: Hi"
    assert sent.get_payload(decode=True).decode("utf-8") == "I'm away."
    api.modify.assert_called_once_with(
        userId="me", id="m1", body={"addLabelIds": ["L1"], "removeLabelIds": ["INBOX"]}
    )


def test_message_with_in_reply_to_is_skipped(account, gmail_client) -> None:
    service = _service(account, gmail_client, make_message("m1", in_reply_to="<orig@example.com>"))

    result = service.run_tick()

    api = gmail_client.users.return_value.messages.return_value
    assert result.skipped == ["m1"]
    assert result.replied == []
    api.send.assert_not_called()
    api.modify.assert_not_called()


def test_each_message_fetched_once(account, gmail_client) -> None:
    service = _service(
        account,
        gmail_client,
        make_message("m1"),
        make_message("m2", in_reply_to="<x@y>"),
        make_message("m3", sender="c@d.com", subject="Lunch"),
    )

    result = service.run_tick()

    api = gmail_client.users.return_value.messages.return_value
    assert api.get.call_count == 3
    assert result.seen == 3
    assert result.replied == ["m1", "m3"]
    assert result.skipped == ["m2"]
    assert _decode_sent(gmail_client, 1)["To"] == "c@d.com"


def test_message_without_sender_is_skipped(account, gmail_client) -> None:
    service = _service(account, gmail_client, make_message("m1", sender=None))

    result = service.run_tick()

    assert result.skipped == ["m1"]
    gmail_client.users.return_value.messages.return_value.send.assert_not_called()


def test_failure_aborts_rest_of_tick(account, gmail_client) -> None:
    service = _service(account, gmail_client, make_message("m1"), make_message("m2"))
    api = gmail_client.users.return_value.messages.return_value
    api.send.return_value.execute.side_effect = RuntimeError("network down")

    with pytest.raises(RuntimeError):
        service.run_tick()

    assert api.get.call_count == 1
    api.modify.assert_not_called()


def test_empty_inbox_does_nothing(account, gmail_client) -> None:
    result = AutoReplyService(GmailService(account, gmail_client), "L1", "away").run_tick()

    assert result.seen == 0
    gmail_client.users.return_value.messages.return_value.get.assert_not_called()


def test_craft_reply_threads_on_message_id() -> None:
    original = EmailMessage(
        id="m1",
        thread_id="t-9",
        headers={"from": "Ann <ann@example.com>", "subject": "Plans", "message-id": "<abc@mail>"},
    )

    draft = craft_reply(original, "away")

    assert draft.to == "Ann <ann@example.com>"
    assert draft.subject == "Re: Plans"
    assert draft.thread_id == "t-9"
    assert draft.in_reply_to == "<abc@mail>"
    assert draft.references == "<abc@mail>"


def test_craft_reply_with_missing_subject() -> None:
    original = EmailMessage(id="m1", thread_id=None, headers={"from": "a@b.com"})

    draft = craft_reply(original, "away")

    assert draft.subject == "Re: "
    assert draft.in_reply_to is None
    assert "threadId" not in draft.to_send_body()


def test_craft_reply_requires_sender() -> None:
    with pytest.raises(ValueError):
        craft_reply(EmailMessage(id="m1", thread_id=None), "away")
