from __future__ import annotations

import json

import pytest

from chat_relay.models import MessageRole
from chat_relay.services.request_validator import RequestValidator, client_address, parse_body
from chat_relay.utils.error_handler import (
    InvalidRequestError,
    MessageTooLongError,
    RateLimitExceeded,
)


def _body(messages: list[dict], **extra) -> bytes:
    return json.dumps({"messages": messages, **extra}).encode()


def test_client_address_prefers_forwarded_for() -> None:
    headers = {"x-forwarded-for": "203.0.113.7", "x-real-ip": "198.51.100.1"}

    assert client_address(headers) == "203.0.113.7"


def test_client_address_falls_back_to_real_ip_then_unknown() -> None:
    assert client_address({"x-real-ip": "198.51.100.1"}) == "198.51.100.1"
    assert client_address({}) == "unknown"


def test_parse_body_defaults_missing_messages_to_empty() -> None:
    conversation = parse_body(b'{"model": "some/model"}')

    assert conversation.messages == []
    assert conversation.model == "some/model"


def test_parse_body_keeps_message_order_and_roles() -> None:
    conversation = parse_body(
        _body(
            [
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "hello"},
                {"role": "user", "content": "how are you?"},
            ]
        )
    )

    assert [m.role for m in conversation.messages] == [
        MessageRole.USER,
        MessageRole.ASSISTANT,
        MessageRole.USER,
    ]
    assert conversation.last_message.content == "how are you?"


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[1, 2]",
        b'{"messages": [{"role": "robot", "content": "beep"}]}',
        b'{"messages": "hello"}',
    ],
)
def test_parse_body_rejects_malformed_input(raw: bytes) -> None:
    with pytest.raises(InvalidRequestError) as excinfo:
        parse_body(raw)

    assert excinfo.value.status_code == 400


def test_validate_rejects_long_trailing_message(rate_limiter) -> None:
    validator = RequestValidator(rate_limiter, max_message_length=500)

    with pytest.raises(MessageTooLongError) as excinfo:
        validator.validate("1.2.3.4", _body([{"role": "user", "content": "x" * 501}]))

    assert excinfo.value.status_code == 400
    assert "500" in excinfo.value.message


def test_validate_accepts_message_at_the_limit(rate_limiter) -> None:
    validator = RequestValidator(rate_limiter, max_message_length=500)

    conversation = validator.validate("1.2.3.4", _body([{"role": "user", "content": "x" * 500}]))

    assert len(conversation.messages) == 1


def test_only_the_trailing_message_is_length_checked(rate_limiter) -> None:
    validator = RequestValidator(rate_limiter, max_message_length=10)

    conversation = validator.validate(
        "1.2.3.4",
        _body(
            [
                {"role": "assistant", "content": "a very long earlier reply"},
                {"role": "user", "content": "short"},
            ]
        ),
    )

    assert len(conversation.messages) == 2


def test_empty_conversation_skips_length_check(rate_limiter) -> None:
    validator = RequestValidator(rate_limiter, max_message_length=1)

    assert validator.validate("1.2.3.4", _body([])).messages == []


def test_rate_limit_is_recorded_before_the_body_is_parsed(rate_limiter, clock) -> None:
    validator = RequestValidator(rate_limiter)

    with pytest.raises(InvalidRequestError):
        validator.validate("1.2.3.4", b"{broken")

    assert rate_limiter.last_request("1.2.3.4") == clock.now
    with pytest.raises(RateLimitExceeded):
        validator.validate("1.2.3.4", _body([]))


@pytest.mark.parametrize("content", [None, 42, ["x"], {"text": "hi"}])
def test_non_string_trailing_content_is_rejected_as_too_long(rate_limiter, content) -> None:
    validator = RequestValidator(rate_limiter, max_message_length=500)

    with pytest.raises(MessageTooLongError) as excinfo:
        validator.validate("1.2.3.4", _body([{"role": "user", "content": content}]))

    assert excinfo.value.message == "Message too long. Maximum length is 500 characters."


def test_earlier_messages_are_not_content_checked(rate_limiter) -> None:
    validator = RequestValidator(rate_limiter)

    conversation = validator.validate(
        "1.2.3.4",
        _body(
            [
                {"role": "assistant", "content": None},
                {"role": "user", "content": "still there?"},
            ]
        ),
    )

    assert conversation.messages[0].content is None


def test_null_messages_parse_as_empty_conversation() -> None:
    assert parse_body(b'{"messages": null}').messages == []
