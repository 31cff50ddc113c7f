from __future__ import annotations

import pytest

from chat_governor.domain.messages import ContentPart, ConversationMessage, WindowResult


def test_plain_text_content_is_returned_verbatim() -> None:
    assert ConversationMessage("user", "hello").text() == "hello"


def test_structured_content_keeps_only_text_parts_in_order() -> None:
    message = ConversationMessage(
        "assistant",
        [ContentPart("text", "one "), ContentPart("tool-call", data={"name": "get_video"}), ContentPart("text", "two")],
    )

    assert message.text() == "one two"
    assert isinstance(message.content, tuple)


def test_from_dict_accepts_content_and_parts_shapes() -> None:
    plain = ConversationMessage.from_dict({"role": "user", "content": "hi"}, position=4)
    parts = ConversationMessage.from_dict({"role": "assistant", "parts": [{"type": "text", "text": "a"}, {"type": "image", "url": "u"}]})

    assert (plain.role, plain.text(), plain.position) == ("user", "hi", 4)
    assert parts.text() == "a"
    assert parts.content[1] == ContentPart("image", data={"url": "u"})


def test_from_dict_rejects_missing_role_and_bad_content() -> None:
    with pytest.raises(ValueError, match="role"):
        ConversationMessage.from_dict({"content": "x"})
    with pytest.raises(ValueError, match="unsupported"):
        ConversationMessage.from_dict({"role": "user", "content": 42})


def test_message_dict_round_trip_keeps_structure() -> None:
    payload = {"role": "assistant", "content": [{"type": "text", "text": "ok"}, {"type": "image", "url": "u"}], "position": 2}

    assert ConversationMessage.from_dict(payload).to_dict() == payload


def test_window_result_truncated_flag() -> None:
    assert WindowResult(summary=None, messages=[]).truncated is False
    assert WindowResult(summary="", messages=[]).truncated is True
    assert WindowResult(summary="s", messages=[ConversationMessage("user", "x")]).to_dict() == {
        "summary": "s",
        "messages": [{"role": "user", "content": "x"}],
    }
