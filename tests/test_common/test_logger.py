"""
Tests for log event processors.
"""

from adlink.common.logger import MAX_FIELD_LENGTH, _add_service, _clip_long_values


def test_long_values_are_clipped() -> None:
    event = {"event": "Impression recorded", "user_agent": "x" * 1000, "ad_id": 3}

    result = _clip_long_values(None, "info", event)

    assert len(result["user_agent"]) == MAX_FIELD_LENGTH + 3
    assert result["user_agent"].endswith("...")
    assert result["ad_id"] == 3


def test_event_message_is_never_clipped() -> None:
    message = "m" * 1000

    assert _clip_long_values(None, "info", {"event": message})["event"] == message


def test_service_fields_added() -> None:
    result = _add_service(None, "info", {"event": "hello"})

    assert result["service"] == "adlink"
    assert result["env"] == "test"
