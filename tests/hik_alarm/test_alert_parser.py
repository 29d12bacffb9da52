import pytest

from hik_alarm.alert_event import AlarmStatus, classify
from hik_alarm.alert_parser import parse_alert_xml
from hik_alarm.framing import extract_alert_messages

from .helpers import MOTION, NO_MOTION, alert


def _only_message(raw: bytes) -> bytes:
    messages = extract_alert_messages(bytearray(raw))
    assert len(messages) == 1
    return messages[0]


def test_parses_namespaced_camera_document():
    event = parse_alert_xml(_only_message(MOTION))

    assert event.event_type == "VMD"
    assert event.event_state == "active"
    assert event.status is AlarmStatus.MOTION
    assert event.raw_xml.startswith("<EventNotificationAlert")


def test_inactive_videoloss_is_no_motion():
    event = parse_alert_xml(_only_message(NO_MOTION))
    assert event.status is AlarmStatus.NO_MOTION


@pytest.mark.parametrize(
    "event_type, event_state, expected",
    [
        ("videoloss", "inactive", AlarmStatus.NO_MOTION),
        ("videoloss", "active", AlarmStatus.MOTION),
        ("VMD", "inactive", AlarmStatus.MOTION),
        ("linedetection", "active", AlarmStatus.MOTION),
        ("somethingNew", "whatever", AlarmStatus.MOTION),
        ("VideoLoss", "inactive", AlarmStatus.MOTION),  # exact match only
    ],
)
def test_classify(event_type, event_state, expected):
    assert classify(event_type, event_state) is expected
    assert parse_alert_xml(_only_message(alert(event_type, event_state))).status is expected


def test_not_well_formed_fragment_still_decodes():
    # Attribute without a value and mismatched tags: not XML, but both fields are present.
    text = (
        "<EventNotification x><eventType>videoloss</eventType>"
        "<eventState>inactive</eventState></EventNotificationAlert>"
    )
    event = parse_alert_xml(text)

    assert event.event_type == "videoloss"
    assert event.event_state == "inactive"
    assert event.status is AlarmStatus.NO_MOTION


def test_missing_event_state_raises_value_error():
    text = "<EventNotificationAlert><eventType>VMD</eventType></EventNotificationAlert>"
    with pytest.raises(ValueError, match="eventState"):
        parse_alert_xml(text)


def test_missing_event_type_raises_value_error():
    text = "<EventNotification garbage <eventState>active</eventState></EventNotificationAlert>"
    with pytest.raises(ValueError, match="eventType"):
        parse_alert_xml(text)


def test_empty_payload_raises_value_error():
    with pytest.raises(ValueError):
        parse_alert_xml(b"   ")


@pytest.mark.parametrize(
    "text",
    [
        # well-formed
        "<EventNotificationAlert><eventType> videoloss </eventType>"
        "<eventState>inactive</eventState></EventNotificationAlert>",
        # tag-scan fallback
        "<EventNotification x><eventType>videoloss</eventType>"
        "<eventState>inactive\n</eventState></EventNotificationAlert>",
    ],
)
def test_padded_field_text_is_not_trimmed(text):
    event = parse_alert_xml(text)

    assert "videoloss" in event.event_type
    assert event.status is AlarmStatus.MOTION
