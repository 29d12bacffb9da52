from __future__ import annotations

import re
from datetime import datetime, timezone
from xml.etree import ElementTree as ET

from .alert_event import AlertEvent


def _local_name(tag: str) -> str:
    """
    Helper: cameras send a default namespace (xmlns="http://www.hikvision.com/ver20/XMLSchema"),
    so ElementTree tags look like "{ns}eventType". Compare on the local part only.
    """
    return tag.rsplit("}", 1)[-1]


def _find_text(root: ET.Element, name: str) -> str | None:
    for el in root.iter():
        if _local_name(el.tag) == name:
            return el.text or ""
    return None


def _scan_text(xml_text: str, name: str) -> str | None:
    """Fallback for fragments that are not well-formed XML: take the first <name>...</name>."""
    match = re.search(rf"<(?:\w+:)?{name}\b[^>]*>(.*?)</(?:\w+:)?{name}>", xml_text, re.DOTALL)
    if match is None:
        return None
    return match.group(1)


def parse_alert_xml(payload: bytes | str) -> AlertEvent:
    """
    Parse one <EventNotification...>...</EventNotificationAlert> message into AlertEvent.

    This function is PURE (no sockets, no logging) so it's easy to unit test.

    Framing only guarantees that the text sits between the two markers, not that it
    is well-formed. A strict parse is tried first; if it fails the two fields are
    picked out with a tag scan instead.

    Raises ValueError when eventType or eventState cannot be found.
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")

    xml_text = payload.strip()
    if not xml_text:
        raise ValueError("Empty alert message")

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError:
        event_type = _scan_text(xml_text, "eventType")
        event_state = _scan_text(xml_text, "eventState")
    else:
        event_type = _find_text(root, "eventType")
        event_state = _find_text(root, "eventState")

    if event_type is None:
        raise ValueError("Missing <eventType> element")
    if event_state is None:
        raise ValueError("Missing <eventState> element")

    return AlertEvent(
        event_type=event_type,
        event_state=event_state,
        received_at=datetime.now(timezone.utc),
        raw_xml=xml_text,
    )
