from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, Field

EVENT_TYPE_VIDEOLOSS = "videoloss"
EVENT_STATE_INACTIVE = "inactive"


class AlarmStatus(IntEnum):
    """Alarm state for one camera, as the small integer the device host stores."""

    UNKNOWN = -1
    NO_MOTION = 0
    MOTION = 1

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


class AlertEvent(BaseModel):
    """
    Parsed representation of one <EventNotificationAlert> document.

    Keep raw_xml for traceability/debugging.
    """
    event_type: str
    event_state: str

    received_at: datetime
    raw_xml: str = Field(..., description="Original <EventNotification...>...</EventNotificationAlert> payload")

    @property
    def status(self) -> AlarmStatus:
        return classify(self.event_type, self.event_state)


def classify(event_type: str, event_state: str) -> AlarmStatus:
    """
    Map an (eventType, eventState) pair to an alarm status.

    Only an inactive videoloss event means "no motion". Every other pair,
    unknown types included, counts as motion.
    """
    if event_type == EVENT_TYPE_VIDEOLOSS and event_state == EVENT_STATE_INACTIVE:
        return AlarmStatus.NO_MOTION
    return AlarmStatus.MOTION
