from __future__ import annotations

import base64

START_TAG = b"<EventNotification"
END_TAG = b"</EventNotificationAlert>"


def extract_alert_messages(buffer: bytearray) -> list[bytes]:
    """
    Extract as many complete <EventNotification...>...</EventNotificationAlert> messages as possible.

    The camera pushes XML documents back-to-back over a kept-open HTTP response, with
    no length prefix. One read can end in the middle of a document, or hold several.

    - If no end tag is present, nothing is consumed (wait for more bytes).
    - Otherwise everything through the end tag is removed from the buffer, whether or not
      a start tag precedes it. A chunk with no start tag yields no message.
    """
    messages: list[bytes] = []

    while True:
        end = buffer.find(END_TAG)
        if end == -1:
            return messages

        stop = end + len(END_TAG)
        start = buffer.find(START_TAG, 0, end)
        if start != -1:
            messages.append(bytes(buffer[start:stop]))

        # Drop the consumed bytes even when there was no start tag,
        # so a broken chunk cannot stall the stream.
        del buffer[:stop]


def build_alert_stream_request(host: str, username: str, password: str, path: str) -> bytes:
    """Build the HTTP request that subscribes to the camera's alert stream."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    header = (
        f"GET {path} HTTP/1.1\r\n"
        f"Host: {host}\r\n"
        f"Authorization: Basic {token}\r\n"
        "Connection: keep-alive\r\n"
        "\r\n"
    )
    return header.encode("ascii")
