#!/usr/bin/env python3
"""
Fake HikVision camera that serves the alert stream.

Answers GET /Event/notification/alertStream and then pushes an
<EventNotificationAlert> every 1/rate seconds, switching between
motion and "no motion" (inactive videoloss) every few seconds.

Usage:
    python scripts/fake_hik_camera.py [port] [rate]

Then point the checker at it, e.g. a HikAlarmCheck.ini with
    [Camera1]
    IpAddress = 127.0.0.1
and CAMERA_PORT=<port> in the environment.
"""

import asyncio
import sys
from datetime import datetime

RESPONSE_HEADER = (
    b"HTTP/1.1 200 OK\r\n"
    b"MIME-Version: 1.0\r\n"
    b"Connection: close\r\n"
    b"Content-Type: multipart/mixed; boundary=boundary\r\n"
    b"\r\n"
)

ALERT_TEMPLATE = """--boundary\r
Content-Type: application/xml; charset="UTF-8"\r
\r
<EventNotificationAlert version="2.0" xmlns="http://www.hikvision.com/ver20/XMLSchema">
<ipAddress>127.0.0.1</ipAddress>
<portNo>80</portNo>
<protocol>HTTP</protocol>
<channelID>1</channelID>
<dateTime>{time}</dateTime>
<activePostCount>{count}</activePostCount>
<eventType>{event_type}</eventType>
<eventState>{event_state}</eventState>
<eventDescription>{event_type} alarm</eventDescription>
</EventNotificationAlert>
"""


def build_alert(count: int, motion: bool) -> bytes:
    event_type, event_state = ("VMD", "active") if motion else ("videoloss", "inactive")
    return ALERT_TEMPLATE.format(
        time=datetime.now().isoformat(timespec="seconds"),
        count=count,
        event_type=event_type,
        event_state=event_state,
    ).encode("utf-8")


async def handle_client(reader: asyncio.StreamReader, writer: asyncio.StreamWriter, rate: float) -> None:
    peer = writer.get_extra_info("peername")
    try:
        request = await reader.readuntil(b"\r\n\r\n")
    except (asyncio.IncompleteReadError, asyncio.LimitOverrunError):
        writer.close()
        return

    request_line = request.split(b"\r\n", 1)[0].decode("ascii", errors="replace")
    print(f"{peer}: {request_line}")

    writer.write(RESPONSE_HEADER)
    count = 0
    try:
        while True:
            count += 1
            motion = (count // max(1, int(rate * 5))) % 2 == 1  # flip every ~5 seconds
            writer.write(build_alert(count, motion))
            await writer.drain()
            await asyncio.sleep(1.0 / rate)
    except (ConnectionResetError, BrokenPipeError):
        print(f"{peer}: disconnected")
    finally:
        writer.close()


async def main(port: int, rate: float) -> None:
    server = await asyncio.start_server(
        lambda r, w: handle_client(r, w, rate), host="0.0.0.0", port=port
    )
    print(f"Fake camera listening on port {port} ({rate:g} alerts/s). Ctrl+C to stop.")
    async with server:
        await server.serve_forever()


if __name__ == "__main__":
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8080
    rate = float(sys.argv[2]) if len(sys.argv) > 2 else 3.0

    try:
        asyncio.run(main(port, rate))
    except KeyboardInterrupt:
        print("\nShutting down...")
