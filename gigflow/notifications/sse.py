import json
from typing import AsyncIterator

from gigflow.notifications.channel import Connection, NotificationChannel, channel as default_channel

def format_event(event: str, data: dict) -> bytes:
    payload = f"event: {event}\n" + f"data: {json.dumps(data, ensure_ascii=False)}\n\n"
    return payload.encode("utf-8")

async def event_stream(user_id: str, channel: NotificationChannel | None = None) -> AsyncIterator[bytes]:
    """
    Yields Server-Sent Events for the given user until the client goes away.
    """
    channel = channel or default_channel
    conn = Connection.open()
    channel.subscribe(user_id, conn)
    try:
        yield b": connected\n\n"
        while True:
            event, data = await conn.get()
            yield format_event(event, data)
    finally:
        # also runs when the client disconnects
        channel.unsubscribe(conn)
