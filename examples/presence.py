#!/usr/bin/env python3
"""
Presence example for Fluxez Realtime.

Joins a presence channel, prints who else is there, listens for channel
traffic and leaves on Ctrl+C.

Environment variables required:
    FLUXEZ_API_KEY: Your Fluxez API key
    FLUXEZ_BASE_URL: Fluxez API base URL (optional)
"""

import asyncio
import logging

from fluxez import Message, PresenceEntry, RealtimeClient

logging.basicConfig(level=logging.INFO)


def handle_room_event(message: Message) -> None:
    """Print room traffic."""
    print(f"[{message.channel}] {message.type}: {message.data}")


async def main() -> None:
    """Main entry point."""
    user_id = "123"  # Your user ID
    room = "room.lobby"

    async with RealtimeClient() as client:
        await client.join_presence(
            room,
            PresenceEntry(user_id=user_id, metadata={"name": "Alice"}),
            callback=handle_room_event,
        )

        for entry in await client.get_presence(room):
            print(f"Present: {entry.user_id} since {entry.joined_at}")

        print("Listening for events... Press Ctrl+C to stop.")
        try:
            await client.listen()
        finally:
            await client.leave_presence(room)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nGoodbye!")
