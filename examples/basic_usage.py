#!/usr/bin/env python3
"""
Basic usage example.

Connects to the Fluxez realtime server, subscribes to a channel twice (once
for every update, once only for shipped orders) and logs what arrives.

Required environment variables:
    FLUXEZ_API_KEY
    FLUXEZ_BASE_URL (optional, defaults to the hosted API)
"""

import asyncio
import logging

from fluxez import Message, RealtimeClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def handle_update(message: Message) -> None:
    """Log every order update."""
    logger.info("type=%s channel=%s data=%s", message.type, message.channel, message.data)


async def handle_shipped(message: Message) -> None:
    """Log shipped orders."""
    logger.info("shipped order=%s", message.data.get("order_id"))


async def main() -> None:
    async with RealtimeClient() as client:
        client.subscribe("orders", handle_update)
        client.subscribe(
            "orders",
            handle_shipped,
            filter=lambda message: message.data.get("status") == "shipped",
        )

        logger.info("listening status=%s", client.get_status())
        await client.listen()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("shutdown")
