"""Protean Engine runner for the OrderDesk domain.

In production (``PROTEAN_ENV=production``) events are processed
asynchronously; the Engine delivers them to event handlers such as the
vendor allocation notifier.

Usage:
    python src/server.py
"""

import asyncio

from protean.server.engine import Engine


async def run():
    from orderdesk.domain import orderdesk

    orderdesk.init()
    engine = Engine(orderdesk)
    await engine.run()


def main():
    from orderdesk.utils.logging import configure_logging

    configure_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
