"""Run the client time bootstrap on its own, logging every pushed value."""

import asyncio
import logging
import sys

from bujo.client.application import Program
from bujo.client.bootstrap import start
from bujo.client.timers import TimerService

logger = logging.getLogger("bujo.client")


class LoggingProgram(Program):
    """Program that logs every value sent through its ports, the first one included."""

    def init(self, node, flags):
        handle = super().init(node, flags)
        for port in handle.ports:
            port.subscribe(lambda value, name=port.name: logger.info(f"{name}: {value}"))
        return handle


async def _serve(node: str):
    start(LoggingProgram(), node, TimerService())
    await asyncio.Event().wait()


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    node = sys.argv[1] if len(sys.argv) > 1 else "#root"
    try:
        asyncio.run(_serve(node))
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    main()
