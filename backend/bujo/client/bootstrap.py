"""Start an application with today/now flags and keep it fed with the time."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from bujo.client.application import AppHandle
from bujo.client.clock import format_now, format_today, local_now
from bujo.client.ports import Port
from bujo.client.timers import RecurringTask, TimerService

logger = logging.getLogger(__name__)

TODAY_INTERVAL_MS = 10 * 1000
NOW_INTERVAL_MS = 500


@dataclass
class PortFeed:
    """Formats the current time and sends it through one port."""
    port: Port
    format: Callable[[datetime], str]
    clock: Callable[[], datetime] = local_now

    def __call__(self):
        self.port.send(self.format(self.clock()))


@dataclass
class ClientBootstrap:
    app: AppHandle
    today_task: RecurringTask
    now_task: RecurringTask


def start(
    program: Any,
    node: Any,
    timers: TimerService,
    clock: Callable[[], datetime] = local_now,
) -> ClientBootstrap:
    """
    Initialize ``program`` on ``node`` and register the two time feeds.

    ``today`` is first sent after one full interval; ``now`` is sent right
    away and then every half second. Neither feed is ever cancelled here.
    """
    started = clock()
    app = program.init(node=node, flags={
        "today": format_today(started),
        "now": format_now(started),
    })
    logger.info(f"client application started on {node!r}")

    today_task = timers.every(TODAY_INTERVAL_MS, PortFeed(app.ports.today, format_today, clock))
    try:
        now_task = timers.every(NOW_INTERVAL_MS, PortFeed(app.ports.now, format_now, clock), immediate=True)
    except Exception:
        # The first send is part of startup; leave nothing running behind.
        today_task.cancel()
        raise
    return ClientBootstrap(app=app, today_task=today_task, now_task=now_task)
