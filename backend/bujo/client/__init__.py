"""Client time bootstrap: start an application and push today/now into its ports."""

from bujo.client.application import AppHandle, Program
from bujo.client.bootstrap import ClientBootstrap, PortFeed, start
from bujo.client.timers import RecurringTask, TimerService

__all__ = ["AppHandle", "ClientBootstrap", "PortFeed", "Program", "RecurringTask", "TimerService", "start"]
