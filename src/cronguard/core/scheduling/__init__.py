"""Scheduling surface for cronguard.

┌──────────────────────────────────────────────────────────────────────────────┐
│  cron.py      validate / next_fire_time / upcoming   (croniter)              │
│  trigger.py   CronTrigger: asyncio loop, fires ticks fire-and-forget         │
│  task.py      schedule() → ScheduledTask: trigger + protected controller     │
│                                                                               │
│   ┌──────────────┐  invoke(schedule)  ┌─────────────────────────────┐        │
│   │ CronTrigger  │ ─────────────────► │  ProtectedTaskController    │        │
│   └──────────────┘                    │  retry / timeout / overlap  │        │
│   ScheduledTask.trigger() ──────────► │  history / notifications    │        │
│                     invoke(manual)    └─────────────────────────────┘        │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from .cron import next_fire_time, resolve_timezone, upcoming, validate
from .task import ScheduledTask, schedule
from .trigger import CronTrigger, TickCallback

__all__ = [
    "validate",
    "next_fire_time",
    "resolve_timezone",
    "upcoming",
    "CronTrigger",
    "TickCallback",
    "ScheduledTask",
    "schedule",
]
