# tplchain — Jinja2 templating with prioritised template directories
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Thread-safe named timing spans.

Usage::

    stopwatch = Stopwatch()
    stopwatch.start("tplchain.render", "Templating")
    ...
    event = stopwatch.stop("tplchain.render")
    print(event.duration)
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass


@dataclass
class StopwatchEvent:
    """A completed timing span."""

    name: str
    category: str | None
    started: float
    duration: float


class Stopwatch:
    """Records how long named spans take.

    Spans with the same name may overlap (e.g. concurrent renders); each
    :meth:`stop` closes the most recently started one.
    """

    def __init__(self) -> None:
        self._running: dict[str, list[tuple[str | None, float]]] = {}
        self._events: list[StopwatchEvent] = []
        self._lock = threading.Lock()

    def start(self, name: str, category: str | None = None) -> None:
        with self._lock:
            self._running.setdefault(name, []).append((category, time.perf_counter()))

    def stop(self, name: str) -> StopwatchEvent:
        """Finish span *name*.  Raises :class:`KeyError` if it is not running."""
        now = time.perf_counter()
        with self._lock:
            stack = self._running.get(name)
            if not stack:
                raise KeyError(f"Stopwatch span {name!r} was not started")
            category, started = stack.pop()
            if not stack:
                del self._running[name]
            event = StopwatchEvent(
                name=name, category=category, started=started, duration=now - started,
            )
            self._events.append(event)
        return event

    def is_started(self, name: str) -> bool:
        with self._lock:
            return name in self._running

    @property
    def events(self) -> list[StopwatchEvent]:
        with self._lock:
            return list(self._events)

    def reset(self) -> None:
        with self._lock:
            self._running.clear()
            self._events.clear()
