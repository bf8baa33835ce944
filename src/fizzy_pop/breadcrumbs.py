"""
Breadcrumb trail: the step sequence of the current poll pass, for failure logs.
"""

from __future__ import annotations

import threading

BEGIN = "begin"


class BreadcrumbTrail:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._steps: list[str] = [BEGIN]

    def add(self, step: str, agent_name: str) -> None:
        with self._lock:
            self._steps.append(f"{step}:{agent_name}")

    def reset(self) -> None:
        with self._lock:
            self._steps = [BEGIN]

    @property
    def steps(self) -> list[str]:
        with self._lock:
            return list(self._steps)

    @property
    def last(self) -> str:
        with self._lock:
            return self._steps[-1]

    def __str__(self) -> str:
        return " -> ".join(self.steps)
