"""Health statuses and indicators."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Protocol


class Status(IntEnum):
    """Severity of a check or report, ordered from least to most severe."""

    UNKNOWN = 0
    OK = 1
    INFO = 2
    WARNING = 3
    CRITICAL = 4

    def __str__(self) -> str:
        return self.name.lower()

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)

    def color(self) -> str:
        return _COLORS.get(self, "#d3d3d3")


_COLORS = {
    Status.OK: "#23d160",
    Status.WARNING: "#ffdd57",
    Status.CRITICAL: "#f44034",
}


@dataclass
class Indicator:
    status: Status
    message: str


class _Report(Protocol):
    name: str
    status: Status


def calc_indicators(reports: Iterable[_Report] | None) -> list[Indicator]:
    """Build an indicator for every report whose status is known."""
    if reports is None:
        return []
    return [
        Indicator(status=r.status, message=str(r.name))
        for r in reports
        if r.status != Status.UNKNOWN
    ]