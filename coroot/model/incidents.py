"""Incidents, application events and SLO alerting rules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from coroot.model.status import Status

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR

_VOWELS = "aeiou"
_SPECIAL_PLURALS = {"index": "indices", "matrix": "matrices", "vertex": "vertices"}


def _plural_word(count: int, singular: str) -> str:
    if count == 1:
        return singular
    if singular in _SPECIAL_PLURALS:
        return _SPECIAL_PLURALS[singular]
    if len(singular) > 1 and singular.endswith("y") and singular[-2] not in _VOWELS:
        return singular[:-1] + "ies"
    if singular.endswith(("s", "x", "z", "ch", "sh")):
        return singular + "es"
    if len(singular) > 1 and singular.endswith("o") and singular[-2] not in _VOWELS:
        return singular + "es"
    return singular + "s"


def plural(count: int, singular: str) -> str:
    """Format a count with the English singular or plural of a word."""
    return f"{count} {_plural_word(count, singular)}"


@dataclass
class ApplicationIncident:
    key: str
    opened_at: int = 0
    resolved_at: int = 0
    severity: Status = Status.UNKNOWN

    def resolved(self) -> bool:
        return self.resolved_at != 0


class ApplicationEventType(IntEnum):
    SWITCHOVER = 0
    ROLLOUT = 1
    INSTANCE_DOWN = 2
    INSTANCE_UP = 3


@dataclass
class ApplicationEvent:
    start: int = 0
    end: int = 0
    type: ApplicationEventType = ApplicationEventType.SWITCHOVER
    details: str = ""

    def __str__(self) -> str:
        start = str(self.start) if self.start else ""
        end = str(self.end) if self.end else ""
        return f"{start}-{end}"


@dataclass(frozen=True)
class AlertRule:
    long_window: int
    short_window: int
    burn_rate_threshold: float
    severity: Status


ALERT_RULES: tuple[AlertRule, ...] = (
    AlertRule(HOUR, 5 * MINUTE, 14.4, Status.CRITICAL),
    AlertRule(6 * HOUR, 30 * MINUTE, 6, Status.CRITICAL),
    AlertRule(DAY, 2 * HOUR, 3, Status.WARNING),
)


def _max_alert_rule_window(rules: tuple[AlertRule, ...]) -> int:
    window = HOUR
    for rule in rules:
        if rule.short_window > rule.long_window:
            raise ValueError("invalid rule")
        window = max(window, rule.long_window)
    return window


MAX_ALERT_RULE_WINDOW = _max_alert_rule_window(ALERT_RULES)


@dataclass
class BurnRate:
    value: float
    window: int
    severity: Status

    def format_slo_status(self) -> str:
        hours = self.window // HOUR
        return f"error budget burn rate is {self.value:.1f}x within {plural(hours, 'hour')}"