"""Hourly costs of an application and their monthly projections."""

from __future__ import annotations

from dataclasses import dataclass

_HOURS_PER_MONTH = 24 * 30


@dataclass
class Costs:
    cpu_usage_per_hour: float = 0.0
    cpu_request_per_hour: float = 0.0
    memory_usage_per_hour: float = 0.0
    memory_request_per_hour: float = 0.0

    def cpu_usage_per_month(self) -> float:
        return self.cpu_usage_per_hour * _HOURS_PER_MONTH

    def memory_usage_per_month(self) -> float:
        return self.memory_usage_per_hour * _HOURS_PER_MONTH

    def cpu_request_per_month(self) -> float:
        return self.cpu_request_per_hour * _HOURS_PER_MONTH

    def memory_request_per_month(self) -> float:
        return self.memory_request_per_hour * _HOURS_PER_MONTH

    def usage_per_month(self) -> float:
        return (self.memory_usage_per_hour + self.cpu_usage_per_hour) * _HOURS_PER_MONTH

    def request_per_month(self) -> float:
        return (self.memory_request_per_hour + self.cpu_request_per_hour) * _HOURS_PER_MONTH