"""Container statuses and mapping of container ids to services."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from coroot.model.ids import ApplicationId


class ContainerStatus(str, Enum):
    WAITING = "waiting"
    RUNNING = "running"
    TERMINATED = "terminated"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DNSRequest:
    type: str
    domain: str


_POD_PATTERNS = (
    re.compile(
        r"(/k8s/[a-z0-9-]+/[a-z0-9-]+)-[0-9a-f]{1,10}-[bcdfghjklmnpqrstvwxz2456789]{5}/.+",
        re.ASCII | re.DOTALL,
    ),
    re.compile(
        r"(/k8s/[a-z0-9-]+/[a-z0-9-]+)-[bcdfghjklmnpqrstvwxz2456789]{5}/.+",
        re.ASCII | re.DOTALL,
    ),
    re.compile(r"(/k8s/[a-z0-9-]+/[a-z0-9-]+)-\d+/.+", re.ASCII | re.DOTALL),
)


def container_id_to_service_name(container_id: str) -> str:
    """Strip pod-specific suffixes from a Kubernetes container id."""
    if not container_id.startswith("/k8s/"):
        return container_id
    for pattern in _POD_PATTERNS:
        m = pattern.search(container_id)
        if m:
            return m.group(1)
    return container_id


def guess_service(services: Iterable[str], app_id: ApplicationId) -> str:
    """Pick the service name that most likely belongs to the application."""
    services = list(services)
    if app_id.name in services:
        return app_id.name
    for s in services:
        parts = s.split("/")
        if (
            (len(parts) == 4 and parts[1] == "k8s" and parts[2] == app_id.namespace
             and parts[3] == app_id.name)
            or (len(parts) == 3 and parts[1] == "system.slice"
                and parts[2] == app_id.name + ".service")
            or s.endswith(app_id.name)
            or app_id.name.endswith(s)
        ):
            return s
    return ""