"""Application identifiers and workload kinds."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class ApplicationKind(str, Enum):
    """Kinds of workloads an application can be made of."""

    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    DAEMON_SET = "DaemonSet"
    CRON_JOB = "CronJob"
    JOB = "Job"
    REPLICA_SET = "ReplicaSet"
    POD = "Pod"
    STATIC_PODS = "StaticPods"
    UNKNOWN = "Unknown"
    DOCKER_SWARM_SERVICE = "DockerSwarmService"
    EXTERNAL_SERVICE = "ExternalService"
    DATABASE_CLUSTER = "DatabaseCluster"
    RDS = "RDS"
    ELASTICACHE_CLUSTER = "ElasticacheCluster"
    NOMAD_JOB_GROUP = "NomadJobGroup"
    ARGO_WORKFLOW = "Workflow"
    SPARK_APPLICATION = "SparkApplication"

    def __str__(self) -> str:
        return self.value


_HEX = re.compile(r"[\da-f]+")
_DIGITS = re.compile(r"[0-9]+")
_UINT64_MAX = 2**64 - 1


def _kind_value(kind: str | ApplicationKind) -> str:
    return kind.value if isinstance(kind, Enum) else kind


@dataclass(frozen=True, order=True)
class ApplicationId:
    """Identifies an application by namespace, kind and name."""

    namespace: str = ""
    kind: str = ""
    name: str = ""

    def __post_init__(self) -> None:
        # Keep the kind a plain string so that ids hash consistently.
        object.__setattr__(self, "kind", _kind_value(self.kind))

    def is_zero(self) -> bool:
        return not self.namespace and not self.kind and not self.name

    def __str__(self) -> str:
        return f"{self.namespace}:{self.kind}:{self.name}"


APPLICATION_ID_ZERO = ApplicationId()


def new_application_id(ns: str, kind: str | ApplicationKind, name: str) -> ApplicationId:
    """Build an id, folding replica sets into deployments and jobs into cron jobs."""
    kind = _kind_value(kind)
    if kind == ApplicationKind.REPLICA_SET.value:
        head, _, last = name.rpartition("-")
        if _HEX.search(last):
            kind = ApplicationKind.DEPLOYMENT.value
            name = head
    elif kind == ApplicationKind.JOB.value:
        head, _, last = name.rpartition("-")
        if _DIGITS.fullmatch(last) and int(last) <= _UINT64_MAX:
            kind = ApplicationKind.CRON_JOB.value
            name = head
    elif kind in ("", "<none>"):
        kind = ApplicationKind.POD.value
    if not ns:
        ns = "_"
    return ApplicationId(namespace=ns, kind=kind, name=name)


def parse_application_id(src: str) -> ApplicationId:
    """Parse the ``namespace:kind:name`` form; raise ValueError when malformed."""
    parts = src.split(":", 2)
    if len(parts) < 3:
        raise ValueError(f"invalid application id: {src}")
    return ApplicationId(namespace=parts[0], kind=parts[1], name=parts[2])