"""Check definitions and the evaluation of individual checks."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable

from coroot.model.incidents import plural
from coroot.model.status import Status


class CheckType(IntEnum):
    EVENT_BASED = 0
    ITEM_BASED = 1
    VALUE_BASED = 2
    MANUAL = 3


def _trim_number(value: float, digits: int) -> str:
    text = f"{value:.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _format_float(value: float) -> str:
    return f"{value:g}"


def _format_percentage(value: float) -> str:
    return _trim_number(value, 1 if abs(value) < 10 else 0 if value == int(value) else 1) + "%"


def _format_bytes(value: float) -> tuple[str, str]:
    units = ("B", "KB", "MB", "GB", "TB", "PB")
    size = float(value)
    for unit in units[:-1]:
        if abs(size) < 1024:
            return _trim_number(size, 1), unit
        size /= 1024
    return _trim_number(size, 1), units[-1]


def _format_duration(seconds: float, precision: int = 1) -> str:
    if seconds < 1:
        return f"{round(seconds * 1000)}ms"
    remaining = int(round(seconds))
    parts = []
    for suffix, size in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        amount, remaining = divmod(remaining, size)
        if amount:
            parts.append(f"{amount}{suffix}")
    return "".join(parts[:precision])


class CheckUnit(str, Enum):
    NONE = ""
    PERCENT = "percent"
    SECOND = "second"
    BYTE = "byte"

    def __str__(self) -> str:
        return self.value

    def format_value(self, value: float) -> str:
        """Render a value in this unit for a human reader."""
        if self is CheckUnit.SECOND:
            return _format_duration(value, 1)
        if self is CheckUnit.BYTE:
            number, unit = _format_bytes(value)
            return number + unit
        if self is CheckUnit.PERCENT:
            return _format_percentage(value)
        return _format_float(value)


@dataclass(frozen=True)
class CheckConfig:
    id: str
    type: CheckType
    title: str
    default_threshold: float = 0.0
    unit: CheckUnit = CheckUnit.NONE
    message_template: str = ""
    condition_format_template: str = ""


def _c(id_: str, typ: CheckType, title: str, threshold: float, template: str,
       condition: str, unit: CheckUnit = CheckUnit.NONE) -> CheckConfig:
    return CheckConfig(id=id_, type=typ, title=title, default_threshold=threshold, unit=unit,
                       message_template=template, condition_format_template=condition)


_E, _I, _V, _M = CheckType.EVENT_BASED, CheckType.ITEM_BASED, CheckType.VALUE_BASED, CheckType.MANUAL
_P, _S = CheckUnit.PERCENT, CheckUnit.SECOND

_CHECKS: dict[str, CheckConfig] = {
    c.id: c
    for c in (
        _c("SLOAvailability", _M, "Availability", 99, "the app is serving errors",
           "the successful request percentage < <threshold>", _P),
        _c("SLOLatency", _M, "Latency", 99, "the app is performing slowly",
           "the percentage of requests served faster than <bucket> < <threshold>", _P),
        _c("CPUNode", _I, "Node CPU utilization", 80, 'high CPU utilization of {{.Items "node"}}',
           "the CPU usage of a node > <threshold>", _P),
        _c("CPUContainer", _I, "Container CPU utilization", 80,
           'high CPU utilization of {{.Items "container"}}',
           "the CPU usage of a container > <threshold> of its CPU limit", _P),
        _c("MemoryOOM", _E, "Out of Memory", 0,
           'app containers have been restarted {{.Count "time"}} by the OOM killer',
           "the number of container terminations due to Out of Memory > <threshold>"),
        _c("MemoryLeakPercent", _V, "Memory leak", 10,
           "memory usage is growing by {{.Value}} %% per hour",
           "memory usage is growing by > <threshold> % per hour"),
        _c("StorageSpace", _I, "Disk space", 80,
           'disk space on {{.Items "volume"}} will be exhausted soon',
           "the space usage of a volume > <threshold>", _P),
        _c("StorageIO", _I, "Disk I/O", 80, 'high I/O utilization of {{.Items "volume"}}',
           "the I/O utilization of a volume > <threshold>", _P),
        _c("NetworkRTT", _I, "Network round-trip time (RTT)", 0.01,
           'high network latency to {{.Items "upstream service"}}',
           "the RTT to an upstream service > <threshold>", _S),
        _c("NetworkConnectivity", _I, "Network connectivity", 0,
           'no connectivity with {{.Items "upstream service"}}',
           "the number of unavailable upstream services > <threshold>"),
        _c("NetworkTCPConnections", _I, "TCP connections", 0,
           'failed to connect to {{.Items "upstream service"}}',
           "the number of upstream services to which the app failed to connect > <threshold>"),
        _c("InstanceAvailability", _M, "Instance availability", 75,
           '{{.ItemsWithToBe "instance"}} unavailable',
           "the number of available instances < <threshold> of the desired", _P),
        _c("DeploymentStatus", _V, "Deployment status", 180,
           "the rollout has already been in progress for {{.Value}}",
           "a rollout is in progress > <threshold>", _S),
        _c("InstanceRestarts", _E, "Restarts", 0,
           'app containers have been restarted {{.Count "time"}}',
           "the number of container restarts > <threshold>"),
        _c("RedisAvailability", _I, "Redis availability", 0,
           '{{.ItemsWithToBe "redis instance"}} unavailable',
           "the number of unavailable redis instances > <threshold>"),
        _c("RedisLatency", _I, "Redis latency", 0.005,
           '{{.ItemsWithToBe "redis instance"}} performing slowly',
           "the average command execution time of a redis instance > <threshold>", _S),
        _c("MongodbAvailability", _I, "Mongodb availability", 0,
           '{{.ItemsWithToBe "mongodb instance"}} unavailable',
           "the number of unavailable mongodb instances > <threshold>"),
        _c("MongodbReplicationLag", _I, "Mongodb replication lag", 30,
           '{{.ItemsWithToBe "mongodb replica"}} far behind the primary',
           "replication lag > <threshold>", _S),
        _c("MemcachedAvailability", _I, "Memcached availability", 0,
           '{{.ItemsWithToBe "memcached instance"}} unavailable',
           "the number of unavailable memcached instances > <threshold>"),
        _c("PostgresAvailability", _I, "Postgres availability", 0,
           '{{.ItemsWithToBe "postgres instance"}} unavailable',
           "the number of unavailable postgres instances > <threshold>"),
        _c("PostgresLatency", _I, "Postgres latency", 0.1,
           '{{.ItemsWithToBe "postgres instance"}} performing slowly',
           "the average query execution time of a postgres instance > <threshold>", _S),
        _c("PostgresErrors", _E, "Postgres errors", 0, '{{.Count "error"}} occurred',
           "the number of postgres errors > <threshold>"),
        _c("PostgresReplicationLag", _I, "Postgres replication lag", 30,
           '{{.ItemsWithToBe "postgres replica"}} far behind the primary',
           "replication lag > <threshold>", _S),
        _c("PostgresConnections", _I, "Postgres connections", 90,
           '{{.ItemsWithHave "postgres instance"}} too many connections',
           "the number of connections > <threshold> of `max_connections`", _P),
        _c("LogErrors", _E, "Errors", 0, '{{.Count "error"}} occurred',
           "the number of messages with the ERROR and CRITICAL severity levels > <threshold>"),
        _c("JvmAvailability", _I, "JVM availability", 0,
           '{{.ItemsWithToBe "JVM instance"}} unavailable',
           "the number of unavailable JVM instances > <threshold>"),
        _c("JvmSafepointTime", _I, "JVM safepoints", 0.05,
           'high safepoint time on {{.Items "JVM instance"}}',
           "the time application have been stopped for safepoint operations > <threshold>", _S),
        _c("DotNetAvailability", _I, ".NET runtime availability", 0,
           '{{.ItemsWithToBe ".NET instance"}} unavailable',
           "the number of unavailable .NET instances > <threshold>"),
        _c("DnsLatency", _V, "DNS latency", 0.1, "high latency",
           "the 95th percentile of DNS response times > <threshold>", _S),
        _c("DnsServerErrors", _E, "DNS server errors", 0,
           '{{.Count "server DNS error"}} occurred',
           "the number of server DNS errors (excluding NXDOMAIN) > <threshold>"),
        _c("DnsNxdomainErrors", _E, "DNS NXDOMAIN errors", 0,
           'the app received an empty DNS response {{.Count "time"}}',
           "the number of the NXDOMAIN DNS errors (for previously valid requests) > <threshold>"),
        _c("MysqlAvailability", _I, "Mysql availability", 0,
           '{{.ItemsWithToBe "mysql instance"}} unavailable',
           "the number of unavailable mysql instances > <threshold>"),
        _c("MysqlReplicationStatus", _I, "Mysql replication status", 0,
           '{{.ItemsWithHave "mysql replica"}} issues with IO or SQL replication threads',
           "IO or SQL replication thread is not running ", _S),
        _c("MysqlReplicationLag", _I, "Mysql replication lag", 30,
           '{{.ItemsWithToBe "mysql replica"}} far behind the primary',
           "replication lag > <threshold>", _S),
        _c("MysqlConnections", _I, "Mysql connections", 90,
           '{{.ItemsWithHave "mysql instance"}} too many connections',
           "the number of connections > <threshold> of `max_connections`", _P),
    )
}


def get_check_config(check_id: str) -> CheckConfig | None:
    """Return the definition of a check, or None if the id is unknown."""
    return _CHECKS.get(check_id)


def all_check_configs() -> list[CheckConfig]:
    """All check definitions in their declaration order."""
    return list(_CHECKS.values())


class CheckContext:
    """Values available to a check's message template."""

    def __init__(self, items: set[str] | None = None, count: int = 0, value: float = 0.0,
                 unit: CheckUnit = CheckUnit.NONE) -> None:
        self._items = set(items or ())
        self._count = count
        self._value = value
        self._unit = CheckUnit(unit)

    def items(self, singular: str) -> str:
        return plural(len(self._items), singular)

    def items_with_to_be(self, singular: str) -> str:
        verb = "are" if len(self._items) > 1 else "is"
        return f"{self.items(singular)} {verb}"

    def items_with_have(self, singular: str) -> str:
        verb = "have" if len(self._items) > 1 else "has"
        return f"{self.items(singular)} {verb}"

    def count(self, singular: str) -> str:
        return plural(int(self._count), singular)

    def value(self) -> str:
        return self._unit.format_value(self._value)


class _TemplateError(Exception):
    pass


_ACTION = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_CALL = re.compile(r'\s*\.(\w+)(?:\s+"((?:[^"\\]|\\.)*)")?\s*')


def _parse_template(template: str) -> list[tuple[str, str | None] | str]:
    parts: list[tuple[str, str | None] | str] = []
    pos = 0
    for m in _ACTION.finditer(template):
        text = template[pos:m.start()]
        if "{{" in text:
            raise _TemplateError(f"unclosed action in {template!r}")
        parts.append(text)
        call = _CALL.fullmatch(m.group(1))
        if call is None:
            raise _TemplateError(f"unexpected action {m.group(0)!r}")
        parts.append((call.group(1), call.group(2)))
        pos = m.end()
    tail = template[pos:]
    if "{{" in tail:
        raise _TemplateError(f"unclosed action in {template!r}")
    parts.append(tail)
    return parts


def _render(parts: list[tuple[str, str | None] | str], ctx: CheckContext) -> str:
    methods: dict[str, Callable[..., str]] = {
        "Items": ctx.items,
        "ItemsWithToBe": ctx.items_with_to_be,
        "ItemsWithHave": ctx.items_with_have,
        "Count": ctx.count,
        "Value": ctx.value,
    }
    out = []
    for part in parts:
        if isinstance(part, str):
            out.append(part)
            continue
        name, arg = part
        method = methods.get(name)
        if method is None:
            raise _TemplateError(f"can't evaluate field {name}")
        try:
            out.append(method() if arg is None else method(arg))
        except TypeError as e:
            raise _TemplateError(f"wrong number of args for {name}") from e
    return "".join(out)


@dataclass
class Check:
    id: str
    title: str
    type: CheckType
    status: Status = Status.OK
    message: str = ""
    threshold: float = 0.0
    unit: CheckUnit = CheckUnit.NONE
    condition_format_template: str = ""
    message_template: str = ""
    items: set[str] = field(default_factory=set)
    count: int = 0
    desired: int = 0
    value: float = 0.0
    values: object = None
    fired: bool = False

    @classmethod
    def from_config(cls, cfg: CheckConfig, threshold: float | None = None) -> Check:
        """Start a check in the OK state from its definition."""
        return cls(
            id=cfg.id,
            title=cfg.title,
            type=cfg.type,
            threshold=cfg.default_threshold if threshold is None else threshold,
            unit=cfg.unit,
            condition_format_template=cfg.condition_format_template,
            message_template=cfg.message_template,
        )

    def fire(self) -> None:
        self.fired = True

    def set_status(self, status: Status, message: str) -> None:
        self.status = status
        self.message = message

    def add_item(self, fmt: str, *args: object) -> None:
        self.items.add(fmt % args if args else fmt)

    def inc(self, amount: int) -> None:
        self.count += amount

    def _triggered(self) -> bool:
        if self.type is CheckType.EVENT_BASED:
            return self.count > int(self.threshold)
        if self.type is CheckType.ITEM_BASED:
            return bool(self.items)
        if self.type is CheckType.VALUE_BASED:
            return self.value > self.threshold
        if self.type is CheckType.MANUAL:
            return self.fired
        return False

    def calc(self) -> None:
        """Set a warning with the rendered message if the check has triggered."""
        if not self._triggered():
            return
        try:
            parts = _parse_template(self.message_template)
        except _TemplateError as e:
            self.set_status(Status.UNKNOWN, f"invalid template: {e}")
            return
        ctx = CheckContext(items=self.items, count=self.count, value=self.value, unit=self.unit)
        try:
            message = _render(parts, ctx)
        except _TemplateError as e:
            self.set_status(Status.UNKNOWN, f"failed to render message: {e}")
            return
        self.set_status(Status.WARNING, message.replace("%%", "%"))