"""Trace spans and the summaries derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

_ERROR_CODE = "STATUS_CODE_ERROR"

_LABEL_ATTRIBUTES = frozenset(
    {
        "net.peer.name",
        "server.address",
        "net.host.name",
        "http.route",
        "http.host.name",
        "db.system",
        "db.operation",
        "messaging.system",
        "messaging.operation",
    }
)


class TraceSource(str, Enum):
    OTEL = "otel"
    AGENT = "agent"

    def __str__(self) -> str:
        return self.value


@dataclass
class TraceSpanEvent:
    name: str
    timestamp: datetime | None = None
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class TraceSpanStatus:
    error: bool = False
    message: str = ""


@dataclass
class TraceSpanDetails:
    text: str = ""
    lang: str = ""


@dataclass
class TraceSpan:
    name: str = ""
    timestamp: datetime | None = None
    trace_id: str = ""
    span_id: str = ""
    parent_span_id: str = ""
    service_name: str = ""
    duration: timedelta = timedelta(0)
    status_code: str = ""
    status_message: str = ""
    resource_attributes: dict[str, str] = field(default_factory=dict)
    span_attributes: dict[str, str] = field(default_factory=dict)
    events: list[TraceSpanEvent] = field(default_factory=list)

    def status(self) -> TraceSpanStatus:
        res = TraceSpanStatus(message="OK")
        if self.status_code == _ERROR_CODE:
            res.error = True
            res.message = self.status_message or "ERROR"
        code = self.span_attributes.get("http.status_code", "")
        if code:
            res.message = "HTTP-" + code
        return res

    def labels(self) -> dict[str, str]:
        """The span attributes that identify the peer or operation."""
        return {k: v for k, v in self.span_attributes.items() if k in _LABEL_ATTRIBUTES}

    def error_message(self) -> str:
        if self.status_code != _ERROR_CODE:
            return ""
        if self.status_message:
            return self.status_message
        attrs = self.span_attributes
        if attrs.get("grpc.error_message"):
            return attrs["grpc.error_message"]
        for event in self.events:
            if event.name == "exception" and "exception.message" in event.attributes:
                return event.attributes["exception.message"]
        if attrs.get("http.status_code"):
            return "HTTP-" + attrs["http.status_code"]
        return ""

    def details(self) -> TraceSpanDetails:
        attrs = self.span_attributes
        if attrs.get("http.url"):
            return TraceSpanDetails(text=attrs["http.url"])
        if attrs.get("db.system") == "mongodb":
            return TraceSpanDetails(text=attrs.get("db.statement", ""), lang="json")
        if attrs.get("db.system") == "redis":
            return TraceSpanDetails(text=attrs.get("db.statement", ""))
        if attrs.get("db.statement"):
            return TraceSpanDetails(text=attrs["db.statement"], lang="sql")
        if attrs.get("db.memcached.item"):
            text = f'{attrs.get("db.operation", "")} "{attrs["db.memcached.item"]}"'
            return TraceSpanDetails(text=text, lang="bash")
        return TraceSpanDetails()


@dataclass
class Trace:
    spans: list[TraceSpan] = field(default_factory=list)