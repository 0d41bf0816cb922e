"""Tables of cells rendered in reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from coroot.model.status import Status


@dataclass
class Icon:
    name: str
    color: str


@dataclass
class Progress:
    percent: int
    color: str


@dataclass
class NetInterface:
    name: str
    rx: str = ""
    tx: str = ""


@dataclass
class TableCell:
    icon: Icon | None = None
    value: str = ""
    short_value: str = ""
    values: list[str] | None = None
    tags: list[str] = field(default_factory=list)
    unit: str = ""
    status: Status | None = None
    link: Any = None
    progress: Progress | None = None
    net_interfaces: list[NetInterface] = field(default_factory=list)
    chart: Any = None
    is_stub: bool = False
    max_width: int = 0
    deployment_summaries: list[Any] = field(default_factory=list)

    def set_status(self, status: Status, msg: str) -> TableCell:
        self.status = status
        self.value = msg
        return self

    def update_status(self, status: Status) -> TableCell:
        self.status = status
        return self

    def set_value(self, value: str) -> TableCell:
        self.value = value
        return self

    def set_short_value(self, value: str) -> TableCell:
        self.short_value = value
        return self

    def set_icon(self, name: str, color: str) -> TableCell:
        self.icon = Icon(name=name, color=color)
        return self

    def set_unit(self, unit: str) -> TableCell:
        self.unit = unit
        return self

    def add_tag(self, fmt: str, *args: object) -> TableCell:
        if fmt:
            self.tags.append(fmt % args if args else fmt)
        return self

    def set_progress(self, percent: int, color: str) -> TableCell:
        self.progress = Progress(percent=percent, color=color)
        return self

    def set_chart(self, chart: Any) -> TableCell:
        self.chart = chart
        return self

    def set_stub(self, fmt: str, *args: object) -> TableCell:
        self.value = fmt % args
        self.is_stub = True
        return self

    def set_max_width(self, width: int) -> TableCell:
        self.max_width = width
        return self

    def set_events_count(self, count: int) -> TableCell:
        """Show an event count, abbreviated with k or M when large."""
        if count < 1:
            return self
        if count > 1e6:
            self.value = f"{count / 1e6:.1f}"
            self.set_unit("M")
        elif count > 1e3:
            self.value = f"{count / 1e3:.1f}"
            self.set_unit("k")
        else:
            self.value = str(count)
        return self


def new_table_cell(*args: str) -> TableCell:
    """A cell holding one value, or several values, or nothing."""
    if not args:
        return TableCell()
    if len(args) == 1:
        return TableCell(value=args[0])
    return TableCell(values=list(args))


@dataclass
class TableRow:
    cells: list[TableCell] = field(default_factory=list)
    id: str = ""

    def set_id(self, row_id: str) -> TableRow:
        self.id = row_id
        return self


@dataclass
class Table:
    header: list[str] = field(default_factory=list)
    rows: list[TableRow] = field(default_factory=list)
    presorted: bool = False

    def add_row(self, *args: TableCell) -> TableRow:
        row = TableRow(cells=list(args))
        self.rows.append(row)
        self.sort_rows()
        return row

    def sort_rows(self) -> None:
        """Order rows by the first cell's value unless the table is presorted."""
        if self.presorted:
            return
        self.rows.sort(key=lambda r: r.cells[0].value)

    def set_sorted(self) -> Table:
        self.presorted = True
        return self