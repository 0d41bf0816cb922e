from coroot.model.status import Status
from coroot.model.table import Table, TableCell, new_table_cell


def test_new_table_cell_forms():
    assert new_table_cell().value == ""
    assert new_table_cell().values is None
    assert new_table_cell("a").value == "a"
    cell = new_table_cell("a", "b")
    assert cell.values == ["a", "b"]
    assert cell.value == ""


def test_setters_chain_and_update():
    cell = (
        TableCell()
        .set_status(Status.WARNING, "msg")
        .set_short_value("m")
        .set_icon("mdi-x", "red")
        .set_progress(40, "blue")
        .set_max_width(20)
    )
    assert cell.status is Status.WARNING
    assert cell.value == "msg"
    assert cell.short_value == "m"
    assert cell.icon.name == "mdi-x"
    assert cell.progress.percent == 40
    assert cell.max_width == 20
    cell.update_status(Status.OK)
    assert cell.status is Status.OK
    assert cell.value == "msg"


def test_add_tag():
    cell = TableCell().add_tag("").add_tag("plain").add_tag("%d items", 3)
    assert cell.tags == ["plain", "3 items"]


def test_set_stub():
    cell = TableCell().set_stub("no data")
    assert cell.value == "no data"
    assert cell.is_stub is True


def test_set_events_count():
    assert TableCell().set_events_count(0).value == ""
    assert TableCell().set_events_count(500).value == "500"
    cell = TableCell().set_events_count(2500)
    assert (cell.value, cell.unit) == ("2.5", "k")
    cell = TableCell().set_events_count(3_000_000)
    assert (cell.value, cell.unit) == ("3.0", "M")


def test_add_row_sorts_by_first_cell():
    t = Table(header=["name"])
    for v in ["c", "a", "b"]:
        t.add_row(new_table_cell(v))
    values = [r.cells[0].value for r in t.rows]
    assert values == sorted(values)


def test_sort_is_stable():
    t = Table()
    first = t.add_row(new_table_cell("x"), new_table_cell("1"))
    second = t.add_row(new_table_cell("x"), new_table_cell("2"))
    assert t.rows == [first, second]


def test_presorted_keeps_insertion_order():
    t = Table().set_sorted()
    for v in ["c", "a", "b"]:
        t.add_row(new_table_cell(v))
    assert [r.cells[0].value for r in t.rows] == ["c", "a", "b"]


def test_row_set_id():
    t = Table()
    row = t.add_row(new_table_cell("a")).set_id("row-1")
    assert t.rows[0].id == "row-1"
    assert row is t.rows[0]