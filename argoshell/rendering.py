"""
Default result renderer: print whatever a handler returned.

- None prints nothing.
- a string prints as-is.
- a sequence of strings is joined with tabs when it holds fewer than ten items,
  with newlines otherwise.
- a sequence of records (mappings, dataclasses, named tuples or plain objects)
  becomes a table whose columns come from the first record.
- anything else is pretty-printed.
"""
import dataclasses
from collections.abc import Iterable, Mapping

from rich.console import Console
from rich.pretty import Pretty
from rich.table import Table

console = Console()


def fields(record, /):
    """column name → value for one record, or None when it is not a record."""
    if isinstance(record, Mapping):
        return dict(record)
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return {field.name: getattr(record, field.name) for field in dataclasses.fields(record)}
    if isinstance(record, tuple) and hasattr(record, "_fields"):
        return dict(zip(record._fields, record))
    if hasattr(record, "__dict__") and not isinstance(record, type):
        return {name: value for name, value in vars(record).items() if not name.startswith("_")}
    return None


def tabulate(records, /):
    rows = [fields(record) for record in records]
    columns = list(rows[0]) if rows else []
    for row in rows[1:]:
        columns.extend(name for name in row if name not in columns)

    table = Table(*columns, show_edge=False, header_style="bold")
    for row in rows:
        table.add_row(*(str(row.get(name, "")) for name in columns))
    return table


def render(result, console=console, /):
    if result is None:
        return
    if isinstance(result, str):
        console.print(result, markup=False, highlight=False)
        return
    if isinstance(result, Iterable) and not isinstance(result, Mapping):
        items = list(result)
        if all(isinstance(item, str) for item in items):
            console.print(("\t" if len(items) < 10 else "\n").join(items), markup=False, highlight=False)
            return
        if all(fields(item) is not None for item in items):
            console.print(tabulate(items))
            return
        result = items
    console.print(Pretty(result))


__all__ = (
    "console",
    "render",
    "tabulate",
)
