"""Rich table builders used by the CLI.

Kept separate to reduce duplication and keep the command module smaller.
"""

from __future__ import annotations

from rich.table import Table

from phpintel.core.models import CompletionItem, SourceFileFacts


def build_completion_table(items: list[CompletionItem]) -> Table:
    """Build a (Word, Display, Kind, Info) table for `info`."""
    table = Table(show_header=True)
    table.add_column("Word", style="cyan")
    table.add_column("Display")
    table.add_column("Kind")
    table.add_column("Info", overflow="fold")
    for item in items:
        table.add_row(item.word, item.abbr, item.kind.value, item.info.strip())
    return table


def build_imports_table(facts: SourceFileFacts) -> Table:
    """Build the alias table for `nsuse`; the placeholder entry is hidden."""
    table = Table(show_header=True, title="Imports")
    table.add_column("Alias", style="cyan")
    table.add_column("Fully Qualified Name")
    for alias, fqn in facts.imports.items():
        if alias == "@":
            continue
        table.add_row(alias, fqn)
    return table


def build_names_table(names: list[str], title: str) -> Table:
    table = Table(show_header=True, title=title)
    table.add_column("Name")
    for name in names:
        table.add_row(name)
    return table
