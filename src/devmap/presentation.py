"""
Read-only tabular projections of the registry for the listing commands.

Nothing here mutates the registry. The table builders return plain rows so
that other front ends can render them; :func:`render_table` produces the
console form used by the CLI.
"""

from dataclasses import dataclass, field
from typing import List

from .registry.project_registry import Registry, format_time


MINIMAL_PROJECT_HEADER = ["Created By", "Name", "Language"]
EXTENDED_PROJECT_HEADER = ["Created By", "Name", "Folder", "Language", "Created At", "Size", "Git"]

CYAN = "\033[96m"
BOLD = "\033[1m"
RESET = "\033[0m"


@dataclass
class Table:
    title: str
    header: List[str]
    rows: List[List[str]] = field(default_factory=list)


def project_table(registry: Registry, extended: bool = False) -> Table:
    """
    Project rows in registry order.

    The minimal projection shows owner, name and language; the extended one
    adds folder, creation time, size in bytes and the git flag.
    """
    if not extended:
        rows = [
            [project.created_by, project.name, project.language]
            for project in registry.projects.values()
        ]
        return Table(" Projects ", list(MINIMAL_PROJECT_HEADER), rows)

    rows = [
        [
            project.created_by,
            project.name,
            project.folder_name,
            project.language,
            format_time(project.created_at),
            str(project.size_bytes),
            "Yes" if project.uses_version_control else "No",
        ]
        for project in registry.projects.values()
    ]
    return Table(" Projects ", list(EXTENDED_PROJECT_HEADER), rows)


def language_table(registry: Registry) -> Table:
    return Table("", ["Languages"], [[language] for language in registry.languages])


def user_table(registry: Registry) -> Table:
    return Table("", ["Users"], [[user] for user in sorted(registry.users)])


def format_size(size_bytes: float) -> str:
    """Format size in human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


def render_table(table: Table, color: bool = True) -> str:
    """
    Render a table with box-drawing borders.

    Args:
        table: Table to render
        color: Wrap the header and borders in ANSI colors
    """
    widths = [len(cell) for cell in table.header]
    for row in table.rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    border, bold, reset = (CYAN, BOLD, RESET) if color else ("", "", "")

    def line(left: str, fill: str, mid: str, right: str) -> str:
        return border + left + mid.join(fill * (w + 2) for w in widths) + right + reset

    def cells(values: List[str], style: str = "") -> str:
        parts = [f" {style}{value.ljust(width)}{reset if style else ''} " for value, width in zip(values, widths)]
        return f"{border}│{reset}" + f"{border}│{reset}".join(parts) + f"{border}│{reset}"

    top = line("┌", "─", "┬", "┐")
    if table.title.strip():
        inner = sum(widths) + 3 * len(widths) - 1
        title = table.title[:inner]
        pad = inner - len(title)
        top = (
            border + "┌" + "─" * (pad // 2) + reset + bold + title + reset
            + border + "─" * (pad - pad // 2) + "┐" + reset
        )

    out = [top, cells(table.header, bold), line("├", "─", "┼", "┤")]
    out.extend(cells(row) for row in table.rows)
    out.append(line("└", "─", "┴", "┘"))
    return "\n".join(out)
