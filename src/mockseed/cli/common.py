"""Shared CLI utilities - colors, console, helpers."""

import json
from typing import Any

from rich.console import Console
from rich.table import Table

# Palette
ELECTRIC_PURPLE = "#e135ff"
NEON_CYAN = "#80ffea"
CORAL = "#ff6ac1"
ELECTRIC_YELLOW = "#f1fa8c"
SUCCESS_GREEN = "#50fa7b"
ERROR_RED = "#ff6363"

# Shared console instance
console = Console()


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[{SUCCESS_GREEN}]✓[/{SUCCESS_GREEN}] {message}")


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"[{ERROR_RED}]✗[/{ERROR_RED}] {message}")


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[{NEON_CYAN}]→[/{NEON_CYAN}] {message}")


def print_json(data: Any) -> None:
    """Print data as indented JSON, unwrapped so it stays machine readable."""
    console.print(
        json.dumps(data, indent=2, default=str),
        soft_wrap=True,
        markup=False,
        highlight=False,
    )


def create_table(title: str | None = None, *columns: str) -> Table:
    """Create a styled table."""
    table = Table(title=title, border_style=NEON_CYAN)
    for i, col in enumerate(columns):
        style = ELECTRIC_PURPLE if i == 0 else NEON_CYAN
        justify = "right" if col.lower() in ("count", "fields", "endpoints") else "left"
        table.add_column(col, style=style, justify=justify)
    return table


def format_method(method: str) -> str:
    """Color an HTTP method."""
    method_colors = {
        "GET": SUCCESS_GREEN,
        "POST": NEON_CYAN,
        "PUT": ELECTRIC_YELLOW,
        "PATCH": ELECTRIC_YELLOW,
        "DELETE": ERROR_RED,
    }
    color = method_colors.get(method.upper(), CORAL)
    return f"[{color}]{method}[/{color}]"


def truncate(text: str, max_length: int = 50) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
