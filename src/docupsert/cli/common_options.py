"""Common Typer options shared across CLI commands."""

import json
from typing import Any, Dict, List, Optional

import typer


def set_option(help_text: str = "Field assignment KEY=VALUE (VALUE parsed as JSON)") -> typer.Option:
    """Create a repeatable --set option.

    Args:
        help_text: Custom help text

    Returns:
        Configured Typer Option
    """
    return typer.Option(None, "--set", "-s", help=help_text)


def verbose_option(help_text: str = "Enable debug logging") -> typer.Option:
    """Create a standard verbose flag."""
    return typer.Option(False, "--verbose", "-v", help=help_text)


def parse_assignments(assignments: Optional[List[str]]) -> Dict[str, Any]:
    """Parse KEY=VALUE pairs into a field mapping.

    Values are decoded as JSON when possible, otherwise kept as strings,
    so ``count=3`` stores an int and ``name=bob`` stores "bob".

    Raises:
        typer.BadParameter: If an assignment has no '=' or an empty key
    """
    fields: Dict[str, Any] = {}
    for assignment in assignments or []:
        key, sep, raw = assignment.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{assignment}'")
        try:
            fields[key] = json.loads(raw)
        except json.JSONDecodeError:
            fields[key] = raw
    return fields
