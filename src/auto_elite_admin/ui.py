"""Console notifications and display formatting."""

import logging

from rich.console import Console

logger = logging.getLogger(__name__)

_ALERT_STYLES = {
    "success": "green",
    "error": "bold red",
    "warning": "yellow",
    "info": "cyan",
}

_STATUS_STYLES = {
    "available": "green",
    "reserved": "yellow",
    "sold": "red",
    "maintenance": "yellow",
}


def format_currency(amount: float | int | str | None) -> str:
    """Format an amount in Kenyan shillings without decimals."""
    try:
        value = float(amount or 0)
    except (TypeError, ValueError):
        return str(amount)
    return f"KES {value:,.0f}"


def status_style(status: str | None) -> str:
    """Badge style for a listing status."""
    return _STATUS_STYLES.get((status or "").lower(), "dim")


class Notifier:
    """Surfaces user-facing messages on the console."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def alert(self, message: str, kind: str = "success") -> None:
        if not message:
            return
        self.console.print(message, style=_ALERT_STYLES.get(kind), markup=False)
        if kind == "error":
            logger.debug(f"Error shown to user: {message}")

    def success(self, message: str) -> None:
        self.alert(message, "success")

    def error(self, message: str) -> None:
        self.alert(message, "error")

    def warning(self, message: str) -> None:
        self.alert(message, "warning")

    def info(self, message: str) -> None:
        self.alert(message, "info")
