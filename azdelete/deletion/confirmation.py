"""Operator confirmation gates.

Per-item and batch-wide confirmation before destructive operations. Response
evaluation lives here; how a response is obtained is left to subclasses so the
deletion engine can run against a console or a scripted responder.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from rich.console import Console
from rich.markup import escape

from azdelete.arm.store import Resource

DEFAULT_CONFIRMATION_TOKEN = "DELETE"


class ConfirmationGate(ABC):
    """Base confirmation gate.

    Per-item confirmation proceeds only on a single-character affirmative
    ("y" or "Y"); anything else means skip. Batch confirmation requires the
    exact confirmation token; anything else cancels the run.

    Attributes:
        confirmation_token: Literal the operator must type to start a batch
    """

    def __init__(self, confirmation_token: str = DEFAULT_CONFIRMATION_TOKEN) -> None:
        self.confirmation_token = confirmation_token

    @abstractmethod
    def ask(self, message: str) -> str:
        """Present a prompt and return the operator's raw response."""
        pass

    def confirm_item(self, resource: Resource) -> bool:
        """Ask whether to delete one resource.

        Args:
            resource: Resource about to be deleted

        Returns:
            True if the operator answered "y"
        """
        response = self.ask(f"Delete {resource.name} ({resource.resource_type})? [y/N]")
        return response.strip().lower() == "y"

    def confirm_batch(self, count: int) -> bool:
        """Ask once whether to start deleting a batch.

        Args:
            count: Number of resources in the batch

        Returns:
            True if the operator typed the exact confirmation token
        """
        response = self.ask(
            f"About to delete {count} resource(s). Type '{self.confirmation_token}' to confirm"
        )
        return response.strip() == self.confirmation_token


class ConsoleConfirmationGate(ConfirmationGate):
    """Confirmation gate reading single-line responses from a Rich console."""

    def __init__(self, console: Console, confirmation_token: str = DEFAULT_CONFIRMATION_TOKEN) -> None:
        super().__init__(confirmation_token)
        self.console = console

    def ask(self, message: str) -> str:
        try:
            return self.console.input(f"[bold yellow]{escape(message)}[/bold yellow] ")
        except EOFError:
            return ""
