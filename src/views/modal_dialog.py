from typing import Dict, Literal, Tuple

from typing_extensions import override

from textual import events
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Markdown

from utils.messages import QuitRequestedMessage


class DialogModal(ModalScreen[bool]):
    """
    A simple confirmation box, returns True on the primary button.
    """

    VARIANT_MAP: Dict[
        str, Tuple[Literal["primary", "default", "success", "warning", "error"], ...]
    ] = {
        "default": ("primary", "default"),
        "positive": ("success", "default"),
        "warning": ("warning", "default"),
        "error": ("error", "primary"),
    }

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: str = "",
        tone: Literal["default", "positive", "warning", "error"] = "default",
    ):
        super().__init__()
        self.caption = caption
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        with Container(id="div-dialog"):
            yield Label(self.caption, id="caption")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(
                        self.secondary_text,
                        variant=DialogModal.VARIANT_MAP[self.tone][1],
                        id="btn-secondary",
                    )
                yield Button(
                    self.primary_text,
                    variant=DialogModal.VARIANT_MAP[self.tone][0],
                    id="btn-primary",
                )

    def on_mount(self):
        # destructive dialogs focus the safe choice
        if not self.secondary_text or not self.tone == "error":
            self.query_one("#btn-primary").focus()
        else:
            self.query_one("#btn-secondary").focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.dismiss(True)
        if event.button.id == "btn-secondary":
            self.dismiss(False)


class ConfirmDeleteModal(DialogModal):
    def __init__(self, what: str):
        super().__init__(f"Are you sure you want to delete {what}?", "Delete", "Cancel", "error")


class QuitDialogModal(DialogModal):
    def __init__(self):
        super().__init__("Are you sure you want to quit?", "Yes", "No", "error")

    @override
    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.post_message(QuitRequestedMessage())
            self.dismiss(True)
        else:
            self.dismiss(False)


class ErrorFallbackModal(ModalScreen[str]):
    """
    Last-resort screen for errors nothing else handled.
    Returns "retry" to re-render the screen or "reload" to restart the session flow.
    """

    def __init__(self, error: str):
        super().__init__()
        self.error = error

    def compose(self) -> ComposeResult:
        with Container(id="div-dialog", classes="-error"):
            yield Label("Something went wrong", id="caption")
            yield Label(self.error or "Unknown error", id="label-error-detail")
            with Horizontal(id="dialog"):
                yield Button("Retry", id="btn-retry")
                yield Button("Reload", id="btn-reload", variant="error")

    def on_mount(self):
        self.query_one("#btn-retry").focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss("retry" if event.button.id == "btn-retry" else "reload")


class MarkdownModal(ModalScreen[None]):
    """Read-only detail view: stock history, leaderboard, lookups."""

    def __init__(self, markdown: str):
        super().__init__()
        self.markdown = markdown

    def compose(self) -> ComposeResult:
        with Container(id="div-md-modal"):
            with VerticalScroll():
                yield Markdown(self.markdown)
            yield Button("Close", id="btn-close", variant="primary")

    def on_mount(self):
        self.query_one("#btn-close").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss()
