# Confirm_Delete_Screen.py
# Description: Modal yes/no dialog shown before a destructive action
#
# Imports
#
# 3rd-Party Imports
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static
#
########################################################################################################################
#
# Classes:

class ConfirmDeleteScreen(ModalScreen[bool]):
    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("y", "confirm", "Delete", show=False),
    ]

    def __init__(self, prompt: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.prompt = prompt

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-delete-dialog"):
            yield Static(self.prompt, id="confirm-delete-prompt", markup=False)
            with Horizontal(id="confirm-delete-buttons"):
                yield Button("Cancel", id="confirm-delete-cancel")
                yield Button("Delete", id="confirm-delete-ok", variant="error")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(event.button.id == "confirm-delete-ok")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)

#
# End of Confirm_Delete_Screen.py
########################################################################################################################
