# campaigner_tui/Widgets/AppFooterStatus.py
#
# Imports
#
# 3rd-party Libraries
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Static
#
# Local Imports
#
########################################################################################################################
#
# AppFooterStatus

class AppFooterStatus(Horizontal):
    """Key hints on the left, sync/credit status on the right."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._key_hints = Static("Ctrl+Q quit | R refresh | D delete", id="footer-key-hints")
        self._sync_status_display = Static("", id="footer-sync-status")
        self.sync_status = ""

    def compose(self) -> ComposeResult:
        yield self._key_hints
        yield Static(id="footer-spacer")
        yield self._sync_status_display

    def update_sync_status(self, status_string: str) -> None:
        self.sync_status = status_string
        if self.is_mounted:
            self._sync_status_display.update(status_string)

#
# End of AppFooterStatus.py
########################################################################################################################
