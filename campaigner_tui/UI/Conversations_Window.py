# Conversations_Window.py
# Description: Full-page conversation list
#
# Imports
from typing import Any, Dict, List, Optional, TYPE_CHECKING
#
# 3rd-Party Imports
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import Button, ListView, Static
#
# Local Imports
from ..Widgets.custom_list_items import ConversationListItem
if TYPE_CHECKING:
    from ..app import CampaignerApp
#
########################################################################################################################
#
# Functions:

class ConversationsWindow(Container):
    """
    Container for the conversations page. Shows the same registry as the
    sidebar, so both views always agree.
    """
    def __init__(self, app_instance: 'CampaignerApp', **kwargs):
        super().__init__(**kwargs)
        self.app_instance = app_instance

    def compose(self) -> ComposeResult:
        yield Static("Conversations", classes="view-title")
        yield ListView(id="conversations-page-listview")
        with Horizontal(classes="view-actions"):
            yield Button("Delete Conversation", id="conversations-delete-button", variant="error")
            yield Button("Refresh", id="conversations-refresh-button")

    async def render_conversations(self, conversations: List[Dict[str, Any]]) -> None:
        list_view = self.query_one("#conversations-page-listview", ListView)
        previous_index = list_view.index
        await list_view.clear()
        await list_view.extend(ConversationListItem(item) for item in conversations)
        if conversations and previous_index is not None:
            list_view.index = min(previous_index, len(conversations) - 1)

    @property
    def selected_conversation_id(self) -> Optional[int]:
        highlighted = self.query_one("#conversations-page-listview", ListView).highlighted_child
        if isinstance(highlighted, ConversationListItem):
            return highlighted.conversation_id
        return None

#
# End of Conversations_Window.py
########################################################################################################################
