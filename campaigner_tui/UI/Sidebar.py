# Sidebar.py
# Description: Persistent left sidebar listing conversations and campaigns
#
# Imports
from typing import Any, Dict, List, TYPE_CHECKING
#
# 3rd-Party Imports
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Button, ListView, Static
#
# Local Imports
from ..Widgets.custom_list_items import CampaignListItem, ConversationListItem
if TYPE_CHECKING:
    from ..app import CampaignerApp
#
########################################################################################################################
#
# Functions:

class CampaignerSidebar(VerticalScroll):
    def __init__(self, app_instance: 'CampaignerApp', **kwargs):
        super().__init__(**kwargs)
        self.app_instance = app_instance

    def compose(self) -> ComposeResult:
        yield Static("Campaigner", classes="sidebar-title")
        yield Button("New Session", id="sidebar-new-session-button", variant="primary")
        yield Static("Conversations", classes="sidebar-section-label")
        yield ListView(id="sidebar-conversations-listview")
        yield Static("Campaigns", classes="sidebar-section-label")
        yield ListView(id="sidebar-campaigns-listview")
        yield Button("Refresh", id="sidebar-refresh-button")

    async def render_conversations(self, conversations: List[Dict[str, Any]]) -> None:
        list_view = self.query_one("#sidebar-conversations-listview", ListView)
        await list_view.clear()
        await list_view.extend(ConversationListItem(item) for item in conversations)

    async def render_campaigns(self, campaigns: List[Dict[str, Any]]) -> None:
        list_view = self.query_one("#sidebar-campaigns-listview", ListView)
        await list_view.clear()
        await list_view.extend(CampaignListItem(item) for item in campaigns)

#
# End of Sidebar.py
########################################################################################################################
