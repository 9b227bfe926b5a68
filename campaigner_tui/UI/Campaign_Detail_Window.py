# Campaign_Detail_Window.py
# Description: Detail pane for the campaign selected in the sidebar
#
# Imports
from typing import Any, Dict, Optional, TYPE_CHECKING
#
# 3rd-Party Imports
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import Button, Static
#
# Local Imports
if TYPE_CHECKING:
    from ..app import CampaignerApp
#
########################################################################################################################
#
# Functions:

DETAIL_FIELDS = ("title", "status", "tone", "leads", "conversation_id", "created_at")


def format_campaign_detail(campaign: Optional[Dict[str, Any]]) -> str:
    if not campaign:
        return "Select a campaign in the sidebar."
    lines = [f"Campaign #{campaign['id']}"]
    for field in DETAIL_FIELDS:
        value = campaign.get(field)
        if value is None:
            continue
        if isinstance(value, list):
            value = f"{len(value)} item(s)"
        lines.append(f"{field.replace('_', ' ').title()}: {value}")
    return "\n".join(lines)


class CampaignDetailWindow(Container):
    def __init__(self, app_instance: 'CampaignerApp', **kwargs):
        super().__init__(**kwargs)
        self.app_instance = app_instance
        self.campaign_id: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield Static("Campaign", classes="view-title")
        yield Static(format_campaign_detail(None), id="campaign-detail-display", markup=False)
        with Horizontal(classes="view-actions"):
            yield Button("Delete Campaign", id="campaign-delete-button", variant="error")

    def show_campaign(self, campaign: Optional[Dict[str, Any]]) -> None:
        self.campaign_id = campaign["id"] if campaign else None
        self.query_one("#campaign-detail-display", Static).update(format_campaign_detail(campaign))

#
# End of Campaign_Detail_Window.py
########################################################################################################################
