# custom_list_items.py
# Description: ListItems that remember which entity they display
#
# Imports
from typing import Any, Dict
#
# 3rd-party Libraries
from textual.widgets import ListItem, Label
#
########################################################################################################################
#
# Classes:

def _display_title(record: Dict[str, Any], fallback: str) -> str:
    title = record.get("title") or record.get("name")
    return str(title) if title else f"{fallback} #{record.get('id')}"


class ConversationListItem(ListItem):
    def __init__(self, conversation: Dict[str, Any], **kwargs):
        super().__init__(Label(_display_title(conversation, "Conversation"), markup=False), **kwargs)
        self.conversation_id: int = conversation["id"]


class CampaignListItem(ListItem):
    def __init__(self, campaign: Dict[str, Any], **kwargs):
        status = campaign.get("status")
        text = _display_title(campaign, "Campaign")
        if status:
            text = f"{text} [{status}]"
        super().__init__(Label(text, markup=False), **kwargs)
        self.campaign_id: int = campaign["id"]

#
# End of custom_list_items.py
########################################################################################################################
