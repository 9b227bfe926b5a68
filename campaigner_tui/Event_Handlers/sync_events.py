# sync_events.py
# Description: Bridges the sync engine and the Textual widgets (buttons, confirmation dialog, re-rendering)
#
# Imports
import asyncio
import logging
from typing import TYPE_CHECKING, Optional
#
# 3rd-Party Imports
from textual.css.query import QueryError
from textual.widgets import Button
#
# Local Imports
from ..Constants import TARGET_ALL
from ..Sync.delete_orchestrator import ConfirmCallback, DeleteOutcome, DeleteState
from ..Sync.sync_engine import SyncFaultError
from ..UI.Campaign_Detail_Window import CampaignDetailWindow
from ..UI.Confirm_Delete_Screen import ConfirmDeleteScreen
from ..UI.Conversations_Window import ConversationsWindow
from ..UI.Sidebar import CampaignerSidebar
from ..Widgets.AppFooterStatus import AppFooterStatus
from ..campaigner_api.faults import NetworkFault
from ..campaigner_api.schemas import CreditUsageResponse
if TYPE_CHECKING:
    from ..app import CampaignerApp
#
########################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)


# --- Confirmation ---

def make_modal_confirm(app: 'CampaignerApp', prompt: str) -> ConfirmCallback:
    """Returns a coroutine function that shows ConfirmDeleteScreen and resolves to the user's answer."""
    async def confirm() -> bool:
        answer: asyncio.Future = asyncio.get_running_loop().create_future()

        def on_dismiss(result: Optional[bool]) -> None:
            if not answer.done():
                answer.set_result(bool(result))

        app.push_screen(ConfirmDeleteScreen(prompt), callback=on_dismiss)
        return await answer
    return confirm


# --- Rendering (registry / aggregate listeners) ---

async def render_conversations(app: 'CampaignerApp') -> None:
    items = app.engine.conversations.items
    try:
        await app.query_one(CampaignerSidebar).render_conversations(items)
        await app.query_one(ConversationsWindow).render_conversations(items)
    except QueryError:
        logger.debug("Conversation views not mounted; skipping render")


async def render_campaigns(app: 'CampaignerApp') -> None:
    try:
        await app.query_one(CampaignerSidebar).render_campaigns(app.engine.campaigns.items)
        detail = app.query_one(CampaignDetailWindow)
    except QueryError:
        logger.debug("Campaign views not mounted; skipping render")
        return
    if detail.campaign_id is not None:
        # Keep the detail pane in step with the registry (edited fields, or gone entirely).
        detail.show_campaign(app.engine.campaigns.get(detail.campaign_id))


def format_credit_status(credits: Optional[dict]) -> str:
    if not credits:
        return ""
    usage = CreditUsageResponse.model_validate(credits)
    if usage.credits_remaining is None:
        return ""
    text = f"Credits: {usage.credits_remaining:g} left"
    if usage.is_exceeded:
        text += " (limit reached)"
    elif usage.is_near_limit:
        text += " (near limit)"
    return text


def update_footer_status(app: 'CampaignerApp') -> None:
    try:
        footer = app.query_one(AppFooterStatus)
    except QueryError:
        return
    footer.update_sync_status(format_credit_status(app.engine.credits.value))


# --- Errors ---

def report_sync_error(app: 'CampaignerApp', fault: NetworkFault, context: str) -> None:
    app.notify(f"{context}: {fault.user_message()}", title="Sync", severity="error", timeout=6)


# --- Delete flows (run as workers so the modal can be answered) ---

def _report_delete_outcome(app: 'CampaignerApp', outcome: DeleteOutcome, label: str) -> None:
    if outcome.state is DeleteState.CONFIRMED:
        app.notify(f"{label} deleted.", title="Deleted", severity="information", timeout=4)
    elif outcome.state is DeleteState.SKIPPED:
        app.notify(f"{label} is already being deleted.", severity="warning", timeout=4)
    # ROLLED_BACK is reported through the engine's on_error; CANCELLED needs no message.


async def delete_conversation_flow(app: 'CampaignerApp', conversation_id: int) -> DeleteOutcome:
    outcome = await app.engine.delete_conversation(
        conversation_id,
        confirm=make_modal_confirm(app, "Delete this conversation? Its campaign will be deleted too."),
    )
    _report_delete_outcome(app, outcome, "Conversation")
    return outcome


async def delete_campaign_flow(app: 'CampaignerApp', campaign_id: int) -> DeleteOutcome:
    outcome = await app.engine.delete_campaign(
        campaign_id,
        confirm=make_modal_confirm(app, "Delete this campaign? Its conversation will be deleted too."),
    )
    _report_delete_outcome(app, outcome, "Campaign")
    return outcome


async def foreground_refresh(app: 'CampaignerApp', target: str = TARGET_ALL) -> None:
    try:
        refreshed = await app.engine.refresh(target, silent=False)
    except SyncFaultError as e:
        # Session expiry already has its own notification.
        if not e.fault.requires_reauthentication:
            report_sync_error(app, e.fault, "Refresh failed")
        return
    if not refreshed:
        app.notify("A refresh is already in progress.", severity="information", timeout=3)


# --- Button handlers ---

async def handle_delete_conversation_button_pressed(app: 'CampaignerApp', event: Button.Pressed) -> None:
    conversation_id = app.query_one(ConversationsWindow).selected_conversation_id
    if conversation_id is None:
        app.notify("Select a conversation first.", severity="warning", timeout=3)
        return
    logger.info(f"Delete requested for conversation #{conversation_id}")
    app.run_worker(delete_conversation_flow(app, conversation_id), group="sync-deletes", exit_on_error=False)


async def handle_delete_campaign_button_pressed(app: 'CampaignerApp', event: Button.Pressed) -> None:
    campaign_id = app.query_one(CampaignDetailWindow).campaign_id
    if campaign_id is None:
        app.notify("Select a campaign first.", severity="warning", timeout=3)
        return
    logger.info(f"Delete requested for campaign #{campaign_id}")
    app.run_worker(delete_campaign_flow(app, campaign_id), group="sync-deletes", exit_on_error=False)


async def handle_refresh_button_pressed(app: 'CampaignerApp', event: Button.Pressed) -> None:
    app.run_worker(foreground_refresh(app), group="sync-refresh", exit_on_error=False)


async def handle_new_session_button_pressed(app: 'CampaignerApp', event: Button.Pressed) -> None:
    logger.info("New session requested; clearing local sync state")
    app.engine.reset()
    app.query_one(CampaignDetailWindow).show_campaign(None)
    app.engine.invalidate(TARGET_ALL)


# --- Button Handler Map ---
SYNC_BUTTON_HANDLERS = {
    "conversations-delete-button": handle_delete_conversation_button_pressed,
    "campaign-delete-button": handle_delete_campaign_button_pressed,
    "sidebar-refresh-button": handle_refresh_button_pressed,
    "conversations-refresh-button": handle_refresh_button_pressed,
    "sidebar-new-session-button": handle_new_session_button_pressed,
}

#
# End of sync_events.py
########################################################################################################################
