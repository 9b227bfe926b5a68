# app.py
# Description: Textual host for the campaigner sync engine
#
# Imports
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional
#
# 3rd-Party Imports
from loguru import logger as loguru_logger
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import Button, Header, ListView, RichLog
#
# Local Imports
from .Constants import TARGET_ALL, css_content
from .Event_Handlers import sync_events
from .Logging_Config import RichLogHandler, configure_application_logging
from .Sync.sync_engine import SyncEngine, build_snapshot_store
from .UI.Campaign_Detail_Window import CampaignDetailWindow
from .UI.Conversations_Window import ConversationsWindow
from .UI.Sidebar import CampaignerSidebar
from .Widgets.AppFooterStatus import AppFooterStatus
from .Widgets.custom_list_items import CampaignListItem, ConversationListItem
from .campaigner_api.client import CampaignerAPIClient
from .campaigner_api.faults import NetworkFault
from .campaigner_api.utils import get_user_id_from_token, is_token_expired
from .config import get_api_settings, get_sync_settings, load_settings
#
########################################################################################################################
#
# Functions:

def build_sync_engine() -> SyncEngine:
    """Creates the API client, snapshot store and engine from the user's config."""
    api_client = CampaignerAPIClient(**get_api_settings())
    if api_client.token and is_token_expired(api_client.token):
        loguru_logger.warning("Configured auth token has expired; requests will be rejected until it is replaced.")
    sync_settings = get_sync_settings()
    store = build_snapshot_store(sync_settings,
                                 user_id_provider=lambda: get_user_id_from_token(api_client.token))
    return SyncEngine(api_client, store, refresh_interval_seconds=sync_settings["refresh_interval_seconds"])


class CampaignerApp(App[None]):
    """A Textual client for campaigns and their conversations."""
    TITLE = "Campaigner"
    CSS = css_content
    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit App", show=True),
        Binding("r", "refresh", "Refresh", show=True),
        Binding("d", "delete_selected", "Delete", show=True),
    ]

    def __init__(self,
                 engine: Optional[SyncEngine] = None,
                 app_config: Optional[Dict[str, Any]] = None,
                 setup_logging: bool = True):
        super().__init__()
        self.app_config = app_config if app_config is not None else load_settings()
        self.loguru_logger = loguru_logger
        self.engine: Optional[SyncEngine] = engine
        self._setup_logging_enabled = setup_logging
        self._rich_log_handler: Optional[RichLogHandler] = None
        self._remove_listeners: List[Callable[[], None]] = []
        self.button_handler_map = dict(sync_events.SYNC_BUTTON_HANDLERS)

    def compose(self) -> ComposeResult:
        logging.debug("App composing UI...")
        yield Header()
        with Horizontal(id="main-layout"):
            yield CampaignerSidebar(self, id="sidebar", classes="sidebar")
            with Container(id="content"):
                yield ConversationsWindow(self, id="conversations-window", classes="view-area")
                yield CampaignDetailWindow(self, id="campaign-detail-window", classes="view-area")
                yield RichLog(id="app-log-display", wrap=True, highlight=True, markup=False, auto_scroll=True)
        yield AppFooterStatus(id="app-footer-status")

    async def on_mount(self) -> None:
        if self._setup_logging_enabled:
            configure_application_logging(self)
        if self.engine is None:
            self.engine = build_sync_engine()
        self.engine.on_error = self.report_sync_error
        self.engine.on_session_expired = self.handle_session_expired

        self._remove_listeners = [
            self.engine.conversations.add_listener(
                lambda _registry: self.call_later(sync_events.render_conversations, self)),
            self.engine.campaigns.add_listener(
                lambda _registry: self.call_later(sync_events.render_campaigns, self)),
            self.engine.credits.add_listener(
                lambda _cache: self.call_later(sync_events.update_footer_status, self)),
        ]
        await self.engine.start()
        self.loguru_logger.info("Campaigner sync engine started")

    def on_app_focus(self, event: events.AppFocus) -> None:
        if self.engine is not None:
            self.engine.notify_focus()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Dispatches button presses to the appropriate event handler using a map."""
        button_id = event.button.id
        if not button_id:
            return
        handler = self.button_handler_map.get(button_id)
        if handler is None:
            self.loguru_logger.warning(f"Unhandled button press for ID '{button_id}'.")
            return
        result = handler(self, event)
        if inspect.isawaitable(result):
            await result

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if isinstance(item, CampaignListItem):
            self.query_one(CampaignDetailWindow).show_campaign(self.engine.campaigns.get(item.campaign_id))
        elif isinstance(item, ConversationListItem) and event.list_view.id == "sidebar-conversations-listview":
            page_list = self.query_one("#conversations-page-listview", ListView)
            ids = self.engine.conversations.ids
            if item.conversation_id in ids:
                page_list.index = ids.index(item.conversation_id)

    # --- Actions ---

    def action_refresh(self) -> None:
        self.run_worker(sync_events.foreground_refresh(self, TARGET_ALL), group="sync-refresh", exit_on_error=False)

    def action_delete_selected(self) -> None:
        """Deletes the shown campaign if any, otherwise the highlighted conversation."""
        campaign_id = self.query_one(CampaignDetailWindow).campaign_id
        if campaign_id is not None:
            self.run_worker(sync_events.delete_campaign_flow(self, campaign_id),
                            group="sync-deletes", exit_on_error=False)
            return
        conversation_id = self.query_one(ConversationsWindow).selected_conversation_id
        if conversation_id is not None:
            self.run_worker(sync_events.delete_conversation_flow(self, conversation_id),
                            group="sync-deletes", exit_on_error=False)
        else:
            self.notify("Nothing selected to delete.", severity="warning", timeout=3)

    # --- Engine callbacks ---

    def report_sync_error(self, fault: NetworkFault, context: str) -> None:
        sync_events.report_sync_error(self, fault, context)

    def handle_session_expired(self) -> None:
        self.loguru_logger.warning("Session expired; local data cleared")
        if self.engine is not None:
            self.engine.api_client.set_token(None)
        self.query_one(CampaignDetailWindow).show_campaign(None)
        self.notify("Your session has expired. Please sign in again.", title="Signed out",
                    severity="error", timeout=8)

    # --- Shutdown ---

    async def on_unmount(self) -> None:
        logging.info("--- App Unmounting ---")
        for remove in self._remove_listeners:
            remove()
        self._remove_listeners = []
        if self.engine is not None:
            await self.engine.shutdown()
        if self._rich_log_handler:
            await self._rich_log_handler.stop_processor()
            logging.getLogger().removeHandler(self._rich_log_handler)


def main() -> None:
    CampaignerApp().run()


if __name__ == "__main__":
    main()

#
# End of app.py
########################################################################################################################
