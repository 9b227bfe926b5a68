# /tests/Event_Handlers/test_sync_events.py

import asyncio
import inspect

import pytest
from unittest.mock import AsyncMock, MagicMock

from textual.widgets import Button

from campaigner_tui.Event_Handlers.sync_events import (
    SYNC_BUTTON_HANDLERS,
    delete_campaign_flow,
    delete_conversation_flow,
    foreground_refresh,
    format_credit_status,
    handle_delete_campaign_button_pressed,
    handle_delete_conversation_button_pressed,
    handle_new_session_button_pressed,
    handle_refresh_button_pressed,
    make_modal_confirm,
    report_sync_error,
)
from campaigner_tui.Sync.delete_orchestrator import DeleteOutcome, DeleteState
from campaigner_tui.Sync.sync_engine import SyncFaultError
from campaigner_tui.UI.Campaign_Detail_Window import CampaignDetailWindow
from campaigner_tui.UI.Confirm_Delete_Screen import ConfirmDeleteScreen
from campaigner_tui.UI.Conversations_Window import ConversationsWindow
from campaigner_tui.campaigner_api.faults import FaultKind, NetworkFault

pytestmark = pytest.mark.asyncio


@pytest.fixture
def mock_app():
    """A stand-in CampaignerApp with a mocked engine and the two selection panes."""
    app = MagicMock()
    app.engine = MagicMock()
    app.engine.refresh = AsyncMock(return_value=True)
    app.engine.delete_conversation = AsyncMock()
    app.engine.delete_campaign = AsyncMock()
    app.notify = MagicMock()
    app.push_screen = MagicMock()

    def close_coroutine(coro, **kwargs):
        coro.close()  # handlers hand coroutines to workers; nothing runs them here
        return MagicMock()
    app.run_worker = MagicMock(side_effect=close_coroutine)

    conversations_window = MagicMock(spec=ConversationsWindow)
    conversations_window.selected_conversation_id = None
    detail_window = MagicMock(spec=CampaignDetailWindow)
    detail_window.campaign_id = None
    widgets = {ConversationsWindow: conversations_window, CampaignDetailWindow: detail_window}
    app.query_one = MagicMock(side_effect=lambda selector, *args: widgets[selector])
    app.widgets = widgets
    return app


def _button_event(button_id: str) -> MagicMock:
    event = MagicMock(spec=Button.Pressed)
    event.button = MagicMock(spec=Button, id=button_id)
    return event


def _outcome(state: DeleteState, entity_type: str = "conversations") -> DeleteOutcome:
    return DeleteOutcome(state=state, entity_type=entity_type, entity_id=7)


# --- Confirmation ---

async def test_modal_confirm_resolves_with_dismiss_result(mock_app):
    confirm = make_modal_confirm(mock_app, "Delete this campaign?")
    answer = asyncio.ensure_future(confirm())
    await asyncio.sleep(0)

    screen = mock_app.push_screen.call_args.args[0]
    assert isinstance(screen, ConfirmDeleteScreen)
    mock_app.push_screen.call_args.kwargs["callback"](True)
    assert await answer is True


async def test_modal_confirm_treats_none_as_cancel(mock_app):
    answer = asyncio.ensure_future(make_modal_confirm(mock_app, "Delete?")())
    await asyncio.sleep(0)
    mock_app.push_screen.call_args.kwargs["callback"](None)
    assert await answer is False


# --- Status and errors ---

@pytest.mark.parametrize("credits, expected", [
    (None, ""),
    ({}, ""),
    ({"credits_remaining": None}, ""),
    ({"credits_remaining": 12}, "Credits: 12 left"),
    ({"credits_remaining": 0}, "Credits: 0 left (limit reached)"),
    ({"credits_remaining": 3.5, "usage_percentage": 90}, "Credits: 3.5 left (near limit)"),
])
async def test_format_credit_status(credits, expected):
    assert format_credit_status(credits) == expected


async def test_report_sync_error_uses_friendly_message(mock_app):
    report_sync_error(mock_app, NetworkFault(FaultKind.TIMEOUT, "read timed out"), "Refresh failed")
    message = mock_app.notify.call_args.args[0]
    assert message.startswith("Refresh failed: ")
    assert "too long" in message
    assert mock_app.notify.call_args.kwargs["severity"] == "error"


# --- Refresh ---

async def test_foreground_refresh_success_is_quiet(mock_app):
    await foreground_refresh(mock_app, "campaigns")
    mock_app.engine.refresh.assert_awaited_once_with("campaigns", silent=False)
    mock_app.notify.assert_not_called()


async def test_foreground_refresh_reports_overlap(mock_app):
    mock_app.engine.refresh.return_value = False
    await foreground_refresh(mock_app)
    assert "already in progress" in mock_app.notify.call_args.args[0]


async def test_foreground_refresh_reports_fault(mock_app):
    mock_app.engine.refresh.side_effect = SyncFaultError(NetworkFault(FaultKind.SERVER_ERROR, "boom", 500))
    await foreground_refresh(mock_app)
    assert mock_app.notify.call_args.kwargs["severity"] == "error"


async def test_foreground_refresh_leaves_session_expiry_to_its_handler(mock_app):
    mock_app.engine.refresh.side_effect = SyncFaultError(NetworkFault(FaultKind.UNAUTHORIZED, "expired", 401))
    await foreground_refresh(mock_app)
    mock_app.notify.assert_not_called()


# --- Delete flows ---

async def test_confirmed_delete_is_announced(mock_app):
    mock_app.engine.delete_conversation.return_value = _outcome(DeleteState.CONFIRMED)
    outcome = await delete_conversation_flow(mock_app, 7)
    assert outcome.succeeded
    assert mock_app.engine.delete_conversation.call_args.args == (7,)
    assert callable(mock_app.engine.delete_conversation.call_args.kwargs["confirm"])
    assert mock_app.notify.call_args.args[0] == "Conversation deleted."


async def test_skipped_delete_warns(mock_app):
    mock_app.engine.delete_campaign.return_value = _outcome(DeleteState.SKIPPED, "campaigns")
    await delete_campaign_flow(mock_app, 30)
    assert mock_app.notify.call_args.kwargs["severity"] == "warning"


@pytest.mark.parametrize("state", [DeleteState.ROLLED_BACK, DeleteState.CANCELLED])
async def test_rolled_back_or_cancelled_delete_adds_no_toast(mock_app, state):
    mock_app.engine.delete_campaign.return_value = _outcome(state, "campaigns")
    await delete_campaign_flow(mock_app, 30)
    mock_app.notify.assert_not_called()


# --- Button handlers ---

async def test_delete_conversation_button_requires_selection(mock_app):
    await handle_delete_conversation_button_pressed(mock_app, _button_event("conversations-delete-button"))
    mock_app.run_worker.assert_not_called()
    assert mock_app.notify.call_args.kwargs["severity"] == "warning"


async def test_delete_conversation_button_starts_worker(mock_app):
    mock_app.widgets[ConversationsWindow].selected_conversation_id = 7
    await handle_delete_conversation_button_pressed(mock_app, _button_event("conversations-delete-button"))
    assert mock_app.run_worker.call_args.kwargs["group"] == "sync-deletes"
    assert mock_app.run_worker.call_args.kwargs["exit_on_error"] is False


async def test_delete_campaign_button_uses_detail_pane(mock_app):
    await handle_delete_campaign_button_pressed(mock_app, _button_event("campaign-delete-button"))
    mock_app.run_worker.assert_not_called()
    mock_app.widgets[CampaignDetailWindow].campaign_id = 30
    await handle_delete_campaign_button_pressed(mock_app, _button_event("campaign-delete-button"))
    mock_app.run_worker.assert_called_once()


async def test_refresh_button_starts_worker(mock_app):
    await handle_refresh_button_pressed(mock_app, _button_event("sidebar-refresh-button"))
    assert mock_app.run_worker.call_args.kwargs["group"] == "sync-refresh"


async def test_new_session_resets_then_refetches(mock_app):
    await handle_new_session_button_pressed(mock_app, _button_event("sidebar-new-session-button"))
    mock_app.engine.reset.assert_called_once()
    mock_app.widgets[CampaignDetailWindow].show_campaign.assert_called_once_with(None)
    mock_app.engine.invalidate.assert_called_once_with("all")


async def test_every_mapped_handler_is_a_coroutine_function():
    assert set(SYNC_BUTTON_HANDLERS) == {
        "conversations-delete-button", "campaign-delete-button", "sidebar-refresh-button",
        "conversations-refresh-button", "sidebar-new-session-button",
    }
    for handler in SYNC_BUTTON_HANDLERS.values():
        assert inspect.iscoroutinefunction(handler)
