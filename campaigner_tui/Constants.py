# Constants.py
# Description: Constants for the application
#
# Imports
#
# 3rd-Party Imports
#
# Local Imports
#
########################################################################################################################
#
# Functions:

# --- Entity types tracked by the sync engine ---
ENTITY_CONVERSATIONS = "conversations"
ENTITY_CAMPAIGNS = "campaigns"

# --- Invalidation / refresh targets ---
TARGET_CONVERSATIONS = ENTITY_CONVERSATIONS
TARGET_CAMPAIGNS = ENTITY_CAMPAIGNS
TARGET_DASHBOARD = "dashboard"
TARGET_ALL = "all"
REFRESH_TARGETS = [TARGET_CONVERSATIONS, TARGET_CAMPAIGNS, TARGET_DASHBOARD]

# --- Snapshot store keys (process-wide, never user-scoped) ---
SNAPSHOT_KEY_CONVERSATIONS_SIDEBAR = "campaigner-sidebar-conversations"
SNAPSHOT_KEY_CONVERSATIONS_PAGE = "campaigner-conversations-page"
SNAPSHOT_KEY_CAMPAIGNS = "campaigner-sidebar-campaigns"
SNAPSHOT_KEY_CREDITS = "campaigner-credits"
SNAPSHOT_KEY_DASHBOARD = "campaigner-dashboard"
ALL_SNAPSHOT_KEYS = [
    SNAPSHOT_KEY_CONVERSATIONS_SIDEBAR,
    SNAPSHOT_KEY_CONVERSATIONS_PAGE,
    SNAPSHOT_KEY_CAMPAIGNS,
    SNAPSHOT_KEY_CREDITS,
    SNAPSHOT_KEY_DASHBOARD,
]

# --- Timing defaults ---
DEFAULT_REFRESH_INTERVAL_SECONDS = 5 * 60
DEFAULT_SNAPSHOT_TTL_SECONDS = 5 * 60


# --- CSS definition ---
css_content = """
Screen { layout: vertical; }
Header { dock: top; height: 1; background: $accent-darken-1; }
Footer { dock: bottom; height: 1; background: $accent-darken-1; }
#main-layout { height: 1fr; width: 100%; }

/* --- Sidebar --- */
.sidebar { dock: left; width: 32; background: $boost; padding: 1 1; border-right: thick $background-darken-1; }
.sidebar.collapsed { width: 0 !important; border-right: none !important; padding: 0 !important; display: none; }
.sidebar-title { text-style: bold underline; margin-bottom: 1; width: 100%; text-align: center; }
.sidebar-section-label { margin-top: 1; text-style: bold; }
.sidebar ListView { height: 1fr; border: round $surface; }

/* --- Content --- */
#content { height: 1fr; width: 1fr; padding: 0 1; }
.view-area { height: 1fr; width: 100%; }
.view-title { text-style: bold; margin-bottom: 1; }
#conversations-page-listview { height: 1fr; border: round $surface; }
#campaign-detail-display { height: 1fr; border: round $surface; padding: 0 1; }
#app-log-display { height: 8; border: round $surface; }

/* --- Confirm dialog --- */
ConfirmDeleteScreen { align: center middle; }
#confirm-delete-dialog { width: 60; height: auto; padding: 1 2; border: thick $error; background: $surface; }
#confirm-delete-buttons { height: auto; margin-top: 1; align-horizontal: right; }
#confirm-delete-buttons Button { margin-left: 1; }

/* --- Footer status --- */
AppFooterStatus { dock: bottom; height: 1; background: $accent-darken-1; padding: 0 1; }
#footer-key-hints { width: auto; }
#footer-spacer { width: 1fr; }
#footer-sync-status { width: auto; }
.view-actions { height: auto; }
.view-actions Button { margin-right: 1; }
"""

#
# End of Constants.py
########################################################################################################################
