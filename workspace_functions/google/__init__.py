"""Google Workspace API clients used by the handler modules."""

from workspace_functions.config import Settings, get_settings
from workspace_functions.google.auth import GoogleOAuthManager
from workspace_functions.google.drive import DriveFile, DriveService
from workspace_functions.google.gmail import GmailMessage, GmailMessageDetail, GmailService
from workspace_functions.google.sheets import SheetsService


def get_oauth_manager(settings: Settings | None = None) -> GoogleOAuthManager:
    """OAuth manager built from the process settings."""
    return GoogleOAuthManager.from_settings(settings or get_settings())


__all__ = [
    "GoogleOAuthManager",
    "GmailService",
    "GmailMessage",
    "GmailMessageDetail",
    "DriveService",
    "DriveFile",
    "SheetsService",
    "get_oauth_manager",
]
