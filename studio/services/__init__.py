"""Business logic services."""
from studio.services.influencer_service import InfluencerDirectory
from studio.services.session_service import (
    AuthError,
    InvalidCredentials,
    SessionManager,
    SessionState,
    UsernameTaken,
    hash_password,
)
from studio.services.workspace_service import Workspace, WorkspaceNotReady

__all__ = [
    "InfluencerDirectory",
    "AuthError",
    "InvalidCredentials",
    "SessionManager",
    "SessionState",
    "UsernameTaken",
    "hash_password",
    "Workspace",
    "WorkspaceNotReady",
]
