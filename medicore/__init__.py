"""MediCore clinic client: session, authorization and queue synchronization."""
from medicore.client import MediCoreClient
from medicore.guard import Decision, decide
from medicore.models import QueueSnapshot, Role, Session, Visit
from medicore.poller import QueuePoller
from medicore.session_store import SessionStore

__version__ = "1.0.0"

__all__ = [
    "Decision",
    "MediCoreClient",
    "QueuePoller",
    "QueueSnapshot",
    "Role",
    "Session",
    "SessionStore",
    "Visit",
    "decide",
]
