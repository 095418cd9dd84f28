"""UI-independent core: backend adapter, session gate, bookmark projection.

Modules
-------
remote
    :class:`RemoteStore` contract and the Supabase-backed implementation.
session_gate
    :class:`SessionGate`: current identity, OAuth login/logout.
bookmark_store
    :class:`BookmarkStore`: optimistic local list kept in sync by refetch.
"""

from .bookmark_store import BookmarkStore
from .remote import ChangeEvent, RemoteStore, SupabaseRemote, close_remote, get_remote
from .session_gate import SessionGate

__all__ = [
    "BookmarkStore",
    "ChangeEvent",
    "RemoteStore",
    "SessionGate",
    "SupabaseRemote",
    "close_remote",
    "get_remote",
]
