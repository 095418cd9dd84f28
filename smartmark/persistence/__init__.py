"""Persistence layer – each store owns its file path, data format, and I/O."""

from .auth_session import AuthSessionStore, FileSessionStorage

__all__ = [
    "AuthSessionStore",
    "FileSessionStorage",
]
