"""
Module 'credentials': point d'entrée public du Credential Store et des SessionTokens.
"""

from .store import CookieOptions, CredentialStore, CookieCredentialStore, MemoryCredentialStore
from .tokens import SessionTokens, PartialSessionError, TOKEN_NAMES, UID, CID, SID, AID

__all__ = [
    "CookieOptions",
    "CredentialStore",
    "CookieCredentialStore",
    "MemoryCredentialStore",
    "SessionTokens",
    "PartialSessionError",
    "TOKEN_NAMES",
    "UID",
    "CID",
    "SID",
    "AID",
]
