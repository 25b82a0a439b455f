"""
SessionTokens: les quatre identifiants de session (UID, CID, SID, AID) en une seule valeur.

Invariant: UID, CID et SID sont soit tous présents, soit tous absents.
AID est indépendant et ne prouve jamais à lui seul une authentification.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .store import CookieOptions, CredentialStore

UID = "UID"
CID = "CID"
SID = "SID"
AID = "AID"
TOKEN_NAMES = (UID, CID, SID, AID)


class PartialSessionError(ValueError):
    """Triplet UID/CID/SID incomplet."""


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value)
    return value if value != "" else None


@dataclass(frozen=True)
class SessionTokens:
    uid: Optional[str] = None
    cid: Optional[str] = None
    sid: Optional[str] = None
    aid: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.uid and self.cid and self.sid)

    @property
    def is_empty(self) -> bool:
        return not (self.uid or self.cid or self.sid)

    @property
    def is_clean(self) -> bool:
        return self.is_complete or self.is_empty

    def check_invariant(self) -> "SessionTokens":
        if not self.is_clean:
            missing = [n for n, v in ((UID, self.uid), (CID, self.cid), (SID, self.sid)) if not v]
            raise PartialSessionError(f"Session partielle, manquant: {', '.join(missing)}")
        return self

    def as_dict(self) -> dict:
        return {UID: self.uid, CID: self.cid, SID: self.sid, AID: self.aid}

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "SessionTokens":
        """Extrait les en-têtes uid/cid/sid/aid (insensible à la casse, vide = absent)."""
        lowered = {str(k).lower(): v for k, v in (headers or {}).items()}
        return cls(
            uid=_clean(lowered.get("uid")),
            cid=_clean(lowered.get("cid")),
            sid=_clean(lowered.get("sid")),
            aid=_clean(lowered.get("aid")),
        )

    @classmethod
    def load(cls, store: CredentialStore) -> "SessionTokens":
        return cls(
            uid=_clean(store.get(UID)),
            cid=_clean(store.get(CID)),
            sid=_clean(store.get(SID)),
            aid=_clean(store.get(AID)),
        )

    def write(self, store: CredentialStore, options: Optional[CookieOptions] = None) -> None:
        """Écrit uniquement les valeurs présentes; les autres entrées restent intactes."""
        for name, value in self.as_dict().items():
            if value:
                store.set(name, value, options)

    @staticmethod
    def clear(store: CredentialStore) -> None:
        # Toujours les quatre, même si certains n'ont jamais été posés
        for name in TOKEN_NAMES:
            store.clear(name)
