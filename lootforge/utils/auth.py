"""Admin credentials for configuration changes.

Holding an `AdminCredential` is what authorizes a weight update. Credentials
can only be minted by an `Authority`, and each authority only accepts the
credentials it issued itself, so a credential cannot be forged or carried
over from another game.
"""
from __future__ import annotations

import hmac
import secrets
import threading
from typing import Any, Dict

from lootforge.utils.errors import NotAuthorized

_MINT = object()


class AdminCredential:
    """Opaque capability. Construct through `Authority.issue` only."""

    __slots__ = ("_authority_id", "_secret")

    def __init__(self, authority_id: str, secret: str, *, _mint: Any = None):
        if _mint is not _MINT:
            raise TypeError("AdminCredential must be issued by an Authority")
        self._authority_id = authority_id
        self._secret = secret

    def __repr__(self) -> str:
        return "<AdminCredential>"


class Authority:
    """Issues and verifies admin credentials for one game."""

    def __init__(self) -> None:
        self.authority_id = secrets.token_hex(8)
        self._issued: Dict[str, bool] = {}
        self._lock = threading.Lock()

    def issue(self) -> AdminCredential:
        secret = secrets.token_hex(32)
        with self._lock:
            self._issued[secret] = True
        return AdminCredential(self.authority_id, secret, _mint=_MINT)

    def is_valid(self, credential: Any) -> bool:
        if not isinstance(credential, AdminCredential):
            return False
        if not hmac.compare_digest(credential._authority_id, self.authority_id):
            return False
        return self._issued.get(credential._secret, False)

    def verify(self, credential: Any) -> None:
        """Raise NotAuthorized unless `credential` was issued here."""
        if not self.is_valid(credential):
            raise NotAuthorized()

    def revoke(self, credential: AdminCredential) -> None:
        with self._lock:
            self._issued.pop(credential._secret, None)
