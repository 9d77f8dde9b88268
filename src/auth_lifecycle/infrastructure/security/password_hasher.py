"""Bcrypt password hasher adapter."""

from __future__ import annotations

import re

import bcrypt

from auth_lifecycle.application.ports.password_hasher_port import PasswordHasherPort
from auth_lifecycle.domain.auth.credentials import PASSWORD_MAX_BYTES
from auth_lifecycle.domain.auth.errors import CredentialFormatError

DEFAULT_BCRYPT_ROUNDS = 10
_BCRYPT_HASH_PATTERN = re.compile(r"^\$2[abxy]\$\d{2}\$[./A-Za-z0-9]{53}$")


class BcryptPasswordHasher(PasswordHasherPort):
    """Password hashing adapter using bcrypt."""

    def __init__(self, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        if not password:
            raise ValueError("password cannot be empty")
        encoded = password.encode("utf-8")
        if len(encoded) > PASSWORD_MAX_BYTES:
            raise ValueError(f"password cannot exceed {PASSWORD_MAX_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        if _BCRYPT_HASH_PATTERN.match(password_hash) is None:
            raise CredentialFormatError()

        encoded = password.encode("utf-8")
        if len(encoded) > PASSWORD_MAX_BYTES:
            # Nothing this hasher produced can match an over-long plaintext.
            return False

        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except ValueError as exc:
            raise CredentialFormatError() from exc
