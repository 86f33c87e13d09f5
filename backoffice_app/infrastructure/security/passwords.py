# caminho: backoffice_app/infrastructure/security/passwords.py
# Funções:
# - PasswordHasher: hash bcrypt (custo fixo) e verificação que nunca levanta exceção

from __future__ import annotations

from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError
from pwdlib.hashers.bcrypt import BcryptHasher

from backoffice_app.config.constants import PASSWORD_BYTES_MAX


class PasswordHasher:
    def __init__(self, rounds: int = 10) -> None:
        self._hash = PasswordHash((BcryptHasher(rounds=rounds),))

    def hash(self, plaintext: str) -> str:
        # O bcrypt só considera 72 bytes; acima disso recusamos em vez de truncar.
        if len(plaintext.encode('utf-8')) > PASSWORD_BYTES_MAX:
            raise ValueError(f'password cannot be longer than {PASSWORD_BYTES_MAX} bytes')
        return self._hash.hash(plaintext)

    def verify(self, stored_hash: str, candidate: str) -> bool:
        if not stored_hash:
            return False
        try:
            return self._hash.verify(candidate, stored_hash)
        except (UnknownHashError, ValueError):
            # Hash corrompido ou de outro algoritmo: trata como senha incorreta.
            return False
