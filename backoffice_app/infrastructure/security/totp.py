# caminho: backoffice_app/infrastructure/security/totp.py
# Funções:
# - TotpVerifier: valida códigos TOTP (RFC 6238) do autenticador do administrador

from __future__ import annotations

import binascii

import pyotp


class TotpVerifier:
    # Passo padrão dos autenticadores (Google Authenticator e afins)
    step_seconds = 30

    def __init__(self, valid_window: int = 1, issuer_name: str = 'backoffice') -> None:
        self._valid_window = valid_window
        self._issuer_name = issuer_name

    def verify(self, secret: str | None, code: str) -> bool:
        if not secret or not code:
            return False
        try:
            return pyotp.TOTP(secret).verify(code.strip(), valid_window=self._valid_window)
        except (binascii.Error, ValueError):
            return False

    def provisioning_uri(self, secret: str, username: str) -> str:
        return pyotp.TOTP(secret).provisioning_uri(name=username, issuer_name=self._issuer_name)

    @staticmethod
    def new_secret() -> str:
        return pyotp.random_base32()
