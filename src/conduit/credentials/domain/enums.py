"""Credential domain enums."""

from enum import Enum


class CredentialKind(Enum):
    """Shape of the secret payload a credential carries."""

    USERNAME_PASSWORD = "username_password"
    TOKEN = "token"
    SECRET_TEXT = "secret_text"
