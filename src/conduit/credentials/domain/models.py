"""
Credential domain models.

A Credential is secret material referenced by identifier. The payload
fields are declared with ``repr=False`` so they never appear in reprs,
log events or serialized records.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from conduit.credentials.domain.enums import CredentialKind
from conduit.shared.domain.base_model import BaseDomainModel


@dataclass(frozen=True)
class Credential(BaseDomainModel):
    """Immutable secret keyed by identifier."""

    identifier: str
    kind: CredentialKind
    username: Optional[str] = field(default=None, repr=False)
    password: Optional[str] = field(default=None, repr=False)
    secret: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.identifier or not self.identifier.strip():
            raise ValueError("Credential identifier must be non-empty")
        if self.kind is CredentialKind.USERNAME_PASSWORD:
            if self.username is None or self.password is None:
                raise ValueError(f"Credential {self.identifier!r} needs username and password")
        elif self.secret is None:
            raise ValueError(f"Credential {self.identifier!r} needs a secret")

    @classmethod
    def username_password(cls, identifier: str, username: str, password: str) -> "Credential":
        return cls(identifier, CredentialKind.USERNAME_PASSWORD, username=username, password=password)

    @classmethod
    def token(cls, identifier: str, token: str) -> "Credential":
        return cls(identifier, CredentialKind.TOKEN, secret=token)

    @classmethod
    def secret_text(cls, identifier: str, text: str) -> "Credential":
        return cls(identifier, CredentialKind.SECRET_TEXT, secret=text)

    def field_value(self, name: Optional[str] = None) -> str:
        """
        Value bound to a placeholder.

        Without a field name a username/password pair yields
        ``username:password``; token and secret text yield the secret.

        Raises:
            KeyError: If the field does not exist for this kind
        """
        if self.kind is CredentialKind.USERNAME_PASSWORD:
            if name is None:
                return f"{self.username}:{self.password}"
            if name == "username":
                return self.username  # type: ignore[return-value]
            if name == "password":
                return self.password  # type: ignore[return-value]
            raise KeyError(name)

        if name in (None, "secret", "token", "value"):
            return self.secret  # type: ignore[return-value]
        raise KeyError(name)

    def secret_values(self) -> Tuple[str, ...]:
        """All values that must be masked wherever they appear."""
        if self.kind is CredentialKind.USERNAME_PASSWORD:
            values = (self.password, self.username, self.field_value())
        else:
            values = (self.secret,)
        return tuple(v for v in values if v)
