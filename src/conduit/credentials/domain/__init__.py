"""Credential domain package."""

from conduit.credentials.domain.enums import CredentialKind
from conduit.credentials.domain.models import Credential

__all__ = ["Credential", "CredentialKind"]
