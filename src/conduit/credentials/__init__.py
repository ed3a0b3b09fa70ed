"""Credentials module - in-memory secret store, placeholders and redaction."""

from conduit.credentials.application.credential_store import CredentialStore
from conduit.credentials.application.redactor import Redactor
from conduit.credentials.domain.enums import CredentialKind
from conduit.credentials.domain.models import Credential

__all__ = ["Credential", "CredentialKind", "CredentialStore", "Redactor"]
