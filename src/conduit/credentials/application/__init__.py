"""Credential application layer - store, placeholder expansion and redaction."""

from .credential_store import CredentialStore
from .placeholders import expand_placeholders, find_references
from .redactor import Redactor

__all__ = ["CredentialStore", "Redactor", "expand_placeholders", "find_references"]
