"""
In-memory Credential Store.

Populated by the host (CLI or an external secret manager) before a run,
then read concurrently by pipeline runs. Single writer / multiple readers:
no locking is done here, the host must not register while runs resolve.
"""

from typing import Dict, Iterable, List, Tuple

from conduit.credentials.application.redactor import DEFAULT_MASK, Redactor
from conduit.credentials.domain.models import Credential
from conduit.shared.domain.exceptions import CredentialNotFound, DuplicateIdentifier
from conduit.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CredentialStore:
    """Identifier -> Credential lookup table; never persisted."""

    def __init__(self, credentials: Iterable[Credential] = (), mask: str = DEFAULT_MASK):
        self._credentials: Dict[str, Credential] = {}
        self.mask = mask
        for credential in credentials:
            self.register(credential)

    def register(self, credential: Credential) -> None:
        """
        Add a credential.

        Raises:
            DuplicateIdentifier: If the identifier is already registered
        """
        if credential.identifier in self._credentials:
            raise DuplicateIdentifier(credential.identifier)
        self._credentials[credential.identifier] = credential
        logger.debug("credential_registered", identifier=credential.identifier, kind=credential.kind.value)

    def resolve(self, identifier: str) -> Credential:
        """
        Look up a credential by identifier.

        Raises:
            CredentialNotFound: If nothing was registered under ``identifier``
        """
        try:
            return self._credentials[identifier]
        except KeyError:
            logger.warning("credential_not_found", identifier=identifier)
            raise CredentialNotFound(identifier) from None

    def identifiers(self) -> List[str]:
        return sorted(self._credentials)

    def secret_values(self) -> Tuple[str, ...]:
        return tuple(v for c in self._credentials.values() for v in c.secret_values())

    def redactor(self) -> Redactor:
        """Redactor masking every secret registered so far."""
        return Redactor(self.secret_values(), mask=self.mask)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._credentials

    def __len__(self) -> int:
        return len(self._credentials)

    def __repr__(self) -> str:
        return f"CredentialStore(identifiers={self.identifiers()!r})"
