"""
Populate a CredentialStore from environment variables.

Spec formats accepted by ``--credential``:

    ID=VAR                  token whose value is $VAR
    ID=USER_VAR:PASS_VAR    username/password pair from two variables
"""

import os
from typing import Iterable, Mapping, Optional

from conduit.credentials.application.credential_store import CredentialStore
from conduit.credentials.domain.models import Credential
from conduit.shared.domain.exceptions import ConfigurationError


def parse_credential_spec(spec: str, environ: Mapping[str, str]) -> Credential:
    """
    Build one credential from a ``--credential`` spec.

    Raises:
        ConfigurationError: If the spec is malformed or a variable is unset
    """
    identifier, sep, source = spec.partition("=")
    identifier, source = identifier.strip(), source.strip()
    if not sep or not identifier or not source:
        raise ConfigurationError(f"Invalid credential spec {spec!r}; expected ID=VAR or ID=USER_VAR:PASS_VAR")

    def _read(name: str) -> str:
        name = name.strip()
        if not name:
            raise ConfigurationError(f"Invalid credential spec {spec!r}: empty variable name")
        if name not in environ:
            raise ConfigurationError(
                f"Environment variable {name!r} for credential {identifier!r} is not set",
                {"identifier": identifier, "variable": name},
            )
        return environ[name]

    if ":" in source:
        user_var, _, pass_var = source.partition(":")
        return Credential.username_password(identifier, _read(user_var), _read(pass_var))
    return Credential.token(identifier, _read(source))


def build_credential_store(
    specs: Iterable[str],
    environ: Optional[Mapping[str, str]] = None,
    mask: str = "****",
) -> CredentialStore:
    """
    Raises:
        ConfigurationError: For malformed specs or unset variables
        DuplicateIdentifier: If two specs use the same identifier
    """
    environ = os.environ if environ is None else environ
    store = CredentialStore(mask=mask)
    for spec in specs:
        store.register(parse_credential_spec(spec, environ))
    return store
