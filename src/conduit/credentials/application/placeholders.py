"""
Credential placeholders in environment values.

Syntax::

    ${credentials.<id>}            token / secret text, or "user:password"
    ${credentials.<id>.<field>}    username | password for pairs

Placeholders are only expanded in environment values, never in command
text, so secrets do not show up in argv or command displays.
"""

import re
from typing import Dict, Mapping, Set

from conduit.credentials.domain.models import Credential
from conduit.shared.domain.exceptions import PlaceholderError

PLACEHOLDER_PATTERN = re.compile(
    r"\$\{credentials\.(?P<identifier>[A-Za-z0-9_\-]+)(?:\.(?P<field>[A-Za-z_]+))?\}"
)


def find_references(value: str) -> Set[str]:
    """Credential identifiers referenced by placeholders in ``value``."""
    return {m.group("identifier") for m in PLACEHOLDER_PATTERN.finditer(value)}


def contains_placeholder(value: str) -> bool:
    return PLACEHOLDER_PATTERN.search(value) is not None


def expand_placeholders(value: str, resolved: Mapping[str, Credential]) -> str:
    """
    Substitute placeholders in ``value`` from already-resolved credentials.

    Raises:
        PlaceholderError: If a placeholder references an identifier not in
            ``resolved`` or a field the credential kind does not have
    """

    def _replace(match: "re.Match[str]") -> str:
        identifier = match.group("identifier")
        field = match.group("field")
        credential = resolved.get(identifier)
        if credential is None:
            raise PlaceholderError(
                f"Placeholder references undeclared credential: {identifier}",
                {"identifier": identifier},
            )
        try:
            return credential.field_value(field)
        except KeyError:
            raise PlaceholderError(
                f"Credential {identifier!r} of kind {credential.kind.value} has no field {field!r}",
                {"identifier": identifier, "field": field},
            ) from None

    return PLACEHOLDER_PATTERN.sub(_replace, value)


def expand_environment(
    environment: Mapping[str, str],
    resolved: Mapping[str, Credential],
) -> Dict[str, str]:
    """Expand placeholders in every value of an environment mapping."""
    return {key: expand_placeholders(value, resolved) for key, value in environment.items()}
