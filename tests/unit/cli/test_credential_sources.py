"""Tests for building a CredentialStore from --credential specs."""

import pytest

from conduit.cli.helpers.credential_sources import build_credential_store, parse_credential_spec
from conduit.credentials.domain.enums import CredentialKind
from conduit.shared.domain.exceptions import ConfigurationError, DuplicateIdentifier

ENVIRON = {"GH_TOKEN": "ghp_live", "HUB_USER": "acme-bot", "HUB_PASS": "hub-pa55"}


def test_token_spec():
    credential = parse_credential_spec("github=GH_TOKEN", ENVIRON)

    assert credential.identifier == "github"
    assert credential.kind is CredentialKind.TOKEN
    assert credential.field_value() == "ghp_live"


def test_username_password_spec():
    credential = parse_credential_spec("dockerhub=HUB_USER:HUB_PASS", ENVIRON)

    assert credential.kind is CredentialKind.USERNAME_PASSWORD
    assert credential.field_value("username") == "acme-bot"
    assert credential.field_value("password") == "hub-pa55"


@pytest.mark.parametrize("spec", ["github", "=GH_TOKEN", "github=", "dockerhub=HUB_USER:"])
def test_malformed_spec(spec):
    with pytest.raises(ConfigurationError):
        parse_credential_spec(spec, ENVIRON)


def test_unset_variable_names_variable_not_value():
    with pytest.raises(ConfigurationError, match="MISSING_VAR") as exc_info:
        parse_credential_spec("github=MISSING_VAR", ENVIRON)

    assert exc_info.value.context["identifier"] == "github"


def test_build_store():
    store = build_credential_store(["github=GH_TOKEN", "dockerhub=HUB_USER:HUB_PASS"], ENVIRON, mask="###")

    assert store.identifiers() == ["dockerhub", "github"]
    assert store.redactor().redact("ghp_live") == "###"


def test_build_store_duplicate():
    with pytest.raises(DuplicateIdentifier):
        build_credential_store(["github=GH_TOKEN", "github=HUB_PASS"], ENVIRON)
