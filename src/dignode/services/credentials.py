"""Credential generation for the DIG services."""

import secrets

from dignode.errors import ProvisioningError
from dignode.errors_catalog import actionable_error
from dignode.models import CredentialPair

USERNAME_BYTES = 16
PASSWORD_BYTES = 32


def generate_credentials() -> CredentialPair:
    """Returns a fresh username (128 bits) and password (256 bits) as hex tokens."""
    try:
        username = secrets.token_hex(USERNAME_BYTES)
        password = secrets.token_hex(PASSWORD_BYTES)
    except NotImplementedError as exc:
        raise ProvisioningError(actionable_error("random_unavailable")) from exc
    return CredentialPair(username=username, password=password)
