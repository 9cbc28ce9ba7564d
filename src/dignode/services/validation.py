"""Validation helpers for values embedded in generated configuration."""

import re

from dignode.errors import ProvisioningError


class ValidationService:
    """Validates operator input before it reaches compose, nginx or certbot."""

    HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
    EMAIL_LOCAL_PART = re.compile(r"^[A-Za-z0-9._%+-]{1,64}$")
    ADDRESS_TOKEN = re.compile(r"^[A-Za-z0-9._:\[\]-]{1,253}$")
    IMAGE_TAG = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")
    MAX_HOSTNAME_LENGTH = 253

    def is_valid_hostname(self, value: str) -> bool:
        if not value or len(value) > self.MAX_HOSTNAME_LENGTH:
            return False
        return all(self.HOSTNAME_LABEL.fullmatch(label) for label in value.split("."))

    def ensure_hostname(self, value: str) -> str:
        hostname = value.strip().lower()
        if not self.is_valid_hostname(hostname):
            raise ProvisioningError(
                f"Invalid hostname '{value}'. Use a DNS name such as example.com."
            )
        return hostname

    def ensure_email(self, value: str) -> str:
        email = value.strip()
        local_part, separator, domain = email.partition("@")
        if (
            not separator
            or not self.EMAIL_LOCAL_PART.fullmatch(local_part)
            or "." not in domain
            or not self.is_valid_hostname(domain)
        ):
            raise ProvisioningError(f"Invalid email address '{value}'.")
        return email

    def ensure_address_token(self, value: str, label: str) -> str:
        """Accepts an IP address or host name used as a service environment value."""
        token = value.strip()
        if not self.ADDRESS_TOKEN.fullmatch(token):
            raise ProvisioningError(
                f"Invalid {label} '{value}'. Use an IP address or host name without spaces."
            )
        return token

    def ensure_positive_int(self, value: str, label: str) -> int:
        text = value.strip()
        if not text.isdigit() or int(text) <= 0:
            raise ProvisioningError(f"{label} must be a positive whole number of bytes.")
        return int(text)

    def ensure_image_tag(self, value: str) -> str:
        tag = value.strip()
        if not self.IMAGE_TAG.fullmatch(tag):
            raise ProvisioningError(
                f"Invalid image tag '{value}'. Use letters, digits, '_', '.' or '-' (at most 128 characters)."
            )
        return tag
