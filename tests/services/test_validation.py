import pytest

from dignode.errors import ProvisioningError
from dignode.services.validation import ValidationService


@pytest.mark.parametrize("hostname", ["example.com", "node-1.dig.example.org", "localhost"])
def test_valid_hostnames(hostname):
    assert ValidationService().ensure_hostname(hostname) == hostname


@pytest.mark.parametrize("hostname", ["", "exa mple.com", "example.com;", "-a.com", "a-.com", "a" * 64 + ".com"])
def test_invalid_hostnames(hostname):
    with pytest.raises(ProvisioningError, match="Invalid hostname"):
        ValidationService().ensure_hostname(hostname)


def test_email_validation():
    service = ValidationService()

    assert service.ensure_email(" ops@example.com ") == "ops@example.com"
    for value in ["ops", "ops@localhost", "ops@example.com --staging", "a b@example.com"]:
        with pytest.raises(ProvisioningError, match="Invalid email"):
            service.ensure_email(value)


def test_address_token_accepts_ips_and_rejects_spaces():
    service = ValidationService()

    assert service.ensure_address_token("203.0.113.9", "PUBLIC_IP") == "203.0.113.9"
    assert service.ensure_address_token("2001:db8::1", "PUBLIC_IP") == "2001:db8::1"
    with pytest.raises(ProvisioningError, match="Invalid PUBLIC_IP"):
        service.ensure_address_token("1.2.3.4\nEVIL=1", "PUBLIC_IP")


def test_positive_int():
    service = ValidationService()

    assert service.ensure_positive_int("2048", "DISK_SPACE_LIMIT_BYTES") == 2048
    for value in ["0", "-5", "1TB", ""]:
        with pytest.raises(ProvisioningError, match="positive whole number"):
            service.ensure_positive_int(value, "DISK_SPACE_LIMIT_BYTES")


def test_image_tag():
    service = ValidationService()

    assert service.ensure_image_tag("latest-alpha") == "latest-alpha"
    assert service.ensure_image_tag(" v1.2.3_rc1 ") == "v1.2.3_rc1"
    for tag in ("", "-latest", "latest alpha", "tag:1", "a" * 129):
        with pytest.raises(ProvisioningError, match="Invalid image tag"):
            service.ensure_image_tag(tag)
