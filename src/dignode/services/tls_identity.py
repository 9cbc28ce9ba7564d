"""Client TLS identity used by nginx to authenticate to the content service."""

import os
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from dignode.constants import (
    CLIENT_CERT_VALIDITY_DAYS,
    CLIENT_COMMON_NAME,
    CLIENT_KEY_SIZE,
    SECRET_FILE_MODE,
)
from dignode.errors import PreconditionError, ProvisioningError
from dignode.errors_catalog import actionable_error
from dignode.models import NodePaths, TLSClientIdentity


class TLSIdentityService:
    """Creates a client key and certificate signed by the operator-supplied CA."""

    def __init__(self, logger, console, filesystem_service):
        self.logger = logger
        self.console = console
        self.filesystem_service = filesystem_service

    def ensure_ca_present(self, paths: NodePaths):
        if not os.path.isfile(paths.ca_cert) or not os.path.isfile(paths.ca_key):
            raise PreconditionError(actionable_error("missing_ca", ca_dir=paths.ca_dir))

    def _load_ca(self, paths: NodePaths):
        try:
            with open(paths.ca_cert, "rb") as file_obj:
                ca_cert = x509.load_pem_x509_certificate(file_obj.read())
            with open(paths.ca_key, "rb") as file_obj:
                ca_key = serialization.load_pem_private_key(file_obj.read(), password=None)
        except (OSError, ValueError, TypeError) as exc:
            raise ProvisioningError(f"Could not load CA material from {paths.ca_dir}: {exc}") from exc
        return ca_cert, ca_key

    def create_client_identity(self, paths: NodePaths) -> TLSClientIdentity:
        self.ensure_ca_present(paths)
        self.console.print("\n[blue]Generating TLS client certificate and key for Nginx...[/blue]")

        ca_cert, ca_key = self._load_ca(paths)
        identity = TLSClientIdentity.in_directory(paths.nginx_certs_dir)

        client_key = rsa.generate_private_key(public_exponent=65537, key_size=CLIENT_KEY_SIZE)
        csr = (
            x509.CertificateSigningRequestBuilder()
            .subject_name(x509.Name([x509.NameAttribute(x509.NameOID.COMMON_NAME, CLIENT_COMMON_NAME)]))
            .sign(client_key, hashes.SHA256())
        )
        cert = self._sign(csr, ca_cert, ca_key)

        key_pem = client_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
        self.filesystem_service.write_bytes(identity.key_path, key_pem, mode=SECRET_FILE_MODE)
        self.filesystem_service.write_bytes(
            identity.cert_path,
            cert.public_bytes(serialization.Encoding.PEM),
        )
        self.filesystem_service.copy_file(paths.ca_cert, identity.ca_bundle_path)

        self.logger.info("Client certificate %s signed by %s", identity.cert_path, paths.ca_cert)
        self.console.print("[green]TLS client certificate and key generated.[/green]")
        return identity

    @staticmethod
    def _sign(csr: x509.CertificateSigningRequest, ca_cert: x509.Certificate, ca_key) -> x509.Certificate:
        now = datetime.now(timezone.utc)
        return (
            x509.CertificateBuilder()
            .subject_name(csr.subject)
            .issuer_name(ca_cert.subject)
            .public_key(csr.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(now + timedelta(days=CLIENT_CERT_VALIDITY_DAYS))
            .sign(ca_key, hashes.SHA256())
        )
