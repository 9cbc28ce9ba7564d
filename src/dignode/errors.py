"""Domain errors for dig-node-setup."""


class ProvisioningError(RuntimeError):
    """Raised when provisioning cannot continue safely."""


class PreconditionError(ProvisioningError):
    """Raised when the host does not meet a fatal precondition."""
