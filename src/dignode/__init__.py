"""
dig-node-setup - DIG Node host provisioning tool
"""

__version__ = "0.1.0"

from .core import NodeProvisioner, ProvisioningError

__all__ = ["NodeProvisioner", "ProvisioningError"]
