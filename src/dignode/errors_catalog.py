"""Actionable error catalog for dig-node-setup."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "not_root": {
        "what": "This tool must be run as root.",
        "next": "Re-run it with `sudo dig-node-setup`.",
    },
    "missing_software": {
        "what": "Required software is missing: {tools}.",
        "next": "Install the missing software using the commands above and rerun the setup.",
    },
    "missing_ca": {
        "what": "CA certificate or key not found in {ca_dir}.",
        "next": "Place chia_ca.crt and chia_ca.key in {ca_dir} before enabling the reverse proxy.",
    },
    "docker_group_declined": {
        "what": "User {user} must be in the docker group to proceed.",
        "next": "Run `usermod -aG docker {user}` or accept the prompt on the next run.",
    },
    "docker_group_failed": {
        "what": "Failed to add {user} to the docker group.",
        "next": "Check that the docker group exists (`getent group docker`) and retry.",
    },
    "random_unavailable": {
        "what": "A cryptographically secure random source is not available.",
        "next": "Run the setup on a host that provides /dev/urandom.",
    },
    "certificate_issuance_failed": {
        "what": "Failed to obtain an SSL certificate for {hostname}.",
        "next": "Check DNS, make sure ports 80 and 443 are reachable, and try again.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
