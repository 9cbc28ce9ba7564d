"""Subprocess execution service for dig-node-setup."""

import subprocess
from typing import List, Optional

from dignode.errors import ProvisioningError


class CommandRunner:
    """Runs host commands (systemctl, firewall-cmd, certbot, compose) with consistent error handling."""

    def __init__(self, logger, default_timeout: Optional[float] = None):
        self.logger = logger
        self.default_timeout = default_timeout

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        timeout: Optional[float] = None,
        input_text: Optional[str] = None,
        cwd: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                timeout=effective_timeout,
                input=input_text,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            raise ProvisioningError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ProvisioningError(
                f"Command timed out after {effective_timeout}s: {cmd_str}"
            ) from exc
        except OSError as exc:
            raise ProvisioningError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise ProvisioningError(message)

        self.logger.debug(message)
        return result

    def succeeds(self, cmd: List[str], cwd: Optional[str] = None) -> bool:
        """Runs a probe command and reports whether it exited with status 0."""
        try:
            result = self.run(cmd, check=False, capture_output=True, cwd=cwd)
        except ProvisioningError:
            return False
        return result.returncode == 0
