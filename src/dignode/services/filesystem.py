"""Filesystem helpers for dig-node-setup."""

import logging
import os
import shutil

from rich.console import Console

from dignode.constants import DIR_MODE, FILE_MODE
from dignode.errors import ProvisioningError


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def ensure_dir(self, path: str, mode: int = DIR_MODE):
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as exc:
            raise ProvisioningError(f"Could not create directory {path}: {exc}") from exc
        self.set_permissions(path, mode)

    def write_text(self, path: str, content: str, mode: int = FILE_MODE):
        """Writes (overwrites) a generated file with Unix line endings."""
        parent = os.path.dirname(path)
        if parent:
            self.ensure_dir(parent)
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
        except OSError as exc:
            raise ProvisioningError(f"Could not write {path}: {exc}") from exc
        self.set_permissions(path, mode)
        self.logger.debug("Wrote %s", path)

    def write_bytes(self, path: str, content: bytes, mode: int = FILE_MODE):
        parent = os.path.dirname(path)
        if parent:
            self.ensure_dir(parent)
        try:
            with open(path, "wb") as file_obj:
                file_obj.write(content)
        except OSError as exc:
            raise ProvisioningError(f"Could not write {path}: {exc}") from exc
        self.set_permissions(path, mode)
        self.logger.debug("Wrote %s", path)

    def copy_file(self, source: str, destination: str, mode: int = FILE_MODE):
        try:
            shutil.copyfile(source, destination)
        except OSError as exc:
            raise ProvisioningError(f"Could not copy {source} to {destination}: {exc}") from exc
        self.set_permissions(destination, mode)
        self.logger.debug("Copied %s -> %s", source, destination)
