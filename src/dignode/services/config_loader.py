"""Configuration loader for dig-node-setup."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from dignode.errors import ProvisioningError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults.

    The file only carries tool settings; operator decisions are always
    collected interactively.
    """

    KEY_TYPES = {
        "verbose": (bool,),
        "log_file": (str,),
        "working_dir": (str,),
        "ca_dir": (str,),
        "image_tag": (str, int, float),
    }

    @property
    def supported_keys(self):
        return set(self.KEY_TYPES)

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.is_file():
            raise ProvisioningError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ProvisioningError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ProvisioningError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(str(key) for key in set(parsed.keys()) - self.supported_keys)
        if unknown:
            raise ProvisioningError(f"Unknown configuration keys: {', '.join(unknown)}")

        for key, value in parsed.items():
            # An unquoted tag such as 1.2 parses as a number.
            if value is not None and not isinstance(value, self.KEY_TYPES[key]):
                raise ProvisioningError(
                    f"Configuration key '{key}' has an invalid value: {value!r}"
                )

        return {key: value for key, value in parsed.items() if value is not None}
