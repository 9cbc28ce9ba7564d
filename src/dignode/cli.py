import logging
import os

import click
from rich.logging import RichHandler

from .constants import DEFAULT_IMAGE_TAG
from .core import NodeProvisioner, ProvisioningError
from .services.config_loader import ConfigLoader
from .services.validation import ValidationService

DEFAULT_CONFIG_FILE = ".dignode.yml"


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option(
    "--working-dir",
    required=False,
    type=click.Path(file_okay=False),
    help="Directory receiving docker-compose.yml and used by the systemd unit (default: current directory).",
)
@click.option(
    "--ca-dir",
    required=False,
    type=click.Path(file_okay=False),
    help="Directory holding chia_ca.crt and chia_ca.key (default: ./ssl/ca).",
)
@click.option(
    "--image-tag",
    required=False,
    help=f"Tag of the DIG service images (default: {DEFAULT_IMAGE_TAG}).",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(config, working_dir, ca_dir, image_tag, verbose, log_file):
    """Provision this host as a DIG Node."""
    logger = logging.getLogger("dignode")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except ProvisioningError as exc:
        raise click.ClickException(str(exc)) from exc

    working_dir = _resolve_option(working_dir, config_values, "working_dir")
    ca_dir = _resolve_option(ca_dir, config_values, "ca_dir")
    try:
        image_tag = ValidationService().ensure_image_tag(
            str(_resolve_option(image_tag, config_values, "image_tag", default=DEFAULT_IMAGE_TAG))
        )
    except ProvisioningError as exc:
        raise click.ClickException(str(exc)) from exc
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    provisioner = NodeProvisioner(
        working_dir=working_dir,
        ca_dir=ca_dir,
        image_tag=image_tag,
    )

    raise SystemExit(provisioner.run())


if __name__ == "__main__":
    main()
