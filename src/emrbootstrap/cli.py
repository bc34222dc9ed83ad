import logging
import os
import shlex

import click
from rich.logging import RichHandler

from .constants import DEFAULT_CONFIG_FILE, DEFAULT_DATA_PATH, DEFAULT_MODULES_PATH, DEFAULT_MYSQL_CLIENT
from .core import Bootstrapper, BootstrapError
from .models import RemoteEndpoint
from .services.config_loader import ConfigLoader


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
@click.option("--remote-url", required=False, help="Base URL of the remote resource provider")
@click.option("--username", required=False, help="Username on the remote resource provider")
@click.option("--password", required=False, help="Password on the remote resource provider")
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option(
    "--module-repository",
    required=False,
    type=click.Path(file_okay=False),
    help="Directory the platform scans for .omod modules.",
)
@click.option("--db-host", required=False, help="Database server host")
@click.option("--db-port", required=False, type=int, default=None, help="Database server port")
@click.option("--db-name", required=False, help="Database to load the test data into")
@click.option("--db-user", required=False, help="Database user")
@click.option("--db-password", required=False, help="Database password")
@click.option(
    "--modules-path",
    required=False,
    help=f"Path of the module bundle on the remote (default: {DEFAULT_MODULES_PATH}).",
)
@click.option(
    "--data-path",
    required=False,
    help=f"Path of the SQL dump on the remote (default: {DEFAULT_DATA_PATH}).",
)
@click.option(
    "--mysql-client",
    required=False,
    help=f"Database client command (default: {DEFAULT_MYSQL_CLIENT}).",
)
@click.option(
    "--case-insensitive-suffix",
    is_flag=True,
    default=None,
    help="Accept module files ending in .OMOD or any other casing.",
)
@click.option("--skip-modules", is_flag=True, default=None, help="Do not provision modules.")
@click.option("--skip-data", is_flag=True, default=None, help="Do not load test data.")
@click.option(
    "--command-timeout",
    required=False,
    type=float,
    default=None,
    help="Timeout in seconds for the database client. Waits indefinitely by default.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    remote_url,
    username,
    password,
    config,
    module_repository,
    db_host,
    db_port,
    db_name,
    db_user,
    db_password,
    modules_path,
    data_path,
    mysql_client,
    case_insensitive_suffix,
    skip_modules,
    skip_data,
    command_timeout,
    verbose,
    log_file,
):
    """Provision test modules and test data for a fresh EMR installation."""
    logger = logging.getLogger("emrbootstrap")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except BootstrapError as exc:
        raise click.ClickException(str(exc)) from exc

    remote_url = _resolve_option(remote_url, config_values, "remote_url")
    username = _resolve_option(username, config_values, "username")
    password = _resolve_option(password, config_values, "password")
    module_repository = _resolve_option(module_repository, config_values, "module_repository")
    db_host = _resolve_option(db_host, config_values, "db_host")
    db_port = _resolve_option(db_port, config_values, "db_port")
    db_name = _resolve_option(db_name, config_values, "db_name")
    db_user = _resolve_option(db_user, config_values, "db_user")
    db_password = _resolve_option(db_password, config_values, "db_password")
    modules_path = _resolve_option(
        modules_path, config_values, "modules_path", default=DEFAULT_MODULES_PATH
    )
    data_path = _resolve_option(data_path, config_values, "data_path", default=DEFAULT_DATA_PATH)
    mysql_client = str(
        _resolve_option(mysql_client, config_values, "mysql_client", default=DEFAULT_MYSQL_CLIENT)
    )
    case_insensitive_suffix = bool(
        _resolve_option(
            case_insensitive_suffix,
            config_values,
            "case_insensitive_suffix",
            default=False,
        )
    )
    skip_modules = bool(_resolve_option(skip_modules, config_values, "skip_modules", default=False))
    skip_data = bool(_resolve_option(skip_data, config_values, "skip_data", default=False))
    command_timeout = _resolve_option(command_timeout, config_values, "command_timeout")
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    for option, value in (
        ("--remote-url", remote_url),
        ("--username", username),
        ("--password", password),
        ("--module-repository", module_repository),
    ):
        if not value:
            raise click.ClickException(
                f"Missing required option '{option}' (or provide it in config)."
            )

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

    try:
        bootstrapper = Bootstrapper(
            remote=RemoteEndpoint(url=remote_url, username=username, password=password),
            module_repository=module_repository,
            db_host=db_host,
            db_port=int(db_port) if db_port is not None else None,
            db_name=db_name,
            db_user=db_user,
            db_password=db_password,
            modules_path=modules_path,
            data_path=data_path,
            mysql_client=shlex.split(mysql_client),
            case_insensitive_suffix=case_insensitive_suffix,
            skip_modules=skip_modules,
            skip_data=skip_data,
            command_timeout=float(command_timeout) if command_timeout is not None else None,
        )
    except BootstrapError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(bootstrapper.run())


if __name__ == "__main__":
    main()
