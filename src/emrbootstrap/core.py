import logging
import os
import shutil
import tempfile
from typing import Optional, Sequence

import requests
from rich.console import Console

from .constants import (
    DEFAULT_DATA_PATH,
    DEFAULT_MODULES_PATH,
    DEFAULT_MYSQL_CLIENT,
    DUMP_TEMP_PREFIX,
    DUMP_TEMP_SUFFIX,
)
from .errors import AuthFailure, BootstrapError, RemoteError, TransportFailure
from .errors_catalog import actionable_error
from .models import DatabaseTarget, RemoteEndpoint
from .services.archive import ArchiveService
from .services.command_runner import CommandRunner
from .services.fetch import FetchService
from .services.filesystem import FileSystemService
from .services.probe import ProbeService
from .services.seeding import SeedingService

console = Console()
logger = logging.getLogger("emrbootstrap")


class Bootstrapper:
    """Provisions test modules and test data from a remote resource provider."""

    def __init__(
        self,
        remote: RemoteEndpoint,
        module_repository: str,
        db_host: Optional[str] = None,
        db_port: Optional[int] = None,
        db_name: Optional[str] = None,
        db_user: Optional[str] = None,
        db_password: Optional[str] = None,
        modules_path: str = DEFAULT_MODULES_PATH,
        data_path: str = DEFAULT_DATA_PATH,
        mysql_client: Sequence[str] = (DEFAULT_MYSQL_CLIENT,),
        case_insensitive_suffix: bool = False,
        skip_modules: bool = False,
        skip_data: bool = False,
        command_timeout: Optional[float] = None,
    ):
        self.remote = remote
        self.module_repository = module_repository
        self.db_host = db_host
        self.db_port = db_port
        self.db_name = db_name
        self.db_user = db_user
        self.db_password = db_password
        self.modules_path = modules_path
        self.data_path = data_path
        self.skip_modules = skip_modules
        self.skip_data = skip_data

        if not skip_data:
            missing = [
                name
                for name, value in (
                    ("db_host", db_host),
                    ("db_port", db_port),
                    ("db_name", db_name),
                    ("db_user", db_user),
                    ("db_password", db_password),
                )
                if value in (None, "")
            ]
            if missing:
                raise BootstrapError(f"Missing database settings: {', '.join(missing)}")

        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.probe_service = ProbeService(logger=logger, requests_module=requests)
        self.fetch_service = FetchService(logger=logger, requests_module=requests)
        self.archive_service = ArchiveService(
            logger=logger,
            filesystem_service=self.filesystem_service,
            case_insensitive_suffix=case_insensitive_suffix,
        )
        self.command_runner = CommandRunner(logger=logger, default_timeout=command_timeout)
        self.seeding_service = SeedingService(
            logger=logger,
            command_runner=self.command_runner,
            client_command=mysql_client,
        )

    def resource_url(self, path: str) -> str:
        return f"{self.remote.url.rstrip('/')}/{path.lstrip('/')}"

    def _fetch(self, path: str):
        return self.fetch_service.fetch(
            self.resource_url(path),
            self.remote.username,
            self.remote.password,
        )

    def _run_step(self, name: str, callback, *args, **kwargs):
        logger.info("Starting step: %s", name)
        result = callback(*args, **kwargs)
        logger.info("Finished step: %s", name)
        return result

    def check_remote(self):
        console.print(f"[blue]Testing connection to {self.remote.url}...[/blue]")
        if not self.probe_service.probe(self.remote.url):
            raise TransportFailure(actionable_error("remote_unreachable", url=self.remote.url))
        console.print("[green]Remote resource provider is reachable.[/green]")

    def provision_modules(self):
        console.print("[blue]Downloading test modules...[/blue]")
        stream = self._fetch(self.modules_path)
        if not self.archive_service.expand_modules(stream, self.module_repository):
            raise BootstrapError(actionable_error("modules_failed", path=self.module_repository))
        console.print(f"[green]Modules copied to {self.module_repository}.[/green]")

    def seed_database(self):
        console.print("[blue]Downloading test data...[/blue]")
        fd, dump_path = tempfile.mkstemp(prefix=DUMP_TEMP_PREFIX, suffix=DUMP_TEMP_SUFFIX)
        try:
            with os.fdopen(fd, "wb") as dump_file, self._fetch(self.data_path) as stream:
                shutil.copyfileobj(stream, dump_file)

            target = DatabaseTarget(
                host=self.db_host,
                port=int(self.db_port),
                database_name=self.db_name,
                user=self.db_user,
                password=self.db_password,
                dump_file_path=dump_path,
            )
            console.print(f"[blue]Loading test data into `{self.db_name}`...[/blue]")
            if not self.seeding_service.apply_sql_dump(target):
                raise BootstrapError(actionable_error("seeding_failed", database=self.db_name))
        finally:
            self.filesystem_service.discard_file(dump_path)
        console.print("[green]Test data loaded.[/green]")

    def _describe_failure(self, exc: BootstrapError) -> str:
        url = self.remote.url
        if isinstance(exc, AuthFailure):
            return actionable_error("auth_failure", url=url)
        if isinstance(exc, RemoteError):
            return actionable_error("remote_error", url=url)
        if isinstance(exc, TransportFailure) and exc.__cause__ is not None:
            return actionable_error("transport_failure", url=url, error=str(exc.__cause__))
        return str(exc)

    def run(self) -> int:
        try:
            logger.info("Starting EMR bootstrap against %s", self.remote.url)

            self._run_step("check_remote", self.check_remote)
            if self.skip_modules:
                logger.info("Skipping module provisioning.")
            else:
                self._run_step("provision_modules", self.provision_modules)
            if self.skip_data:
                logger.info("Skipping test data.")
            else:
                self._run_step("seed_database", self.seed_database)

            console.print("[bold green]Bootstrap complete.[/bold green]")
            return 0

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except BootstrapError as exc:
            message = self._describe_failure(exc)
            console.print(f"[bold red]Error:[/bold red] {message}")
            logger.error(message)
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1
