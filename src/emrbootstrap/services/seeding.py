"""Test data seeding through the external mysql client."""

import os
from typing import List, Optional, Sequence

from emrbootstrap.constants import DEFAULT_MYSQL_CLIENT
from emrbootstrap.errors import CommandError, SeedingError
from emrbootstrap.models import DatabaseTarget


class SeedingService:
    """Loads a SQL dump into the target database with the mysql client."""

    def __init__(
        self,
        logger,
        command_runner,
        client_command: Sequence[str] = (DEFAULT_MYSQL_CLIENT,),
        timeout: Optional[float] = None,
    ):
        self.logger = logger
        self.command_runner = command_runner
        self.client_command = list(client_command)
        self.timeout = timeout

    def build_command(self, target: DatabaseTarget) -> List[str]:
        return self.client_command + [
            f"--host={target.host}",
            f"--port={target.port}",
            f"--user={target.user}",
            f"--password={target.password}",
            f"--database={target.database_name}",
            "-e",
            f"source {target.dump_file_path}",
        ]

    @staticmethod
    def build_transcript(stderr_output: Optional[str]) -> str:
        return os.linesep.join((stderr_output or "").splitlines())

    def _load_dump(self, target: DatabaseTarget):
        result = self.command_runner.run(
            self.build_command(target),
            timeout=self.timeout,
            secrets=[f"--password={target.password}"],
        )

        transcript = self.build_transcript(result.stderr)
        if transcript.strip():
            self.logger.error(transcript)

        if result.returncode != 0:
            raise SeedingError(
                "The process terminated abnormally while adding test data "
                f"(exit status {result.returncode})"
            )

    def apply_sql_dump(self, target: DatabaseTarget) -> bool:
        """Runs the dump at ``target.dump_file_path``; True iff the client exits with 0."""
        try:
            self._load_dump(target)
        except CommandError as exc:
            self.logger.error("Failed to run the database client: %s", exc, exc_info=True)
            return False
        except SeedingError as exc:
            self.logger.error(str(exc))
            return False

        self.logger.debug("Added test data successfully")
        return True
