"""Subprocess execution service for EMR Bootstrap."""

import subprocess
from typing import Iterable, List, Optional

from emrbootstrap.constants import REDACTED
from emrbootstrap.errors import CommandError


class CommandRunner:
    """Runs external commands with drained output and consistent error handling.

    Both output pipes are read to completion while the child runs, so a
    command that floods stderr cannot block on a full pipe.
    """

    def __init__(self, logger, default_timeout: Optional[float] = None):
        self.logger = logger
        self.default_timeout = default_timeout

    @staticmethod
    def mask(cmd: List[str], secrets: Iterable[str] = ()) -> str:
        hidden = {arg for arg in secrets if arg}
        shown = []
        for arg in cmd:
            if arg in hidden:
                name, sep, _ = arg.partition("=")
                arg = f"{name}{sep}{REDACTED}" if sep else REDACTED
            shown.append(arg)
        return " ".join(shown)

    def run(
        self,
        cmd: List[str],
        timeout: Optional[float] = None,
        secrets: Iterable[str] = (),
    ) -> subprocess.CompletedProcess:
        """Runs ``cmd`` and returns the completed process whatever its exit status.

        Raises CommandError when the command cannot be started or times out.
        Arguments listed in ``secrets`` are masked in every log record and message.
        """
        secrets = list(secrets)
        cmd_str = self.mask(cmd, secrets)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        try:
            result = subprocess.run(
                cmd,
                text=True,
                errors="replace",
                capture_output=True,
                stdin=subprocess.DEVNULL,
                timeout=effective_timeout,
            )
        except FileNotFoundError as exc:
            raise CommandError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except subprocess.TimeoutExpired:
            # TimeoutExpired renders the unmasked argv, so it is not chained.
            raise CommandError(
                f"Command timed out after {effective_timeout}s: {cmd_str}"
            ) from None
        except OSError as exc:
            raise CommandError(f"Failed to execute command: {cmd_str}. {exc}") from None

        if result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        return result
