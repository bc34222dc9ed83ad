"""Actionable error catalog for EMR Bootstrap."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "remote_unreachable": {
        "what": "Could not connect to the remote resource provider at {url}.",
        "next": "Check the URL and the network connection, then retry.",
    },
    "auth_failure": {
        "what": "The remote resource provider rejected the credentials.",
        "next": "Re-enter the username and password for {url}.",
    },
    "remote_error": {
        "what": "The remote resource provider failed while serving {url}.",
        "next": "Wait and retry, or inform the operator of the production server.",
    },
    "transport_failure": {
        "what": "Transfer from {url} failed: {error}",
        "next": "Check the local network configuration and the URL, then retry.",
    },
    "modules_failed": {
        "what": "Module artifacts could not be copied into {path}.",
        "next": "Check free space and permissions on the module repository, then retry.",
    },
    "seeding_failed": {
        "what": "Test data could not be loaded into database `{database}`.",
        "next": "Inspect the mysql client errors above and make sure the database server is running.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
