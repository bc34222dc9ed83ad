"""Shared domain models for EMR Bootstrap."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RemoteEndpoint:
    """Remote resource provider and the operator's credentials."""

    url: str
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class DatabaseTarget:
    """Connection parameters for the database being seeded."""

    host: str
    port: int
    database_name: str
    user: str
    password: str = field(repr=False)
    dump_file_path: str
