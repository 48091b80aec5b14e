"""Connection descriptors for the schema source."""

from typing import Dict, Optional
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, Field

from common.config.settings import CompilerSettings

# Keys accepted in ``key=value;`` connection strings, mapped to descriptor fields.
_CONNECTION_STRING_KEYS: Dict[str, str] = {
    "server": "host",
    "host": "host",
    "data source": "host",
    "datasource": "host",
    "port": "port",
    "uid": "user",
    "user": "user",
    "user id": "user",
    "username": "user",
    "pwd": "password",
    "password": "password",
    "database": "database",
    "initial catalog": "database",
    "db": "database",
}


class ConnectionDescriptor(BaseModel):
    """Where and as whom to connect for introspection."""

    host: str = "localhost"
    port: int = 3306
    database: str = ""
    user: str = ""
    password: Optional[str] = Field(default=None, repr=False)

    @classmethod
    def parse(cls, value: str) -> "ConnectionDescriptor":
        """Parse a ``mysql://`` URL or a ``server=...;uid=...;`` connection string."""
        text = (value or "").strip()
        if not text:
            raise ValueError("Connection string is empty.")
        if "://" in text:
            return cls._from_url(text)
        return cls._from_key_values(text)

    @classmethod
    def _from_url(cls, text: str) -> "ConnectionDescriptor":
        parsed = urlparse(text)
        if parsed.scheme not in {"mysql", "mariadb", "mysql+aiomysql"}:
            raise ValueError(f"Unsupported connection scheme '{parsed.scheme}'.")
        return cls(
            host=parsed.hostname or "localhost",
            port=parsed.port or 3306,
            database=unquote(parsed.path.lstrip("/")),
            user=unquote(parsed.username or ""),
            password=unquote(parsed.password) if parsed.password is not None else None,
        )

    @classmethod
    def _from_key_values(cls, text: str) -> "ConnectionDescriptor":
        fields: Dict[str, str] = {}
        for segment in text.split(";"):
            if not segment.strip():
                continue
            if "=" not in segment:
                raise ValueError(f"Malformed connection string segment '{segment.strip()}'.")
            key, _, raw = segment.partition("=")
            target = _CONNECTION_STRING_KEYS.get(key.strip().lower())
            if target:
                fields[target] = raw.strip()
        if "port" in fields:
            try:
                int(fields["port"])
            except ValueError:
                raise ValueError(f"Connection string port must be an integer, got '{fields['port']}'.")
        if fields.get("password") == "":
            fields["password"] = None
        return cls(**fields)

    @classmethod
    def from_settings(cls, settings: CompilerSettings) -> "ConnectionDescriptor":
        """Build a descriptor from DB_* environment settings."""
        missing = [
            name
            for name, value in {
                "DB_HOST": settings.db_host,
                "DB_NAME": settings.db_name,
                "DB_USER": settings.db_user,
            }.items()
            if not value
        ]
        if missing:
            missing_list = ", ".join(missing)
            raise ValueError(
                f"Schema source missing required config: {missing_list}. "
                "Set DB_HOST, DB_NAME, and DB_USER or pass a connection string."
            )
        return cls(
            host=settings.db_host,
            port=settings.db_port,
            database=settings.db_name,
            user=settings.db_user,
            password=settings.db_password,
        )

    def describe(self) -> str:
        """Credential-free description for logs."""
        return f"mysql://{self.user or '<anonymous>'}@{self.host}:{self.port}/{self.database}"
