"""Runtime settings for introspection and installer compilation."""

from dataclasses import dataclass
from typing import Optional

from common.config.env import get_env_float, get_env_int, get_env_str

DEFAULT_TABLE_PREFIX = "wp_"
DEFAULT_INSTALLER_CLASS = "MyPluginInstaller"
DEFAULT_SEED_ROW_LIMIT = 100
DEFAULT_QUERY_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_CONCURRENCY = 4


@dataclass(frozen=True)
class CompilerSettings:
    """Environment-backed defaults shared by the CLI and the dispatcher."""

    db_host: Optional[str] = None
    db_port: int = 3306
    db_name: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    table_prefix: str = DEFAULT_TABLE_PREFIX
    installer_class: str = DEFAULT_INSTALLER_CLASS
    seed_row_limit: int = DEFAULT_SEED_ROW_LIMIT
    query_timeout_seconds: float = DEFAULT_QUERY_TIMEOUT_SECONDS
    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    @classmethod
    def from_env(cls) -> "CompilerSettings":
        """Load settings from the process environment."""
        max_concurrency = get_env_int("INTROSPECTION_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY)
        return cls(
            db_host=get_env_str("DB_HOST"),
            db_port=get_env_int("DB_PORT", 3306),
            db_name=get_env_str("DB_NAME"),
            db_user=get_env_str("DB_USER"),
            db_password=get_env_str("DB_PASS"),
            table_prefix=get_env_str("TABLE_PREFIX", DEFAULT_TABLE_PREFIX),
            installer_class=get_env_str("INSTALLER_CLASS_NAME", DEFAULT_INSTALLER_CLASS),
            seed_row_limit=get_env_int("SEED_ROW_LIMIT", DEFAULT_SEED_ROW_LIMIT),
            query_timeout_seconds=get_env_float(
                "INTROSPECTION_QUERY_TIMEOUT_SECONDS", DEFAULT_QUERY_TIMEOUT_SECONDS
            ),
            connect_timeout_seconds=get_env_float(
                "INTROSPECTION_CONNECT_TIMEOUT_SECONDS", DEFAULT_CONNECT_TIMEOUT_SECONDS
            ),
            max_concurrency=max(1, max_concurrency),
        )
