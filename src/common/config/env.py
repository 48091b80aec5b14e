"""Typed environment variable parsing helpers."""

import os
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

_TRUTHY = ("true", "1", "yes", "on")
_FALSEY = ("false", "0", "no", "off", "")


def _read(
    name: str, parse: Callable[[str], T], default: Optional[T], required: bool
) -> Optional[T]:
    value = os.getenv(name)
    if value is None:
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default
    return parse(value)


def get_env_str(name: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """Get an environment variable as a string."""
    return _read(name, str, default, required)


def get_env_int(name: str, default: Optional[int] = None, required: bool = False) -> Optional[int]:
    """Get an environment variable as an integer."""

    def _parse(value: str) -> int:
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"Environment variable '{name}' must be an integer, got '{value}'.")

    return _read(name, _parse, default, required)


def get_env_float(
    name: str, default: Optional[float] = None, required: bool = False
) -> Optional[float]:
    """Get an environment variable as a float."""

    def _parse(value: str) -> float:
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"Environment variable '{name}' must be a float, got '{value}'.")

    return _read(name, _parse, default, required)


def get_env_bool(
    name: str, default: Optional[bool] = None, required: bool = False
) -> Optional[bool]:
    """Get an environment variable as a boolean.

    Truthy: true, 1, yes, on
    Falsey: false, 0, no, off, (empty string)
    """

    def _parse(value: str) -> bool:
        lowered = value.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSEY:
            return False
        raise ValueError(f"Environment variable '{name}' must be a boolean, got '{value}'.")

    return _read(name, _parse, default, required)
