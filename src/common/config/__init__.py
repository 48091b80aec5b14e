"""Configuration helpers."""

from common.config.settings import CompilerSettings

__all__ = ["CompilerSettings"]
