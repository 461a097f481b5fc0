"""Backend connection configuration.

ConnectionConfig is a Pydantic model for type-safe connection config.
``load_backend`` resolves the driver name to a bundled backend class.
Backends are free to be constructed directly; this is only a shortcut.
"""

from __future__ import annotations

import importlib
from typing import Any

from pydantic import BaseModel, ConfigDict

from row_source.core.exceptions import ConfigurationError


class ConnectionConfig(BaseModel):
    """Configuration for a bundled backend."""

    model_config = ConfigDict(frozen=True)

    driver: str = "sqlite"
    database: str
    extra: dict[str, Any] = {}


# Backend module mapping: driver name -> (module_path, class_name)
_BACKEND_MAP: dict[str, tuple[str, str]] = {
    "sqlite": ("row_source.adapters.sqlite", "SqliteBackend"),
}


def load_backend(config: ConnectionConfig) -> Any:
    """Instantiate the backend registered for ``config.driver``."""
    driver = config.driver.lower()
    if driver not in _BACKEND_MAP:
        raise ConfigurationError([f"unsupported backend driver: {config.driver}"])

    module_path, cls_name = _BACKEND_MAP[driver]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)(config)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError([f"failed to load backend for '{config.driver}': {e}"]) from e
