"""
Configuration for the account-state engine.

The set of managed fields is data, not code: every component receives a
``StateConfig`` at construction so tests (and future app versions) can
swap in a different field list without touching the reconciliation logic.

Settings live in ``~/.accountswap/config.yaml``:

.. code-block:: yaml

    store_path: ~/.config/Antigravity/User/globalStorage/state.vscdb
    lock_timeout: 5.0
    state:
      fields:
        - key: antigravityAuthStatus
          default_flag: 0
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from . import ACCOUNTSWAP_HOME

logger = logging.getLogger("accountswap.config")

CONFIG_FILENAME = "config.yaml"
STORE_ENV_VAR = "ACCOUNTSWAP_STORE"

AUTH_STATUS = "antigravityAuthStatus"
PROFILE_URL = "antigravity.profileUrl"
ONBOARDING = "antigravityOnboarding"
COMMAND_CONFIGS = "antigravity.commandConfigs"
USER_SETTINGS = "antigravityUserSettings.allUserSettings"
AGENT_MANAGER_STATE = "jetskiStateSync.agentManagerInitState"

TARGET_STORAGE_MARKER = "__$__targetStorageMarker"
NEW_STORAGE_MARKER = "__$__isNewStorageMarker"
ANALYTICS_UPLOAD_TIME = "antigravityAnalytics.lastUploadTime"


class ManagedField(BaseModel):
    """One auth/session row the engine clears, backs up, and restores.

    ``default_flag`` is the marker flag written on restore when the
    snapshot carries no flag of its own for this key.
    """

    key: str
    default_flag: int = 1

    @field_validator("default_flag")
    @classmethod
    def _flag_is_binary(cls, value: int) -> int:
        if value not in (0, 1):
            raise ValueError("default_flag must be 0 or 1")
        return value


def _default_fields() -> list[ManagedField]:
    return [
        ManagedField(key=AUTH_STATUS, default_flag=0),
        ManagedField(key=PROFILE_URL, default_flag=0),
        ManagedField(key=ONBOARDING, default_flag=0),
        ManagedField(key=COMMAND_CONFIGS, default_flag=0),
        ManagedField(key=USER_SETTINGS, default_flag=1),
        ManagedField(key=AGENT_MANAGER_STATE, default_flag=1),
        ManagedField(key=NEW_STORAGE_MARKER, default_flag=1),
    ]


class ReservedKeys(BaseModel):
    """Store keys with special meaning to the host app."""

    marker: str = TARGET_STORAGE_MARKER
    new_storage: str = NEW_STORAGE_MARKER
    analytics_timestamp: str = ANALYTICS_UPLOAD_TIME
    auth_status: str = AUTH_STATUS


class StateConfig(BaseModel):
    """Ordered managed-field set plus the reserved key names."""

    fields: list[ManagedField] = Field(default_factory=_default_fields)
    reserved: ReservedKeys = Field(default_factory=ReservedKeys)

    @model_validator(mode="after")
    def _check_keys(self) -> "StateConfig":
        keys = [f.key for f in self.fields]
        if len(keys) != len(set(keys)):
            raise ValueError("managed field keys must be unique")
        for reserved in (self.reserved.marker, self.reserved.analytics_timestamp):
            if reserved in keys:
                raise ValueError(f"{reserved} is reserved and cannot be a managed field")
        return self

    @property
    def field_keys(self) -> list[str]:
        """Managed keys in configured order."""
        return [f.key for f in self.fields]

    def is_managed(self, key: str) -> bool:
        return any(f.key == key for f in self.fields)

    def default_flag(self, key: str) -> int:
        """Fallback marker flag for *key*; keys outside the set default to 1."""
        for f in self.fields:
            if f.key == key:
                return f.default_flag
        return 1


class AppSettings(BaseModel):
    """Persistent settings for the accountswap tool."""

    state: StateConfig = Field(default_factory=StateConfig)
    store_path: Optional[Path] = None
    replica_suffix: str = ".backup"
    accounts_dir: Optional[Path] = None
    lock_timeout: float = 5.0

    def accounts_path(self, home: Path) -> Path:
        """Directory holding saved account snapshots."""
        if self.accounts_dir is not None:
            return self.accounts_dir.expanduser()
        return home / "accounts"


def load_settings(home: Optional[Path] = None) -> AppSettings:
    """Load settings from ``<home>/config.yaml``.

    A missing file yields defaults. A malformed file is logged and also
    yields defaults so the tool stays usable.

    Args:
        home: Tool home directory. Defaults to ~/.accountswap.

    Returns:
        AppSettings: Validated settings with env overrides applied.
    """
    home_path = (home or Path(ACCOUNTSWAP_HOME)).expanduser()
    config_file = home_path / CONFIG_FILENAME

    settings = AppSettings()
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            settings = AppSettings.model_validate(data)
        except (yaml.YAMLError, ValueError) as exc:
            logger.warning("Failed to load config %s: %s", config_file, exc)

    env_store = os.environ.get(STORE_ENV_VAR)
    if env_store:
        settings.store_path = Path(env_store)
    return settings


def save_settings(settings: AppSettings, home: Optional[Path] = None) -> Path:
    """Write settings to ``<home>/config.yaml``.

    Returns:
        Path: The config file written.
    """
    home_path = (home or Path(ACCOUNTSWAP_HOME)).expanduser()
    home_path.mkdir(parents=True, exist_ok=True)
    config_file = home_path / CONFIG_FILENAME
    data = settings.model_dump(mode="json", exclude_none=True)
    config_file.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False), encoding="utf-8")
    return config_file
