"""Coordinator configuration.

``CoordinatorConfig`` collects the retention windows, timeouts, and
shared-store settings.  It can be built directly, from environment
variables, or from a YAML file.

Environment variables
---------------------
- ``AGENT_COORDINATOR_REDIS_URL`` (falls back to ``REDIS_URL``)
- ``AGENT_COORDINATOR_KEY_PREFIX``
- ``AGENT_COORDINATOR_STORE_TIMEOUT`` (seconds, float)
"""
from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml


@dataclass(frozen=True)
class CoordinatorConfig:
    """Settings for an :class:`AgentCoordinator`.

    Parameters
    ----------
    redis_url:
        Redis connection URL.  ``None`` runs the coordinator local-only.
    key_prefix:
        Prefix for shared-store keys and channels.  Default ``"ff:"``.
    message_ttl_seconds:
        Shared-store retention for messages.  Default 3600.
    pending_handoff_ttl_seconds:
        Shared-store retention for pending handoffs.  Default 3600.
    terminal_handoff_ttl_seconds:
        Shared-store retention for completed or timed-out handoffs.
        Default 86400.
    default_timeout_ms:
        Handoff timeout when the caller gives none.  Default 300000.
    store_timeout_seconds:
        Upper bound for each shared-store call.  Default 2.0.
    message_channel:
        Channel for new-message notifications.
    handoff_channel:
        Channel for handoff-request notifications.
    """

    redis_url: str | None = None
    key_prefix: str = "ff:"
    message_ttl_seconds: int = 3600
    pending_handoff_ttl_seconds: int = 3600
    terminal_handoff_ttl_seconds: int = 86400
    default_timeout_ms: int = 300_000
    store_timeout_seconds: float = 2.0
    message_channel: str = "agent:messages"
    handoff_channel: str = "agent:handoffs"

    def __post_init__(self) -> None:
        for name in (
            "message_ttl_seconds",
            "pending_handoff_ttl_seconds",
            "terminal_handoff_ttl_seconds",
            "default_timeout_ms",
            "store_timeout_seconds",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}.")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value!r}.")

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "CoordinatorConfig":
        """Build a config from a mapping of field names to values.

        Raises
        ------
        ValueError
            If ``data`` contains keys that are not config fields.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown coordinator config keys: {unknown!r}.")
        return cls(**data)  # type: ignore[arg-type]

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CoordinatorConfig":
        """Load a config from a YAML mapping stored at ``path``.

        Raises
        ------
        ValueError
            If the file is not a YAML mapping of valid config fields.
        """
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Config file {str(path)!r} is not valid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Config file {str(path)!r} must contain a mapping.")
        return cls.from_mapping(data)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "CoordinatorConfig":
        """Build a config from environment variables, defaulting the rest."""
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        redis_url = env.get("AGENT_COORDINATOR_REDIS_URL") or env.get("REDIS_URL")
        if redis_url:
            overrides["redis_url"] = redis_url
        if env.get("AGENT_COORDINATOR_KEY_PREFIX"):
            overrides["key_prefix"] = env["AGENT_COORDINATOR_KEY_PREFIX"]
        if env.get("AGENT_COORDINATOR_STORE_TIMEOUT"):
            overrides["store_timeout_seconds"] = float(env["AGENT_COORDINATOR_STORE_TIMEOUT"])
        return cls(**overrides)  # type: ignore[arg-type]

    def with_overrides(self, **changes: object) -> "CoordinatorConfig":
        """Return a copy with ``changes`` applied; None values are ignored."""
        applied = {k: v for k, v in changes.items() if v is not None}
        return dataclasses.replace(self, **applied)  # type: ignore[arg-type]


__all__ = ["CoordinatorConfig"]
