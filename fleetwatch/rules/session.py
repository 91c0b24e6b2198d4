"""SessionStore: per-check-type cache of in-progress rule edits."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from fleetwatch.core.config import RuleEditorConfig
from fleetwatch.core.types import CheckType, NotifyConfig, SessionConfig, ThresholdSpec
from fleetwatch.rules.defaults import (
    clamp_frequency,
    clamp_thresholds,
    default_session_config,
)
from fleetwatch.rules.exceptions import InvalidFieldError

logger = structlog.stdlib.get_logger()

EDITABLE_FIELDS = frozenset(SessionConfig.model_fields)


class SessionStore:
    """Holds at most one SessionConfig per check type for one editor session.

    Types enter the modified set on their first edit and stay there for
    the rest of the session, in first-edit order.  Selecting a type only
    seeds its defaults; it does not mark it modified.
    """

    def __init__(self, config: RuleEditorConfig | None = None) -> None:
        self._config = config or RuleEditorConfig()
        self._configs: dict[CheckType, SessionConfig] = {}
        # dict used as an insertion-ordered set
        self._modified: dict[CheckType, None] = {}

    # ── Queries ──────────────────────────────────────────────────

    @property
    def modified(self) -> tuple[CheckType, ...]:
        """Modified check types in the order they were first touched."""
        return tuple(self._modified)

    @property
    def types(self) -> tuple[CheckType, ...]:
        """Check types that have a stored config."""
        return tuple(self._configs)

    def is_modified(self, check_type: CheckType) -> bool:
        return check_type in self._modified

    def defaults(self, check_type: CheckType) -> SessionConfig:
        """The untouched config for *check_type*."""
        return default_session_config(check_type, self._config)

    def stored(self, check_type: CheckType) -> SessionConfig | None:
        """Copy of the stored config, or None if the type was never touched."""
        entry = self._configs.get(check_type)
        return entry.model_copy(deep=True) if entry is not None else None

    def get(self, check_type: CheckType) -> SessionConfig:
        """Stored config for *check_type*, falling back to its defaults."""
        return self.stored(check_type) or self.defaults(check_type)

    # ── Mutation ─────────────────────────────────────────────────

    def seed(
        self,
        check_type: CheckType,
        config: SessionConfig | None = None,
    ) -> SessionConfig:
        """Store *config* (or the defaults) without marking the type modified.

        An existing entry is left untouched and returned as-is.
        """
        if check_type not in self._configs:
            self._configs[check_type] = (config or self.defaults(check_type)).model_copy(
                deep=True,
            )
        return self.get(check_type)

    def mark_modified(self, check_type: CheckType) -> None:
        self._modified.setdefault(check_type, None)

    def update(self, check_type: CheckType, patch: Mapping[str, Any]) -> SessionConfig:
        """Merge *patch* into the entry for *check_type* and mark it modified.

        ``thresholds`` and ``notify`` merge key-wise; other fields replace.
        Threshold and frequency values are clamped into their legal range.

        Raises:
            InvalidFieldError: if *patch* names an unknown field.
        """
        unknown = set(patch) - EDITABLE_FIELDS
        if unknown:
            raise InvalidFieldError(f"Unknown session fields: {sorted(unknown)}")

        current = self._configs.get(check_type) or self.defaults(check_type)
        merged = current.model_dump()

        for field, value in patch.items():
            if isinstance(value, (ThresholdSpec, NotifyConfig)):
                value = value.model_dump(exclude_unset=True)
            if field in ("thresholds", "notify") and isinstance(value, Mapping):
                merged[field] = {**merged[field], **value}
            else:
                merged[field] = value

        merged["notification_frequency"] = clamp_frequency(
            merged["notification_frequency"], self._config,
        )
        failures = merged["thresholds"].get("consecutive_failures")
        if failures is not None:
            merged["thresholds"]["consecutive_failures"] = max(1, int(failures))

        entry = SessionConfig.model_validate(merged)
        entry.thresholds = clamp_thresholds(check_type, entry.thresholds)

        self._configs[check_type] = entry
        self.mark_modified(check_type)
        logger.debug(
            "session_config_updated",
            check_type=check_type,
            fields=sorted(patch),
        )
        return entry.model_copy(deep=True)

    def clear(self) -> None:
        """Drop every stored config and the modified set."""
        self._configs.clear()
        self._modified.clear()
