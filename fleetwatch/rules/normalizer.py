"""Draft normalizer: turns an existing (possibly legacy) rule into a Draft."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import BaseModel

from fleetwatch.core.config import RuleEditorConfig
from fleetwatch.core.types import ChannelName, CheckType, Draft, NotifyConfig, ThresholdSpec
from fleetwatch.rules.defaults import (
    SYSTEM_WIDE,
    clamp_frequency,
    clamp_thresholds,
    defaults_for,
)

logger = structlog.stdlib.get_logger()

RuleInput = Mapping[str, Any] | BaseModel


def migrate_thresholds(raw: Mapping[str, Any] | None) -> dict[str, Any]:
    """Rename the legacy ``attention`` level to ``warning``.

    Only applies when ``warning`` is absent; ``attention`` is dropped
    either way once migrated.  Running it twice is a no-op.
    """
    thresholds = dict(raw or {})
    if thresholds.get("attention") is not None and thresholds.get("warning") is None:
        thresholds["warning"] = thresholds.pop("attention")
    return thresholds


def blank_draft(config: RuleEditorConfig | None = None) -> Draft:
    """The draft shown when creating a new rule."""
    cfg = config or RuleEditorConfig()
    cpu = defaults_for(CheckType.CPU)
    return Draft(
        check_type=CheckType.CPU,
        target=SYSTEM_WIDE,
        targets=[SYSTEM_WIDE],
        thresholds=cpu.thresholds,
        notification_frequency=cfg.default_notification_frequency,
        notify=NotifyConfig(channels=list(cfg.default_channels)),
        enabled=True,
    )


def _targets_of(data: Mapping[str, Any]) -> list[str]:
    targets = data.get("targets")
    if targets:
        return [str(t) for t in targets]
    target = data.get("target")
    if isinstance(target, (list, tuple)):
        return [str(t) for t in target]
    return [str(target)] if target else []


def _as_check_type(value: Any) -> CheckType:
    if not value:
        return CheckType.CPU
    try:
        return CheckType(value)
    except ValueError:
        logger.warning(
            "unknown_check_type_defaulted",
            check_type=str(value),
            fallback=CheckType.CPU,
        )
        return CheckType.CPU


def _as_number(value: Any) -> float | None:
    """Finite float for *value*, or None when it is not a usable number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _level(
    thresholds: Mapping[str, Any],
    key: str,
    default: float,
    check_type: CheckType,
) -> float:
    raw = thresholds.get(key)
    number = _as_number(raw)
    if number is None:
        if raw is not None:
            logger.warning(
                "threshold_defaulted",
                check_type=check_type,
                level=key,
                value=repr(raw),
                default=default,
            )
        return default
    return number


def _channels(notify: Any, default: list[ChannelName]) -> list[ChannelName]:
    raw = notify.get("channels") if isinstance(notify, Mapping) else None
    if not isinstance(raw, (list, tuple)):
        return list(default)
    known = {c.value for c in ChannelName}
    dropped = [c for c in raw if str(c) not in known]
    if dropped:
        logger.warning("unknown_channels_dropped", channels=[str(c) for c in dropped])
    return [ChannelName(str(c)) for c in raw if str(c) in known]


def normalize(
    existing: RuleInput | None = None,
    config: RuleEditorConfig | None = None,
) -> Draft:
    """Build the canonical Draft for *existing* (or a blank one).

    Never raises for stored data.  An unsupported ``check_type`` opens as
    ``cpu``; missing or unreadable threshold levels fall back to the
    defaults table for the rule's check type; out-of-range levels are
    clamped; unknown channels are dropped.
    """
    cfg = config or RuleEditorConfig()
    if existing is None:
        return blank_draft(cfg)

    if isinstance(existing, BaseModel):
        data: dict[str, Any] = existing.model_dump(by_alias=True)
    else:
        data = dict(existing)

    check_type = _as_check_type(data.get("check_type"))
    table = defaults_for(check_type).thresholds

    raw_thresholds = data.get("thresholds")
    migrated = migrate_thresholds(raw_thresholds if isinstance(raw_thresholds, Mapping) else None)
    failures = _as_number(migrated.get("consecutive_failures"))
    spec = clamp_thresholds(
        check_type,
        ThresholdSpec(
            warning=_level(migrated, "warning", table.warning, check_type),
            critical=_level(migrated, "critical", table.critical, check_type),
            consecutive_failures=max(1, int(failures)) if failures is not None else None,
        ),
    )

    frequency = _as_number(data.get("notification_frequency"))
    targets = _targets_of(data)
    rule_id = data.get("_id", data.get("id"))

    return Draft(
        id=str(rule_id) if rule_id is not None else None,
        check_type=check_type,
        target=targets[0] if targets else "",
        targets=targets,
        thresholds=spec,
        notification_frequency=clamp_frequency(
            int(frequency) if frequency else cfg.default_notification_frequency,
            cfg,
        ),
        notify=NotifyConfig(channels=_channels(data.get("notify"), cfg.default_channels)),
        enabled=bool(data.get("enabled", True)),
    )
