"""Threshold defaults, value ranges, and status vocabularies per check type."""

from __future__ import annotations

import math
from types import MappingProxyType

import structlog
from pydantic import BaseModel

from fleetwatch.core.config import RuleEditorConfig
from fleetwatch.core.types import (
    CheckType,
    NotifyConfig,
    SessionConfig,
    ThresholdSpec,
)
from fleetwatch.rules.exceptions import UnknownCheckTypeError

logger = structlog.stdlib.get_logger()

SYSTEM_WIDE = "System-wide"


class CheckDefaults(BaseModel):
    """Default threshold/target shape for one check type."""

    thresholds: ThresholdSpec
    target: str = ""


def _entry(warning: float, critical: float, target: str = "") -> CheckDefaults:
    return CheckDefaults(
        thresholds=ThresholdSpec(warning=warning, critical=critical),
        target=target,
    )


TYPE_DEFAULTS: MappingProxyType[CheckType, CheckDefaults] = MappingProxyType({
    CheckType.CPU: _entry(70, 90, SYSTEM_WIDE),
    CheckType.MEMORY: _entry(75, 90, SYSTEM_WIDE),
    CheckType.DISK: _entry(80, 90, "/"),
    CheckType.BANDWIDTH: _entry(50, 100),
    CheckType.UTILIZATION: _entry(70, 90),
    CheckType.SIP_RTT: _entry(300, 600, SYSTEM_WIDE),
    CheckType.SIP_REGISTRATION: _entry(95, 80, SYSTEM_WIDE),
    CheckType.CONTAINER_STATUS: _entry(1, 1),
})

# Inclusive (low, high) bounds for warning/critical inputs.
_PERCENT_RANGE = (0.0, 100.0)
THRESHOLD_RANGES: MappingProxyType[CheckType, tuple[float, float]] = MappingProxyType({
    **{ct: _PERCENT_RANGE for ct in CheckType},
    CheckType.SIP_RTT: (0.0, 2000.0),
})

# ── Binary status vocabularies ──────────────────────────────────

BINARY_STATUS_TYPES = frozenset({CheckType.CONTAINER_STATUS, CheckType.SIP_REGISTRATION})

HEALTHY_STATUSES: MappingProxyType[CheckType, frozenset[str]] = MappingProxyType({
    CheckType.CONTAINER_STATUS: frozenset({"running", "healthy"}),
    CheckType.SIP_REGISTRATION: frozenset({"Registered"}),
})

DEGRADED_STATUSES: MappingProxyType[CheckType, frozenset[str]] = MappingProxyType({
    CheckType.CONTAINER_STATUS: frozenset({"restarting", "paused", "created"}),
    CheckType.SIP_REGISTRATION: frozenset({"Auth Required", "Retrying"}),
})


def parse_check_type(value: str | CheckType) -> CheckType:
    """Coerce *value* to a CheckType, raising UnknownCheckTypeError otherwise."""
    try:
        return CheckType(value)
    except ValueError as exc:
        raise UnknownCheckTypeError(f"Unknown check type: {value!r}") from exc


def is_binary_status(check_type: CheckType) -> bool:
    """Whether *check_type* uses status vocabularies instead of numbers."""
    return check_type in BINARY_STATUS_TYPES


def defaults_for(check_type: CheckType) -> CheckDefaults:
    """Return a copy of the table entry so callers cannot mutate it."""
    return TYPE_DEFAULTS[check_type].model_copy(deep=True)


def threshold_range(check_type: CheckType) -> tuple[float, float]:
    return THRESHOLD_RANGES[check_type]


def clamp_threshold(
    check_type: CheckType,
    value: float,
    fallback: float | None = None,
) -> float:
    """Clamp *value* into the legal range for *check_type*.

    NaN and infinities are replaced by *fallback* (or the range's lower
    bound) before clamping.
    """
    low, high = THRESHOLD_RANGES[check_type]
    if not math.isfinite(value):
        replacement = low if fallback is None else fallback
        logger.debug(
            "threshold_not_finite",
            check_type=check_type,
            value=str(value),
            replacement=replacement,
        )
        value = replacement
    clamped = min(max(value, low), high)
    if clamped != value:
        logger.debug(
            "threshold_clamped",
            check_type=check_type,
            value=value,
            clamped=clamped,
        )
    return clamped


def clamp_thresholds(check_type: CheckType, spec: ThresholdSpec) -> ThresholdSpec:
    """Return *spec* with warning and critical clamped into range.

    A non-finite level falls back to the table value for that level.
    """
    table = TYPE_DEFAULTS[check_type].thresholds
    return spec.model_copy(update={
        "warning": clamp_threshold(check_type, spec.warning, table.warning),
        "critical": clamp_threshold(check_type, spec.critical, table.critical),
    })


def clamp_frequency(value: int, config: RuleEditorConfig) -> int:
    """Clamp a notification frequency (minutes) into [1, max]."""
    clamped = min(max(int(value), 1), config.max_notification_frequency)
    if clamped != value:
        logger.debug("notification_frequency_clamped", value=value, clamped=clamped)
    return clamped


def default_session_config(
    check_type: CheckType,
    config: RuleEditorConfig | None = None,
) -> SessionConfig:
    """Build the untouched SessionConfig for *check_type*."""
    cfg = config or RuleEditorConfig()
    entry = defaults_for(check_type)
    return SessionConfig(
        thresholds=entry.thresholds,
        targets=[entry.target] if entry.target else [],
        target=entry.target,
        notification_frequency=cfg.default_notification_frequency,
        notify=NotifyConfig(channels=list(cfg.default_channels)),
    )
