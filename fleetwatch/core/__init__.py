"""Core module: settings, structured logging, rule and telemetry types."""

from fleetwatch.core.config import (
    RuleEditorConfig,
    Settings,
    get_settings,
    load_settings,
    reset_settings,
)
from fleetwatch.core.logging import setup_logging
from fleetwatch.core.types import (
    AlertLevel,
    ChannelName,
    CheckType,
    Draft,
    MonitoringRule,
    NotifyConfig,
    SessionConfig,
    TargetCandidate,
    TelemetrySnapshot,
    ThresholdSpec,
)

__all__ = [
    "AlertLevel",
    "ChannelName",
    "CheckType",
    "Draft",
    "MonitoringRule",
    "NotifyConfig",
    "RuleEditorConfig",
    "SessionConfig",
    "Settings",
    "TargetCandidate",
    "TelemetrySnapshot",
    "ThresholdSpec",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
