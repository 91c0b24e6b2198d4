"""Domain types for monitoring rules, editor drafts, and device telemetry."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class CheckType(StrEnum):
    """Category of condition a monitoring rule evaluates."""

    CPU = "cpu"
    MEMORY = "memory"
    DISK = "disk"
    BANDWIDTH = "bandwidth"
    UTILIZATION = "utilization"
    SIP_RTT = "sip_rtt"
    SIP_REGISTRATION = "sip_registration"
    CONTAINER_STATUS = "container_status"


class ChannelName(StrEnum):
    """Notification channel a rule can fire on."""

    SLACK = "slack"
    EMAIL = "email"
    WEBHOOK = "webhook"


class AlertLevel(StrEnum):
    """Outcome of evaluating a rule against an observation."""

    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


# ── Rule Types ──────────────────────────────────────────────────


class ThresholdSpec(BaseModel):
    """Warning/critical levels as persisted on a rule."""

    warning: float
    critical: float
    consecutive_failures: int | None = Field(default=None, ge=1)


class NotifyConfig(BaseModel):
    """Channels a rule notifies on; ordered, no duplicates."""

    channels: list[ChannelName] = Field(default_factory=list)

    @field_validator("channels")
    @classmethod
    def _dedupe(cls, value: list[ChannelName]) -> list[ChannelName]:
        return list(dict.fromkeys(value))


class SessionConfig(BaseModel):
    """In-progress settings for one check type during an editor session."""

    thresholds: ThresholdSpec
    targets: list[str] = Field(default_factory=list)
    target: str = ""
    notification_frequency: int = Field(default=15, ge=1)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)


class Draft(BaseModel):
    """The rule configuration currently shown in the editor."""

    model_config = {"populate_by_name": True}

    id: str | None = Field(default=None, alias="_id")
    check_type: CheckType = CheckType.CPU
    target: str = ""
    targets: list[str] = Field(default_factory=list)
    thresholds: ThresholdSpec
    notification_frequency: int = Field(default=15, ge=1)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)
    enabled: bool = True

    def session_config(self) -> SessionConfig:
        """Return the per-type part of the draft."""
        return SessionConfig(
            thresholds=self.thresholds.model_copy(),
            targets=list(self.targets),
            target=self.target,
            notification_frequency=self.notification_frequency,
            notify=self.notify.model_copy(deep=True),
        )


class MonitoringRule(BaseModel):
    """A persistable rule, one per (check type, target)."""

    model_config = {"populate_by_name": True}

    id: str | None = Field(default=None, alias="_id")
    check_type: CheckType
    target: str
    thresholds: ThresholdSpec
    notification_frequency: int = Field(default=15, ge=1)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)
    enabled: bool = True

    def to_payload(self) -> dict[str, Any]:
        """Wire representation: ``_id`` alias, unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TargetCandidate(BaseModel):
    """A selectable target in the editor."""

    id: str
    selected: bool = False


# ── Telemetry Types ─────────────────────────────────────────────


class SipRegistration(BaseModel):
    """Outbound SIP registration reported by the device agent."""

    model_config = {"populate_by_name": True}

    name: str
    status: str = ""
    server_uri: str = Field(default="", alias="serverUri")
    expires_s: int = Field(default=0, alias="expiresS")


class SipContact(BaseModel):
    """SIP contact (AOR) with its last qualify round-trip."""

    model_config = {"populate_by_name": True}

    aor: str
    status: str = ""
    rtt_ms: float | None = Field(default=None, alias="rttMs")


class NetworkInterface(BaseModel):
    """Per-interface throughput counters."""

    name: str
    rx_bps: float = 0.0
    tx_bps: float = 0.0
    rx_bytes: int = 0
    tx_bytes: int = 0


class ContainerInfo(BaseModel):
    """Docker container summary."""

    name: str
    state: str = ""
    status: str = ""


class DockerInfo(BaseModel):
    containers: list[ContainerInfo] = Field(default_factory=list)


class TelemetryExtra(BaseModel):
    """Agent-specific telemetry sections."""

    registrations: list[SipRegistration] = Field(default_factory=list)
    contacts: list[SipContact] = Field(default_factory=list)
    interfaces: list[NetworkInterface] = Field(default_factory=list)
    docker: DockerInfo = Field(default_factory=DockerInfo)

    @field_validator("registrations", "contacts", "interfaces", "docker", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return {} if info.field_name == "docker" else []
        return value


class TelemetrySnapshot(BaseModel):
    """Latest metrics pushed by a device agent."""

    cpu_usage: float | None = None
    memory_usage: float | None = None
    disk_usage: float | None = None
    extra: TelemetryExtra = Field(default_factory=TelemetryExtra)

    @field_validator("extra", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value
