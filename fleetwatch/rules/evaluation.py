"""Threshold policies and rule evaluation against telemetry snapshots."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from fleetwatch.core.types import (
    AlertLevel,
    CheckType,
    MonitoringRule,
    TelemetrySnapshot,
    ThresholdSpec,
)
from fleetwatch.rules.defaults import (
    DEGRADED_STATUSES,
    HEALTHY_STATUSES,
    SYSTEM_WIDE,
    is_binary_status,
)

# An unreachable contact with no RTT sample counts as this many ms.
UNAVAILABLE_RTT_MS = 9999.0

_LEVEL_ORDER = {AlertLevel.OK: 0, AlertLevel.WARNING: 1, AlertLevel.CRITICAL: 2}


class NumericThresholdRule(BaseModel):
    """Higher is worse: compare a measured value against two levels."""

    kind: Literal["numeric"] = "numeric"
    warning: float
    critical: float
    consecutive_failures: int = 1

    def evaluate(self, value: float) -> AlertLevel:
        if value >= self.critical:
            return AlertLevel.CRITICAL
        if value >= self.warning:
            return AlertLevel.WARNING
        return AlertLevel.OK


class BinaryStatusRule(BaseModel):
    """Healthy statuses are ok, degraded ones warn, anything else is critical."""

    kind: Literal["binary_status"] = "binary_status"
    healthy: frozenset[str]
    degraded: frozenset[str]

    def evaluate(self, status: str) -> AlertLevel:
        folded = status.strip().casefold()
        if folded in {s.casefold() for s in self.healthy}:
            return AlertLevel.OK
        if folded in {s.casefold() for s in self.degraded}:
            return AlertLevel.WARNING
        return AlertLevel.CRITICAL


ThresholdPolicy = Annotated[
    NumericThresholdRule | BinaryStatusRule,
    Field(discriminator="kind"),
]


def policy_for(check_type: CheckType, thresholds: ThresholdSpec) -> ThresholdPolicy:
    """Pick the policy variant that governs *check_type*."""
    if is_binary_status(check_type):
        return BinaryStatusRule(
            healthy=HEALTHY_STATUSES[check_type],
            degraded=DEGRADED_STATUSES[check_type],
        )
    return NumericThresholdRule(
        warning=thresholds.warning,
        critical=thresholds.critical,
        consecutive_failures=thresholds.consecutive_failures or 1,
    )


def worst(levels: list[AlertLevel]) -> AlertLevel | None:
    """Most severe level in *levels*, or None if empty."""
    if not levels:
        return None
    return max(levels, key=_LEVEL_ORDER.__getitem__)


# ── Measurement ─────────────────────────────────────────────────


def _contact_rtt(rtt_ms: float | None, status: str) -> float | None:
    if rtt_ms:
        return rtt_ms
    if status == "Unavail":
        return UNAVAILABLE_RTT_MS
    return None


def measure(rule: MonitoringRule, snapshot: TelemetrySnapshot) -> float | str | None:
    """Extract the observation *rule* is evaluated on, or None if missing.

    ``System-wide`` SIP targets observe the worst RTT across contacts; the
    registration case is handled in :func:`evaluate_rule` since statuses
    are not ordered.  Interface utilization has no link speed to divide by
    and is never measurable.
    """
    extra = snapshot.extra
    check_type = rule.check_type

    if check_type == CheckType.CPU:
        return snapshot.cpu_usage
    if check_type == CheckType.MEMORY:
        return snapshot.memory_usage
    if check_type == CheckType.DISK:
        return snapshot.disk_usage

    if check_type == CheckType.BANDWIDTH:
        for iface in extra.interfaces:
            if iface.name == rule.target:
                return max(iface.rx_bps, iface.tx_bps) / 1_000_000
        return None

    if check_type == CheckType.SIP_RTT:
        values: list[float] = []
        for contact in extra.contacts:
            if rule.target != SYSTEM_WIDE and contact.aor != rule.target:
                continue
            rtt = _contact_rtt(contact.rtt_ms, contact.status)
            if rtt is not None:
                values.append(rtt)
        return max(values) if values else None

    if check_type == CheckType.SIP_REGISTRATION:
        for reg in extra.registrations:
            if reg.name == rule.target:
                return reg.status
        return None

    if check_type == CheckType.CONTAINER_STATUS:
        for container in extra.docker.containers:
            if container.name == rule.target:
                return container.state
        return None

    return None


def evaluate_rule(rule: MonitoringRule, snapshot: TelemetrySnapshot) -> AlertLevel | None:
    """Classify *rule* against *snapshot*; None when nothing can be measured."""
    policy = policy_for(rule.check_type, rule.thresholds)

    if isinstance(policy, BinaryStatusRule):
        if rule.check_type == CheckType.SIP_REGISTRATION and rule.target == SYSTEM_WIDE:
            return worst([policy.evaluate(r.status) for r in snapshot.extra.registrations])
        status = measure(rule, snapshot)
        return policy.evaluate(str(status)) if status is not None else None

    value = measure(rule, snapshot)
    if value is None:
        return None
    return policy.evaluate(float(value))
