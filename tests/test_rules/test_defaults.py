"""Tests for the threshold defaults table and range helpers."""

from __future__ import annotations

import pytest

from fleetwatch.core.config import RuleEditorConfig
from fleetwatch.core.types import ChannelName, CheckType, ThresholdSpec
from fleetwatch.rules.defaults import (
    SYSTEM_WIDE,
    TYPE_DEFAULTS,
    clamp_frequency,
    clamp_threshold,
    clamp_thresholds,
    default_session_config,
    defaults_for,
    is_binary_status,
    parse_check_type,
    threshold_range,
)
from fleetwatch.rules.exceptions import UnknownCheckTypeError


class TestTable:
    def test_every_check_type_has_defaults(self) -> None:
        assert set(TYPE_DEFAULTS) == set(CheckType)

    @pytest.mark.parametrize(
        ("check_type", "warning", "critical", "target"),
        [
            (CheckType.CPU, 70, 90, SYSTEM_WIDE),
            (CheckType.MEMORY, 75, 90, SYSTEM_WIDE),
            (CheckType.DISK, 80, 90, "/"),
            (CheckType.BANDWIDTH, 50, 100, ""),
            (CheckType.SIP_RTT, 300, 600, SYSTEM_WIDE),
            (CheckType.CONTAINER_STATUS, 1, 1, ""),
        ],
    )
    def test_entries(
        self, check_type: CheckType, warning: float, critical: float, target: str,
    ) -> None:
        entry = defaults_for(check_type)
        assert entry.thresholds.warning == warning
        assert entry.thresholds.critical == critical
        assert entry.target == target

    def test_defaults_for_returns_copy(self) -> None:
        entry = defaults_for(CheckType.CPU)
        entry.thresholds.warning = 1
        assert TYPE_DEFAULTS[CheckType.CPU].thresholds.warning == 70

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            TYPE_DEFAULTS[CheckType.CPU] = defaults_for(CheckType.MEMORY)  # type: ignore[index]

    def test_binary_types(self) -> None:
        assert is_binary_status(CheckType.CONTAINER_STATUS)
        assert is_binary_status(CheckType.SIP_REGISTRATION)
        assert not is_binary_status(CheckType.SIP_RTT)


class TestParseCheckType:
    def test_accepts_string(self) -> None:
        assert parse_check_type("disk") is CheckType.DISK

    def test_rejects_unknown(self) -> None:
        with pytest.raises(UnknownCheckTypeError):
            parse_check_type("ping")


class TestClamping:
    def test_percent_range(self) -> None:
        assert threshold_range(CheckType.CPU) == (0.0, 100.0)
        assert clamp_threshold(CheckType.CPU, 150) == 100
        assert clamp_threshold(CheckType.CPU, -5) == 0

    def test_sip_rtt_range(self) -> None:
        assert clamp_threshold(CheckType.SIP_RTT, 1500) == 1500
        assert clamp_threshold(CheckType.SIP_RTT, 5000) == 2000

    def test_non_finite_uses_fallback(self) -> None:
        assert clamp_threshold(CheckType.CPU, float("nan"), 70) == 70
        assert clamp_threshold(CheckType.CPU, float("inf"), 90) == 90
        assert clamp_threshold(CheckType.SIP_RTT, float("nan")) == 0

    def test_clamp_thresholds_non_finite_levels(self) -> None:
        spec = ThresholdSpec(warning=float("nan"), critical=float("-inf"))
        clamped = clamp_thresholds(CheckType.MEMORY, spec)
        assert (clamped.warning, clamped.critical) == (75, 90)

    def test_clamp_thresholds_keeps_failures(self) -> None:
        spec = ThresholdSpec(warning=120, critical=-1, consecutive_failures=3)
        clamped = clamp_thresholds(CheckType.MEMORY, spec)
        assert (clamped.warning, clamped.critical) == (100, 0)
        assert clamped.consecutive_failures == 3

    def test_frequency(self) -> None:
        cfg = RuleEditorConfig(max_notification_frequency=60)
        assert clamp_frequency(0, cfg) == 1
        assert clamp_frequency(30, cfg) == 30
        assert clamp_frequency(999, cfg) == 60


class TestDefaultSessionConfig:
    def test_uses_table_and_editor_config(self) -> None:
        cfg = RuleEditorConfig(
            default_notification_frequency=5,
            default_channels=[ChannelName.EMAIL],
        )
        session = default_session_config(CheckType.DISK, cfg)
        assert session.thresholds.warning == 80
        assert session.targets == ["/"]
        assert session.target == "/"
        assert session.notification_frequency == 5
        assert session.notify.channels == [ChannelName.EMAIL]

    def test_empty_default_target_gives_no_targets(self) -> None:
        session = default_session_config(CheckType.BANDWIDTH)
        assert session.targets == []
        assert session.target == ""
