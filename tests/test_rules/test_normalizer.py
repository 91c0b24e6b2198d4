"""Tests for the draft normalizer: blank drafts and legacy migration."""

from __future__ import annotations

from typing import Any

import pytest

from fleetwatch.core.config import RuleEditorConfig
from fleetwatch.core.types import ChannelName, CheckType, MonitoringRule, ThresholdSpec
from fleetwatch.rules.normalizer import migrate_thresholds, normalize


def _rule(**overrides: Any) -> dict[str, Any]:
    rule: dict[str, Any] = {
        "_id": "r1",
        "check_type": "sip_rtt",
        "target": "trunk-a",
        "thresholds": {"attention": 250, "critical": 500, "consecutive_failures": 2},
        "notification_frequency": 30,
        "notify": {"channels": ["email"]},
        "enabled": False,
    }
    rule.update(overrides)
    return rule


class TestBlankDraft:
    def test_defaults(self) -> None:
        draft = normalize(None)
        assert draft.check_type == CheckType.CPU
        assert draft.thresholds.warning == 70
        assert draft.thresholds.critical == 90
        assert draft.thresholds.consecutive_failures is None
        assert draft.target == "System-wide"
        assert draft.targets == ["System-wide"]
        assert draft.notification_frequency == 15
        assert draft.notify.channels == [ChannelName.SLACK]
        assert draft.enabled is True
        assert draft.id is None

    def test_respects_editor_config(self) -> None:
        cfg = RuleEditorConfig(
            default_notification_frequency=60,
            default_channels=[ChannelName.WEBHOOK],
        )
        draft = normalize(None, cfg)
        assert draft.notification_frequency == 60
        assert draft.notify.channels == [ChannelName.WEBHOOK]


class TestMigrateThresholds:
    def test_renames_attention(self) -> None:
        assert migrate_thresholds({"attention": 60, "critical": 90}) == {
            "warning": 60,
            "critical": 90,
        }

    def test_warning_wins_over_attention(self) -> None:
        migrated = migrate_thresholds({"attention": 60, "warning": 65, "critical": 90})
        assert migrated["warning"] == 65

    def test_does_not_mutate_input(self) -> None:
        raw = {"attention": 60, "critical": 90}
        migrate_thresholds(raw)
        assert raw == {"attention": 60, "critical": 90}

    def test_idempotent(self) -> None:
        once = migrate_thresholds({"attention": 60, "critical": 90})
        assert migrate_thresholds(once) == once


class TestExistingRule:
    def test_legacy_attention_becomes_warning(self) -> None:
        draft = normalize(_rule())
        assert draft.thresholds.warning == 250
        assert draft.thresholds.critical == 500
        assert draft.thresholds.consecutive_failures == 2

    def test_copies_fields(self) -> None:
        draft = normalize(_rule())
        assert draft.id == "r1"
        assert draft.check_type == CheckType.SIP_RTT
        assert draft.target == "trunk-a"
        assert draft.targets == ["trunk-a"]
        assert draft.notification_frequency == 30
        assert draft.notify.channels == [ChannelName.EMAIL]
        assert draft.enabled is False

    def test_does_not_mutate_input(self) -> None:
        raw = _rule()
        normalize(raw)
        assert raw["thresholds"]["attention"] == 250

    def test_missing_levels_use_table(self) -> None:
        draft = normalize(_rule(check_type="memory", thresholds={}))
        assert draft.thresholds.warning == 75
        assert draft.thresholds.critical == 90

    def test_missing_thresholds_entirely(self) -> None:
        draft = normalize({"_id": "r1", "check_type": "cpu", "target": "System-wide"})
        assert draft.thresholds == ThresholdSpec(warning=70, critical=90)
        assert draft.notification_frequency == 15
        assert draft.notify.channels == [ChannelName.SLACK]

    def test_out_of_range_levels_are_clamped(self) -> None:
        draft = normalize(_rule(thresholds={"warning": 2500, "critical": 3000}))
        assert draft.thresholds.warning == 2000
        assert draft.thresholds.critical == 2000

    def test_list_target_becomes_targets(self) -> None:
        draft = normalize(_rule(check_type="disk", target=["/", "/var"]))
        assert draft.targets == ["/", "/var"]
        assert draft.target == "/"

    def test_accepts_monitoring_rule_model(self) -> None:
        rule = MonitoringRule(
            _id="r9",
            check_type=CheckType.BANDWIDTH,
            target="eth0",
            thresholds=ThresholdSpec(warning=40, critical=80),
        )
        draft = normalize(rule)
        assert draft.id == "r9"
        assert draft.targets == ["eth0"]


class TestMalformedRule:
    @pytest.mark.parametrize("check_type", ["docker", "asterisk", "ping"])
    def test_unsupported_check_type_opens_as_cpu(self, check_type: str) -> None:
        draft = normalize({
            "_id": "r9",
            "check_type": check_type,
            "target": "asterisk",
            "thresholds": {"warning": 1, "critical": 1},
        })
        assert draft.check_type == CheckType.CPU
        assert draft.id == "r9"
        assert draft.targets == ["asterisk"]
        assert (draft.thresholds.warning, draft.thresholds.critical) == (1, 1)

    @pytest.mark.parametrize("bad", ["", "high", None, [], {"x": 1}, True])
    def test_unreadable_levels_use_table(self, bad: Any) -> None:
        draft = normalize(_rule(check_type="disk", thresholds={"warning": bad, "critical": 95}))
        assert draft.thresholds.warning == 80
        assert draft.thresholds.critical == 95

    def test_numeric_strings_are_accepted(self) -> None:
        draft = normalize(_rule(check_type="cpu", thresholds={"warning": "65", "critical": "85.5"}))
        assert (draft.thresholds.warning, draft.thresholds.critical) == (65, 85.5)

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), "nan"])
    def test_non_finite_levels_use_table(self, bad: Any) -> None:
        draft = normalize(_rule(check_type="memory", thresholds={"warning": 60, "critical": bad}))
        assert draft.thresholds.warning == 60
        assert draft.thresholds.critical == 90

    def test_thresholds_not_a_mapping(self) -> None:
        draft = normalize(_rule(check_type="cpu", thresholds="70/90"))
        assert draft.thresholds == ThresholdSpec(warning=70, critical=90)

    def test_bad_failures_and_frequency_fall_back(self) -> None:
        draft = normalize(_rule(
            thresholds={"warning": 300, "critical": 600, "consecutive_failures": "often"},
            notification_frequency="hourly",
        ))
        assert draft.thresholds.consecutive_failures is None
        assert draft.notification_frequency == 15

    def test_unknown_channels_dropped(self) -> None:
        draft = normalize(_rule(notify={"channels": ["sms", "email", "pager"]}))
        assert draft.notify.channels == [ChannelName.EMAIL]

    def test_malformed_channels_use_default(self) -> None:
        draft = normalize(_rule(notify={"channels": "email"}))
        assert draft.notify.channels == [ChannelName.SLACK]


class TestIdempotence:
    @pytest.mark.parametrize(
        "thresholds",
        [
            {"attention": 250, "critical": 500},
            {"attention": 250, "warning": 300, "critical": 500},
            {"attention": 250},
        ],
    )
    def test_normalize_twice_is_noop(self, thresholds: dict[str, Any]) -> None:
        once = normalize(_rule(thresholds=thresholds))
        assert normalize(once) == once
