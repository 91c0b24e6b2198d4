"""Monitoring-rule editor: defaults, session store, targets, submission."""

from fleetwatch.rules.defaults import (
    SYSTEM_WIDE,
    TYPE_DEFAULTS,
    CheckDefaults,
    defaults_for,
    parse_check_type,
)
from fleetwatch.rules.editor import CancelCallback, RuleEditor, SaveCallback
from fleetwatch.rules.evaluation import (
    BinaryStatusRule,
    NumericThresholdRule,
    ThresholdPolicy,
    evaluate_rule,
    policy_for,
)
from fleetwatch.rules.exceptions import (
    EditorClosedError,
    InvalidFieldError,
    RuleEditorError,
    UnknownCheckTypeError,
)
from fleetwatch.rules.normalizer import migrate_thresholds, normalize
from fleetwatch.rules.projector import ActiveDraftProjector
from fleetwatch.rules.session import SessionStore
from fleetwatch.rules.submission import expand
from fleetwatch.rules.targets import resolve_targets, toggle_target

__all__ = [
    "SYSTEM_WIDE",
    "TYPE_DEFAULTS",
    "ActiveDraftProjector",
    "BinaryStatusRule",
    "CancelCallback",
    "CheckDefaults",
    "EditorClosedError",
    "InvalidFieldError",
    "NumericThresholdRule",
    "RuleEditor",
    "RuleEditorError",
    "SaveCallback",
    "SessionStore",
    "ThresholdPolicy",
    "UnknownCheckTypeError",
    "defaults_for",
    "evaluate_rule",
    "expand",
    "migrate_thresholds",
    "normalize",
    "parse_check_type",
    "policy_for",
    "resolve_targets",
    "toggle_target",
]
