"""Submission expander: session edits → flat list of persistable rules."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel

from fleetwatch.core.types import CheckType, MonitoringRule
from fleetwatch.rules.defaults import SYSTEM_WIDE
from fleetwatch.rules.session import SessionStore

logger = structlog.stdlib.get_logger()


def _identity(original: Mapping[str, Any] | BaseModel | None) -> tuple[str, str, str] | None:
    """(id, check_type, target) of the rule being edited, if it has an id."""
    if original is None:
        return None
    if isinstance(original, BaseModel):
        data = original.model_dump(by_alias=True)
    else:
        data = dict(original)
    rule_id = data.get("_id", data.get("id"))
    if rule_id is None:
        return None
    return str(rule_id), str(data.get("check_type", "")), str(data.get("target") or "")


def expand(
    store: SessionStore,
    *,
    original: Mapping[str, Any] | BaseModel | None = None,
    modified: Iterable[CheckType] | None = None,
) -> list[MonitoringRule]:
    """Build one rule per (modified check type, target).

    Types are visited in the order they were first modified.  A type with
    no selected targets falls back to its single ``target`` or to
    ``System-wide``.  The *original* rule's ``_id`` is kept only on the
    rule whose check type and target both match it exactly; every other
    rule is new.

    Returns an empty list when nothing was modified, which callers treat
    as a cancel.
    """
    identity = _identity(original)
    rules: dict[tuple[CheckType, str], MonitoringRule] = {}

    for check_type in (store.modified if modified is None else modified):
        config = store.stored(check_type)
        if config is None:
            continue

        targets = config.targets or [config.target or SYSTEM_WIDE]
        for target in targets:
            rule = MonitoringRule(
                check_type=check_type,
                target=target,
                thresholds=config.thresholds.model_copy(),
                notification_frequency=config.notification_frequency,
                notify=config.notify.model_copy(deep=True),
                enabled=True,
            )
            if identity is not None and identity[1:] == (check_type, target):
                rule.id = identity[0]
            rules[(check_type, target)] = rule

    result = list(rules.values())
    logger.info(
        "rule_submission_expanded",
        types=[str(t) for t in dict.fromkeys(r.check_type for r in result)],
        rule_count=len(result),
        updates=sum(1 for r in result if r.id is not None),
    )
    return result
