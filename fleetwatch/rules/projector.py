"""ActiveDraftProjector: the single draft currently shown in the editor."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from fleetwatch.core.types import CheckType, Draft, SessionConfig
from fleetwatch.rules.session import SessionStore

logger = structlog.stdlib.get_logger()


def sync_targets(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Keep ``target`` and ``targets`` consistent inside an edit patch.

    ``targets`` wins when both are present; ``target`` is always
    ``targets[0]`` (or empty).
    """
    synced = dict(patch)
    if "targets" in synced:
        targets: Sequence[str] = synced["targets"] or []
        synced["targets"] = list(targets)
        synced["target"] = targets[0] if targets else ""
    elif "target" in synced:
        target = synced["target"] or ""
        synced["target"] = target
        synced["targets"] = [target] if target else []
    return synced


class ActiveDraftProjector:
    """Projects the selected check type's session config as a Draft.

    Usage::

        projector = ActiveDraftProjector(store, normalize(rule))
        projector.select_type(CheckType.DISK)
        projector.edit_field({"targets": ["/", "/var"]})
    """

    def __init__(self, store: SessionStore, draft: Draft) -> None:
        self._store = store
        self._draft = draft.model_copy(deep=True)

    @property
    def draft(self) -> Draft:
        """Copy of the active draft."""
        return self._draft.model_copy(deep=True)

    @property
    def active_type(self) -> CheckType:
        return self._draft.check_type

    def _project(self, check_type: CheckType, config: SessionConfig) -> Draft:
        targets = list(config.targets)
        if not targets and config.target:
            targets = [config.target]
        self._draft = self._draft.model_copy(
            update={
                "check_type": check_type,
                "thresholds": config.thresholds,
                "targets": targets,
                "target": targets[0] if targets else "",
                "notification_frequency": config.notification_frequency,
                "notify": config.notify,
            },
            deep=True,
        )
        return self.draft

    def select_type(self, check_type: CheckType) -> Draft:
        """Switch the draft to *check_type*, restoring its session edits.

        A type seen for the first time is seeded from the defaults table
        but not marked modified.
        """
        config = self._store.stored(check_type)
        if config is None:
            config = self._store.seed(check_type)
        logger.debug(
            "rule_type_selected",
            check_type=check_type,
            modified=self._store.is_modified(check_type),
        )
        return self._project(check_type, config)

    def edit_field(self, patch: Mapping[str, Any]) -> Draft:
        """Apply *patch* to the active draft and write it through to the store."""
        synced = sync_targets(patch)
        config = self._store.update(self.active_type, synced)
        logger.debug(
            "rule_field_edited",
            check_type=self.active_type,
            fields=sorted(patch),
        )
        return self._project(self.active_type, config)
