"""RuleEditor: owns one open-to-close session of the monitoring-rule modal."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Literal

import structlog

from fleetwatch.core.config import RuleEditorConfig
from fleetwatch.core.types import (
    ChannelName,
    CheckType,
    Draft,
    MonitoringRule,
    TargetCandidate,
    TelemetrySnapshot,
)
from fleetwatch.rules.defaults import parse_check_type
from fleetwatch.rules.exceptions import EditorClosedError
from fleetwatch.rules.normalizer import RuleInput, normalize
from fleetwatch.rules.projector import ActiveDraftProjector
from fleetwatch.rules.session import SessionStore
from fleetwatch.rules.submission import expand
from fleetwatch.rules.targets import resolve_targets, toggle_target

logger = structlog.stdlib.get_logger()

SaveCallback = Callable[[list[MonitoringRule]], Awaitable[None] | None]
CancelCallback = Callable[[], Awaitable[None] | None]

TelemetryInput = TelemetrySnapshot | Mapping[str, Any] | None


def _as_snapshot(telemetry: TelemetryInput) -> TelemetrySnapshot | None:
    if telemetry is None or isinstance(telemetry, TelemetrySnapshot):
        return telemetry
    return TelemetrySnapshot.model_validate(telemetry)


async def _invoke(callback: Callable[..., Awaitable[None] | None], *args: Any) -> None:
    result = callback(*args)
    if asyncio.iscoroutine(result):
        await result


class RuleEditor:
    """Session controller for creating or editing monitoring rules.

    Constructing the editor opens the session.  Edits to any number of
    check types are kept side by side; ``submit`` fans them out into one
    rule per (type, target) and hands them to *on_save*.  Once submitted
    or cancelled, the session state is dropped and the editor refuses
    further calls.

    Usage::

        editor = RuleEditor(on_save=persist, on_cancel=close_modal,
                            initial=existing_rule, telemetry=latest)
        editor.select_type("disk")
        editor.toggle_target("/var")
        editor.set_threshold("critical", 95)
        await editor.submit()
    """

    def __init__(
        self,
        on_save: SaveCallback,
        on_cancel: CancelCallback | None = None,
        initial: RuleInput | None = None,
        telemetry: TelemetryInput = None,
        config: RuleEditorConfig | None = None,
    ) -> None:
        if config is None:
            from fleetwatch.core.config import get_settings

            config = get_settings().editor

        self._config = config
        self._on_save = on_save
        self._on_cancel = on_cancel
        self._initial = initial
        self._telemetry = _as_snapshot(telemetry)
        self._store: SessionStore | None = SessionStore(config)

        draft = normalize(initial, config)
        if initial is not None:
            self._store.seed(draft.check_type, draft.session_config())
            self._store.mark_modified(draft.check_type)
        self._projector: ActiveDraftProjector | None = ActiveDraftProjector(
            self._store, draft,
        )
        self._log = logger.bind(rule_id=draft.id, editing=initial is not None)
        self._log.debug("rule_editor_opened", check_type=draft.check_type)

    # ── Properties ────────────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        return self._store is not None

    @property
    def is_editing(self) -> bool:
        """Whether the session was opened on an existing rule."""
        return self._initial is not None

    @property
    def draft(self) -> Draft:
        return self._require_projector().draft

    @property
    def active_type(self) -> CheckType:
        return self._require_projector().active_type

    @property
    def modified_types(self) -> tuple[CheckType, ...]:
        return self._require_store().modified

    @property
    def store(self) -> SessionStore:
        return self._require_store()

    def _require_store(self) -> SessionStore:
        if self._store is None:
            raise EditorClosedError("Rule editor session is closed")
        return self._store

    def _require_projector(self) -> ActiveDraftProjector:
        if self._projector is None:
            raise EditorClosedError("Rule editor session is closed")
        return self._projector

    # ── Telemetry ─────────────────────────────────────────────────

    def update_telemetry(self, telemetry: TelemetryInput) -> None:
        """Replace the snapshot target candidates are computed from."""
        self._require_store()
        self._telemetry = _as_snapshot(telemetry)

    def candidates(self) -> list[TargetCandidate]:
        """Selectable targets for the active type, flagged with the selection."""
        draft = self.draft
        return resolve_targets(
            draft.check_type,
            self._telemetry,
            selected=draft.targets,
            disk_paths=self._config.disk_paths,
        )

    # ── Edits ─────────────────────────────────────────────────────

    def select_type(self, check_type: CheckType | str) -> Draft:
        return self._require_projector().select_type(parse_check_type(check_type))

    def edit_field(self, patch: Mapping[str, Any] | None = None, **fields: Any) -> Draft:
        """Merge fields into the active draft; marks the active type modified."""
        return self._require_projector().edit_field({**(patch or {}), **fields})

    def set_threshold(
        self,
        level: Literal["warning", "critical"],
        value: float,
    ) -> Draft:
        return self.edit_field(thresholds={level: value})

    def set_consecutive_failures(self, count: int) -> Draft:
        return self.edit_field(thresholds={"consecutive_failures": count})

    def set_notification_frequency(self, minutes: int) -> Draft:
        return self.edit_field(notification_frequency=minutes)

    def toggle_channel(self, channel: ChannelName | str) -> Draft:
        name = ChannelName(channel)
        channels = list(self.draft.notify.channels)
        if name in channels:
            channels.remove(name)
        else:
            channels.append(name)
        return self.edit_field(notify={"channels": channels})

    def toggle_target(self, target: str) -> Draft:
        draft = self.draft
        targets = toggle_target(draft.check_type, draft.targets, target)
        if targets == draft.targets:
            return draft
        return self.edit_field(targets=targets)

    # ── Submit / cancel ───────────────────────────────────────────

    def build_rules(self) -> list[MonitoringRule]:
        """Rules that ``submit`` would hand to the save callback."""
        return expand(self._require_store(), original=self._initial)

    async def submit(self) -> list[MonitoringRule]:
        """Fan session edits out into rules and pass them to *on_save*.

        With nothing to save this behaves exactly like :meth:`cancel`.  If
        the save callback raises, the session stays open so the operator
        can retry.
        """
        rules = self.build_rules()
        if not rules:
            self._log.info("rule_editor_empty_submit")
            await self.cancel()
            return []

        try:
            await _invoke(self._on_save, rules)
        except Exception:
            self._log.exception("rule_save_failed", rule_count=len(rules))
            raise

        self._log.info(
            "rule_editor_saved",
            rule_count=len(rules),
            types=[str(t) for t in self._require_store().modified],
        )
        self._close()
        return rules

    async def cancel(self) -> None:
        """Discard every in-progress edit and notify *on_cancel*."""
        self._require_store()
        self._close()
        self._log.info("rule_editor_cancelled")
        if self._on_cancel is not None:
            await _invoke(self._on_cancel)

    def _close(self) -> None:
        if self._store is not None:
            self._store.clear()
        self._store = None
        self._projector = None
