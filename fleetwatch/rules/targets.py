"""Target candidate resolution and selection rules per check type."""

from __future__ import annotations

from collections.abc import Sequence

from fleetwatch.core.config import RuleEditorConfig
from fleetwatch.core.types import CheckType, TargetCandidate, TelemetrySnapshot
from fleetwatch.rules.defaults import SYSTEM_WIDE

SIP_TYPES = frozenset({CheckType.SIP_RTT, CheckType.SIP_REGISTRATION})
INTERFACE_TYPES = frozenset({CheckType.BANDWIDTH, CheckType.UTILIZATION})
SYSTEM_ONLY_TYPES = frozenset({CheckType.CPU, CheckType.MEMORY})


def is_target_editable(check_type: CheckType) -> bool:
    """CPU and memory rules always watch the whole system."""
    return check_type not in SYSTEM_ONLY_TYPES


def candidate_ids(
    check_type: CheckType,
    snapshot: TelemetrySnapshot | None = None,
    disk_paths: Sequence[str] | None = None,
) -> list[str]:
    """Selectable target ids for *check_type*, in display order.

    Disk paths default to the editor config's ``disk_paths``.
    """
    extra = (snapshot or TelemetrySnapshot()).extra

    if check_type in SIP_TYPES:
        # dict keeps first-seen order while de-duplicating
        seen: dict[str, None] = {SYSTEM_WIDE: None}
        for reg in extra.registrations:
            seen.setdefault(reg.name, None)
        for contact in extra.contacts:
            seen.setdefault(contact.aor, None)
        return list(seen)

    if check_type in INTERFACE_TYPES:
        return list(dict.fromkeys(i.name for i in extra.interfaces))

    if check_type == CheckType.CONTAINER_STATUS:
        return list(dict.fromkeys(c.name for c in extra.docker.containers))

    if check_type == CheckType.DISK:
        if disk_paths is None:
            disk_paths = RuleEditorConfig().disk_paths
        return list(disk_paths)

    return []


def resolve_targets(
    check_type: CheckType,
    snapshot: TelemetrySnapshot | None = None,
    selected: Sequence[str] = (),
    disk_paths: Sequence[str] | None = None,
) -> list[TargetCandidate]:
    """Candidates for *check_type*, flagged with the current selection."""
    chosen = set(selected)
    return [
        TargetCandidate(id=cid, selected=cid in chosen)
        for cid in candidate_ids(check_type, snapshot, disk_paths)
    ]


def toggle_target(
    check_type: CheckType,
    current: Sequence[str],
    target: str,
) -> list[str]:
    """Return the target selection after the operator clicks *target*.

    SIP types treat ``System-wide`` as exclusive: picking it clears named
    targets, picking a named target drops it.  Other multi-select types
    toggle membership.  CPU/memory selections cannot change.
    """
    if not is_target_editable(check_type):
        return list(current)

    if check_type in SIP_TYPES:
        if target == SYSTEM_WIDE:
            return [SYSTEM_WIDE]
        named = [t for t in current if t != SYSTEM_WIDE]
        if target in named:
            return [t for t in named if t != target]
        return [*named, target]

    if target in current:
        return [t for t in current if t != target]
    return [*current, target]
