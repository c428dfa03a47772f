from __future__ import annotations

import logging
from typing import Dict, Optional

from .differ import diff_animals, diff_statistics, diff_warnings, filter_significant_changes
from .schemas import (
    ChangeReport,
    CountChange,
    GameTimeChange,
    LivestockChanges,
    Snapshot,
    SnapshotSummary,
    WarningChanges,
)
from .store import SnapshotStore

logger = logging.getLogger(__name__)

CURRENT = "current"
PREVIOUS = "previous"


def game_time_change(old: Optional[Snapshot], new: Snapshot) -> GameTimeChange:
    before = old.game_time if old else None
    after = new.game_time
    before_key = before.key() if before else None
    after_key = after.key() if after else None
    return GameTimeChange(old=before, new=after, changed=before_key != after_key)


def _has_changes(livestock: LivestockChanges, warnings: WarningChanges, statistics: Dict[str, CountChange]) -> bool:
    return (
        not livestock.is_empty()
        or bool(warnings.new)
        or bool(warnings.resolved)
        or any(c.changed for c in statistics.values())
    )


def build_report(old: Optional[Snapshot], new: Snapshot) -> ChangeReport:
    """Compose livestock, warning, statistics and game-time changes between two snapshots."""
    livestock = diff_animals(old.animals if old else [], new.animals)
    warnings = diff_warnings(old.pastures if old else [], new.pastures)
    statistics = diff_statistics(old, new)

    return ChangeReport(
        livestock=livestock,
        warnings=warnings,
        statistics=statistics,
        game_time=game_time_change(old, new),
        has_changes=_has_changes(livestock, warnings, statistics),
    )


def significant_only(report: ChangeReport) -> ChangeReport:
    """Narrow a report to the livestock updates worth surfacing for a live feed."""
    livestock = filter_significant_changes(report.livestock)
    return report.model_copy(
        update={
            "livestock": livestock,
            "has_changes": _has_changes(livestock, report.warnings, report.statistics),
        }
    )


class ComparisonSession:
    """
    Keeps the last computed snapshot so each update can be compared with it.

    The snapshot lives in a SnapshotStore; the session itself holds no state
    between requests.
    """

    def __init__(self, store: SnapshotStore):
        self.store = store

    def last(self) -> Optional[Snapshot]:
        return self.store.get(CURRENT)

    def latest_report(self) -> Optional[ChangeReport]:
        """Rebuild the report between the two most recent updates, if there were two."""
        previous = self.store.get(PREVIOUS)
        current = self.last()
        if previous is None or current is None:
            return None
        return build_report(previous, current)

    def advance(self, snapshot: Snapshot) -> Optional[ChangeReport]:
        """
        Compare `snapshot` with the last one and make it the new baseline.

        Returns None when there is nothing to compare with, or when the
        comparison fails; a failed comparison never blocks storing the update.
        """
        previous = self.last()
        report = None
        if previous is not None:
            try:
                report = build_report(previous, snapshot)
            except Exception:
                logger.exception("Change comparison failed, skipping this cycle")
                report = None

        if previous is not None:
            self.store.put(PREVIOUS, previous)
        self.store.put(CURRENT, snapshot)
        if report is not None:
            logger.info(
                "Change report: +%d -%d ~%d animals, %d new / %d resolved warnings",
                len(report.livestock.added),
                len(report.livestock.removed),
                len(report.livestock.updated),
                len(report.warnings.new),
                len(report.warnings.resolved),
            )
        return report

    def clear(self) -> None:
        self.store.delete(CURRENT)
        self.store.delete(PREVIOUS)
        logger.info("Comparison context cleared")


def summarize(snapshot: Snapshot) -> SnapshotSummary:
    game_time = snapshot.game_time
    return SnapshotSummary(
        animal_count=len(snapshot.animals),
        pasture_count=len(snapshot.pastures),
        farm_count=len(snapshot.farms),
        warning_count=sum(len(p.all_warnings) for p in snapshot.pastures),
        game_time=game_time,
        game_time_display=game_time.display() if game_time else None,
    )
