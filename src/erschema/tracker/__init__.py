"""Modification trackers: veto-capable observers of every model mutation."""

from erschema.tracker.base import EmptyModelModificationTracker, ModelModificationTracker
from erschema.tracker.history import HistoryModificationTracker, dump_journal, load_journal
from erschema.tracker.replay import apply_event, replay_journal
from erschema.tracker.statement import StatementModificationTracker
from erschema.tracker.vetoing import VetoingModificationTracker

__all__ = [
    "EmptyModelModificationTracker",
    "HistoryModificationTracker",
    "ModelModificationTracker",
    "StatementModificationTracker",
    "VetoingModificationTracker",
    "apply_event",
    "dump_journal",
    "load_journal",
    "replay_journal",
]
