"""Modification tracker protocol.

The model describes every proposed mutation as a :class:`ChangeEvent` and
hands it to :meth:`ModelModificationTracker.verify` before anything changes.
The event is dispatched to the capability hook named after its operation;
a hook may raise :class:`VetoError` and must not have side effects. Only once
the change has been applied does the model call :meth:`record`, so a veto or a
validation failure never reaches the journal.
"""

from __future__ import annotations

from erschema.core.types import ChangeEvent


class ModelModificationTracker:
    """Base tracker: every hook defers to :meth:`check`, which accepts everything."""

    def verify(self, event: ChangeEvent) -> None:
        """Announce a proposed change; raises VetoError to refuse it."""
        hook = getattr(self, event.operation.value)
        hook(event)

    def verify_all(self, events: list[ChangeEvent]) -> None:
        """Announce a group of changes applied together; one veto refuses them all."""
        for event in events:
            self.verify(event)

    def record(self, event: ChangeEvent) -> None:
        """Called after ``event`` has been applied to the model."""

    def check(self, event: ChangeEvent) -> None:
        """Common veto point of all capability hooks."""

    # Capability hooks, one per ChangeOperation

    def add_table(self, event: ChangeEvent) -> None:
        self.check(event)

    def remove_table(self, event: ChangeEvent) -> None:
        self.check(event)

    def rename_table(self, event: ChangeEvent) -> None:
        self.check(event)

    def change_table_comment(self, event: ChangeEvent) -> None:
        self.check(event)

    def add_relation(self, event: ChangeEvent) -> None:
        self.check(event)

    def remove_relation(self, event: ChangeEvent) -> None:
        self.check(event)

    def change_relation(self, event: ChangeEvent) -> None:
        self.check(event)

    def add_attribute_to_table(self, event: ChangeEvent) -> None:
        self.check(event)

    def remove_attribute_from_table(self, event: ChangeEvent) -> None:
        self.check(event)

    def rename_attribute(self, event: ChangeEvent) -> None:
        self.check(event)

    def change_attribute(self, event: ChangeEvent) -> None:
        self.check(event)

    def add_index_to_table(self, event: ChangeEvent) -> None:
        self.check(event)

    def add_primary_key_to_table(self, event: ChangeEvent) -> None:
        self.check(event)

    def remove_index_from_table(self, event: ChangeEvent) -> None:
        self.check(event)

    def remove_primary_key_from_table(self, event: ChangeEvent) -> None:
        self.check(event)

    def change_index(self, event: ChangeEvent) -> None:
        self.check(event)

    def add_view(self, event: ChangeEvent) -> None:
        self.check(event)

    def remove_view(self, event: ChangeEvent) -> None:
        self.check(event)

    def add_domain(self, event: ChangeEvent) -> None:
        self.check(event)

    def remove_domain(self, event: ChangeEvent) -> None:
        self.check(event)

    def add_subject_area(self, event: ChangeEvent) -> None:
        self.check(event)

    def remove_subject_area(self, event: ChangeEvent) -> None:
        self.check(event)


class EmptyModelModificationTracker(ModelModificationTracker):
    """Accepts everything and records nothing."""
