"""
Transition tables for workflow status fields.

Each workflow declares its allowed transitions as data and validates
every status change through TransitionTable.validate.
"""

from typing import Any, Dict, FrozenSet, Generic, Iterable, Mapping, Optional, TypeVar

from motorpool.core.exceptions import InvalidTransitionError

TStatus = TypeVar("TStatus")


class TransitionTable(Generic[TStatus]):
    """
    Map of source status to the set of target statuses it may move to.
    Statuses with no outgoing transitions are terminal.
    """

    def __init__(self, entity_type: str, transitions: Mapping[TStatus, Iterable[TStatus]]):
        self.entity_type = entity_type
        self._transitions: Dict[TStatus, FrozenSet[TStatus]] = {
            source: frozenset(targets) for source, targets in transitions.items()
        }

    def allowed_targets(self, current: TStatus) -> FrozenSet[TStatus]:
        return self._transitions.get(current, frozenset())

    def can_transition(self, current: TStatus, target: TStatus) -> bool:
        return target in self.allowed_targets(current)

    def is_terminal(self, status: TStatus) -> bool:
        return not self.allowed_targets(status)

    def validate(self, current: TStatus, target: TStatus, entity_id: Optional[Any] = None) -> None:
        """
        Raises:
            InvalidTransitionError: If target is not reachable from current
        """
        if not self.can_transition(current, target):
            raise InvalidTransitionError(self.entity_type, current, target, entity_id)

    @property
    def statuses(self) -> FrozenSet[TStatus]:
        reachable = set(self._transitions)
        for targets in self._transitions.values():
            reachable.update(targets)
        return frozenset(reachable)

    def __repr__(self) -> str:
        return f"TransitionTable({self.entity_type}, {len(self._transitions)} states)"
