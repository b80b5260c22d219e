"""Tabular storage of Q-values keyed by state fingerprint."""

import copy
import logging
from typing import Dict, Iterable, List

from .errors import ActionNotFoundError, EmptyActionSetError, StateNotFoundError
from .node import Node
from .types import Action

logger = logging.getLogger(__name__)

CSV_HEADER = "State;Up;Right;Down;Left"


class QTable:
    """Maps state fingerprints to per-action value estimates.

    Entries are created lazily the first time a state is seen. Nodes with the
    same local passability pattern share one entry.
    """

    def __init__(self, initial_value: float = 0.0):
        self.initial_value = initial_value
        self._table: Dict[str, Dict[Action, float]] = {}

    def add_entry(self, node: Node, actions: Iterable[Action]) -> bool:
        """
        Register a new state with all its actions at the initial value.

        Args:
            node: Node whose fingerprint identifies the state
            actions: Actions available in that state

        Returns:
            True if the entry was created, False if the state already existed
        """
        state = node.state
        if state in self._table:
            logger.error("State %s already exists in the Q-table, entry not added", state)
            return False
        self._table[state] = {action: self.initial_value for action in actions}
        return True

    def get_q_value(self, node: Node, action: Action) -> float:
        """
        Raises:
            StateNotFoundError: If the node's state has no entry
            ActionNotFoundError: If the entry has no value for the action
        """
        actions = self._entry(node)
        if action not in actions:
            raise ActionNotFoundError(f"Action {action.name} does not exist for state {node.state}")
        return actions[action]

    def set_q_value(self, node: Node, action: Action, value: float) -> None:
        """
        Raises:
            StateNotFoundError: If the node's state has no entry
            ActionNotFoundError: If the entry has no value for the action
        """
        actions = self._entry(node)
        if action not in actions:
            raise ActionNotFoundError(f"Action {action.name} does not exist for state {node.state}")
        actions[action] = value

    def get_highest_q_value_of_state(self, node: Node) -> float:
        """
        Raises:
            StateNotFoundError: If the node's state has no entry
            EmptyActionSetError: If the state has no actions
        """
        actions = self._entry(node)
        if not actions:
            raise EmptyActionSetError(f"State {node.state} has no actions")
        return max(actions.values())

    def get_actions(self, node: Node) -> Dict[Action, float]:
        """Action values of a state. Creates an empty entry for unknown states."""
        if node.state not in self._table:
            logger.warning("Creation of state %s has been forced", node.state)
        return self._table.setdefault(node.state, {})

    def state_exists(self, node: Node) -> bool:
        return node.state in self._table

    def action_exists(self, node: Node, action: Action) -> bool:
        return action in self._table.get(node.state, {})

    def states(self) -> List[str]:
        return list(self._table)

    def clear(self) -> None:
        self._table.clear()

    def size(self) -> int:
        return len(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, state: str) -> bool:
        return state in self._table

    def _entry(self, node: Node) -> Dict[Action, float]:
        try:
            return self._table[node.state]
        except KeyError:
            raise StateNotFoundError(f"State {node.state} does not exist in the Q-table") from None

    def copy(self) -> "QTable":
        """Deep copy, used to snapshot the table at the end of an episode."""
        clone = QTable(self.initial_value)
        clone._table = copy.deepcopy(self._table)
        return clone

    def __deepcopy__(self, memo) -> "QTable":
        return self.copy()

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        """Plain dictionary representation for JSON export."""
        return {
            state: {action.value: value for action, value in actions.items()}
            for state, actions in self._table.items()
        }

    def to_csv(self) -> str:
        """
        CSV export with header State;Up;Right;Down;Left.

        Missing actions are written as NaN. There is no trailing newline.
        """
        lines = [CSV_HEADER]
        for state, actions in self._table.items():
            values = [_format_value(actions[a]) if a in actions else "NaN" for a in Action]
            lines.append(";".join([state] + values))
        return "\n".join(lines)

    def __eq__(self, other) -> bool:
        if not isinstance(other, QTable):
            return NotImplemented
        return self.initial_value == other.initial_value and self._table == other._table

    __hash__ = None

    def __repr__(self) -> str:
        return f"QTable(states={len(self._table)}, initial_value={self.initial_value})"


def _format_value(value: float) -> str:
    if value != value:
        return "NaN"
    if value == float("inf"):
        return "Infinity"
    if value == float("-inf"):
        return "-Infinity"
    return repr(float(value))
