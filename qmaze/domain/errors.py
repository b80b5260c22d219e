"""Exceptions raised by the maze trainer."""


class ConfigurationError(ValueError):
    """Raised when a component is constructed with invalid parameters."""

    pass


class GraphError(Exception):
    """Raised when a graph query on a maze cannot be answered."""

    pass


class NoPathExistsError(GraphError):
    """Raised when the end node is unreachable from the start node."""

    pass


class StateLookupError(LookupError):
    """Raised when the Q-table is queried for something it does not hold."""

    pass


class StateNotFoundError(StateLookupError):
    """Raised when a state has no entry in the Q-table."""

    pass


class ActionNotFoundError(StateLookupError):
    """Raised when a state entry has no value for the requested action."""

    pass


class EmptyActionSetError(StateLookupError):
    """Raised when a state exists but has no actions recorded."""

    pass


class NoOperatorApplicableError(RuntimeError):
    """Raised when no maze operator could change the maze between levels."""

    pass


def check_parameter(condition: bool, name: str, value, requirement: str) -> None:
    """
    Raise ConfigurationError unless a constructor parameter is acceptable.

    Args:
        condition: True if the value is acceptable
        name: Parameter name shown in the message
        value: Offending value
        requirement: Human-readable requirement, e.g. "greater than 0"

    Raises:
        ConfigurationError: If condition is False
    """
    if not condition:
        raise ConfigurationError(f"Parameter [{name}] = {value} has to be {requirement}")
