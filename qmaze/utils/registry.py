"""Registry mapping type tags to configurable training components.

Components are written in configs as {"type": "<ClassName>", "params": {...}}.
"""

import inspect
from typing import Any, Callable, Dict, Mapping, Optional

from ..domain import complexity, criteria, operators, policies
from ..domain.errors import ConfigurationError

POLICIES: Dict[str, Callable[..., policies.ExplorationPolicy]] = {
    cls.__name__: cls for cls in (
        policies.GreedyPolicy,
        policies.RandomPolicy,
        policies.EpsilonGreedyPolicy,
        policies.DecreasingEpsilonPolicy,
        policies.EpsilonFirstPolicy,
        policies.SoftmaxPolicy,
        policies.VDBEPolicy,
    )
}

EPISODE_CRITERIA: Dict[str, Callable[..., criteria.Criterion]] = {
    cls.__name__: cls for cls in (
        criteria.EndStateReached,
        criteria.MaxActionsReached,
        criteria.AgentExceedsOptimalPathPercentage,
        criteria.AgentExceedsOptimalPathStatic,
    )
}

LEVEL_CRITERIA: Dict[str, Callable[..., criteria.Criterion]] = {
    cls.__name__: cls for cls in (
        criteria.MaxEpisodesReached,
        criteria.PerformanceAchievedPercentageTolerance,
        criteria.PerformanceAchievedStaticTolerance,
    )
}

OPERATORS: Dict[str, Callable[..., operators.MazeOperator]] = {
    cls.__name__: cls for cls in (
        operators.ResizeOperator,
        operators.NewPathOperator,
        operators.DeadEndOperator,
        operators.ChangeOptimalPathOperator,
    )
}

COMPLEXITY_FUNCTIONS: Dict[str, Callable[..., complexity.ComplexityFunction]] = {
    cls.__name__: cls for cls in (
        complexity.DefaultComplexityFunction,
    )
}


def create(tag: str, params: Optional[Mapping[str, Any]] = None,
           registry: Optional[Mapping[str, Callable]] = None) -> Any:
    """
    Instantiate a registered component.

    Args:
        tag: Class name of the component
        params: Keyword arguments for the constructor
        registry: Registry to look the tag up in (defaults to all of them)

    Returns:
        The new component

    Raises:
        ConfigurationError: If the tag is unknown or the parameters do not match
    """
    if registry is None:
        registry = {**POLICIES, **EPISODE_CRITERIA, **LEVEL_CRITERIA, **OPERATORS, **COMPLEXITY_FUNCTIONS}
    if tag not in registry:
        raise ConfigurationError(f"Unknown component type '{tag}', expected one of {sorted(registry)}")

    factory = registry[tag]
    params = dict(params or {})
    expected = inspect.signature(factory).parameters
    unknown = sorted(set(params) - set(expected))
    missing = sorted(name for name, p in expected.items()
                     if p.default is inspect.Parameter.empty and name not in params)
    if unknown or missing:
        raise ConfigurationError(
            f"Invalid parameters for {tag}: unknown {unknown}, missing {missing}")
    return factory(**params)


def from_spec(spec: Mapping[str, Any], registry: Optional[Mapping[str, Callable]] = None) -> Any:
    """Instantiate a component from its {"type", "params"} spec."""
    if not isinstance(spec, Mapping) or "type" not in spec:
        raise ConfigurationError(f"Component spec must be an object with a 'type' key, got {spec!r}")
    return create(spec["type"], spec.get("params"), registry)


def to_spec(component: Any) -> Dict[str, Any]:
    """Spec of a component, the inverse of from_spec."""
    return {"type": type(component).__name__, "params": dict(component.params())}
