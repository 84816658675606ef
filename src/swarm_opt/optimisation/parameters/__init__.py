"""Control parameters consumed by the swarm strategies."""

from .control import (
    ConstantControlParameter,
    ControlParameter,
    LinearDecreasingControlParameter,
    UpdatableControlParameter,
    as_control_parameter,
)

__all__ = [
    "ControlParameter",
    "ConstantControlParameter",
    "LinearDecreasingControlParameter",
    "UpdatableControlParameter",
    "as_control_parameter",
]
