"""
Control parameters for swarm strategies.

A control parameter is a scalar value source consulted by the velocity
update strategies (inertia weight, acceleration coefficients, vmax, GC rho).
Three kinds are provided:

- **Constant**: fixed at construction, can never change.
- **Linear decreasing**: adaptive, moves from an initial to a final value as
  the run progresses. Only its own update rule changes it.
- **Updatable**: a plain mutable scalar owned by exactly one strategy, used
  for state the strategy adapts itself (GC rho).

Each strategy owns its parameters. ``duplicate()`` returns an independent
instance so that cloned strategies never share parameter state.
"""

from abc import ABC, abstractmethod


class ControlParameter(ABC):
    """Scalar value source used by the swarm strategies."""

    @abstractmethod
    def get(self) -> float:
        """Return the current value."""

    @abstractmethod
    def set(self, value: float) -> None:
        """Replace the current value."""

    def update(self, progress: float) -> None:
        """Advance the parameter's own update rule. No-op by default."""

    @abstractmethod
    def duplicate(self) -> "ControlParameter":
        """Return an independent copy carrying the current value."""

    def __repr__(self):
        return f"{self.__class__.__name__}({self.get()!r})"


class ConstantControlParameter(ControlParameter):
    """Control parameter whose value never changes after construction."""

    def __init__(self, value: float):
        self._value = float(value)

    def get(self) -> float:
        return self._value

    def set(self, value: float) -> None:
        raise TypeError("Constant control parameters cannot be modified")

    def duplicate(self) -> "ConstantControlParameter":
        return ConstantControlParameter(self._value)


class UpdatableControlParameter(ControlParameter):
    """Mutable scalar owned by the strategy that adapts it."""

    def __init__(self, value: float):
        self._value = float(value)

    def get(self) -> float:
        return self._value

    def set(self, value: float) -> None:
        self._value = float(value)

    def duplicate(self) -> "UpdatableControlParameter":
        return UpdatableControlParameter(self._value)


class LinearDecreasingControlParameter(ControlParameter):
    """
    Adaptive parameter moving linearly from ``initial`` to ``final``.

    The value is a function of run progress only:
    ``value = initial - (initial - final) * progress`` with progress clipped
    to [0, 1]. Typical use is an inertia weight schedule such as 0.9 -> 0.4.
    """

    def __init__(self, initial: float, final: float):
        self.initial = float(initial)
        self.final = float(final)
        self._value = self.initial

    def get(self) -> float:
        return self._value

    def set(self, value: float) -> None:
        raise TypeError(
            "Adaptive control parameters change only through their update rule"
        )

    def update(self, progress: float) -> None:
        progress = min(max(progress, 0.0), 1.0)
        self._value = self.initial - (self.initial - self.final) * progress

    def duplicate(self) -> "LinearDecreasingControlParameter":
        copy = LinearDecreasingControlParameter(self.initial, self.final)
        copy._value = self._value
        return copy


def as_control_parameter(value) -> ControlParameter:
    """Wrap a plain number in a constant parameter; pass parameters through."""
    if isinstance(value, ControlParameter):
        return value
    return ConstantControlParameter(value)
