#!/usr/bin/env python3
"""
Data models for Orrery.

This module defines the immutable system description shared between the
kinematics engine, the view synchronizer and the UI.

Body kinds
- Sun: fixed at the origin, no orbit.
- Primary / Barycenter: circular orbit around the origin. A barycenter is a
  virtual point and never gets a visual node.
- Moon: circular orbit around a Primary.
- BinaryChild: circular orbit around a Barycenter.

Each kind is its own frozen dataclass carrying exactly the fields it needs, so
a Moon without a parent or a Sun with an orbit cannot be built. SystemConfig
checks the cross-body rules (parents exist and have the right kind, the order
list names every body once). Anything invalid raises ConfigError.

Units and usage
- Lengths are visual units, times are seconds of simulated time, angles are radians.
"""
import enum
import math
from dataclasses import dataclass, field
from typing import ClassVar, Dict, Iterable, Mapping, Optional, Tuple, Union

from .constants import DEFAULT_TIME_SCALE

Color = Tuple[int, int, int]


class ConfigError(ValueError):
    """Raised when a system description is invalid. No engine is built from it."""


class BodyKind(enum.Enum):
    SUN = "Sun"
    PRIMARY = "Primary"
    BARYCENTER = "Barycenter"
    MOON = "Moon"
    BINARY_CHILD = "BinaryChild"

    @classmethod
    def parse(cls, value: str) -> "BodyKind":
        """Match a kind name case-insensitively ("binaryChild", "BINARYCHILD", ...)."""
        if isinstance(value, BodyKind):
            return value
        key = str(value).replace("_", "").replace("-", "").lower()
        for kind in cls:
            if kind.value.lower() == key:
                return kind
        raise ConfigError(f"unknown body kind {value!r}")


def _check_finite(owner: str, label: str, value: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{owner}: {label} must be a number, got {value!r}") from None
    if not math.isfinite(v):
        raise ConfigError(f"{owner}: {label} must be finite, got {value!r}")
    return v


@dataclass(frozen=True)
class Orbit:
    """
    Circular orbit parameters.

    Fields:
    - radius: Orbit radius (> 0)
    - period: Seconds per revolution; zero or negative freezes the body at phase
    - phase: Angle at t = 0
    - inclination: Tilt of the orbital plane about the X axis
    - node: Swing of the tilted plane about the vertical (Y) axis
    """
    radius: float
    period: float
    phase: float = 0.0
    inclination: float = 0.0
    node: float = 0.0

    def __post_init__(self):
        for label in ("radius", "period", "phase", "inclination", "node"):
            object.__setattr__(self, label, _check_finite("orbit", label, getattr(self, label)))
        if self.radius <= 0:
            raise ConfigError(f"orbit radius must be > 0, got {self.radius!r}")

    @property
    def is_static(self) -> bool:
        return self.period <= 0


def _check_common(body) -> None:
    if not isinstance(body.name, str) or not body.name:
        raise ConfigError(f"body name must be a non-empty string, got {body.name!r}")
    if body.visual_radius is not None:
        r = _check_finite(body.name, "visual_radius", body.visual_radius)
        if r <= 0:
            raise ConfigError(f"{body.name}: visual_radius must be > 0, got {r!r}")
        object.__setattr__(body, "visual_radius", r)
    if body.color is not None:
        try:
            r, g, b = (int(c) for c in body.color)
        except (TypeError, ValueError):
            raise ConfigError(f"{body.name}: color must be three integers, got {body.color!r}") from None
        object.__setattr__(body, "color", (max(0, min(255, r)), max(0, min(255, g)), max(0, min(255, b))))


def _check_orbit(body) -> None:
    if not isinstance(body.orbit, Orbit):
        raise ConfigError(f"{body.name}: {body.kind.value} requires an orbit")


def _check_parent(body) -> None:
    if not isinstance(body.parent, str) or not body.parent:
        raise ConfigError(f"{body.name}: {body.kind.value} requires a parent")
    if body.parent == body.name:
        raise ConfigError(f"{body.name}: a body cannot orbit itself")


@dataclass(frozen=True)
class Sun:
    kind: ClassVar[BodyKind] = BodyKind.SUN
    name: str
    visual_radius: Optional[float] = None
    color: Optional[Color] = None

    def __post_init__(self):
        _check_common(self)


@dataclass(frozen=True)
class Primary:
    kind: ClassVar[BodyKind] = BodyKind.PRIMARY
    name: str
    orbit: Orbit
    visual_radius: Optional[float] = None
    color: Optional[Color] = None

    def __post_init__(self):
        _check_common(self)
        _check_orbit(self)


@dataclass(frozen=True)
class Barycenter:
    kind: ClassVar[BodyKind] = BodyKind.BARYCENTER
    name: str
    orbit: Orbit
    visual_radius: Optional[float] = None
    color: Optional[Color] = None

    def __post_init__(self):
        _check_common(self)
        _check_orbit(self)


@dataclass(frozen=True)
class Moon:
    kind: ClassVar[BodyKind] = BodyKind.MOON
    name: str
    parent: str
    orbit: Orbit
    visual_radius: Optional[float] = None
    color: Optional[Color] = None

    def __post_init__(self):
        _check_common(self)
        _check_parent(self)
        _check_orbit(self)


@dataclass(frozen=True)
class BinaryChild:
    kind: ClassVar[BodyKind] = BodyKind.BINARY_CHILD
    name: str
    parent: str
    orbit: Orbit
    visual_radius: Optional[float] = None
    color: Optional[Color] = None

    def __post_init__(self):
        _check_common(self)
        _check_parent(self)
        _check_orbit(self)


Body = Union[Sun, Primary, Barycenter, Moon, BinaryChild]

BODY_CLASSES: Dict[BodyKind, type] = {
    BodyKind.SUN: Sun,
    BodyKind.PRIMARY: Primary,
    BodyKind.BARYCENTER: Barycenter,
    BodyKind.MOON: Moon,
    BodyKind.BINARY_CHILD: BinaryChild,
}

# Which kind a dependent's parent must have. Both are resolved in the first
# pass, so a third hierarchy level cannot be expressed.
PARENT_KINDS: Dict[BodyKind, BodyKind] = {
    BodyKind.MOON: BodyKind.PRIMARY,
    BodyKind.BINARY_CHILD: BodyKind.BARYCENTER,
}


@dataclass(frozen=True)
class SystemConfig:
    """
    A complete, validated system description.

    Fields:
    - order: Every body name exactly once; the iteration order of each update pass
    - bodies: Mapping of name -> body record (the record's own name must match)
    - time_scale: Multiplier applied to every update's dt
    - name: Display name for UI lists
    """
    order: Tuple[str, ...]
    bodies: Mapping[str, Body]
    time_scale: float = DEFAULT_TIME_SCALE
    name: str = "Untitled system"
    _children: Dict[str, Tuple[str, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "time_scale", _check_finite("system", "time_scale", self.time_scale))
        if not isinstance(self.bodies, Mapping):
            raise ConfigError(f"bodies must be a mapping of name -> body, got {type(self.bodies).__name__}")
        if isinstance(self.order, (str, bytes)) or not isinstance(self.order, Iterable):
            raise ConfigError(f"order must be a sequence of body names, got {type(self.order).__name__}")
        object.__setattr__(self, "order", tuple(self.order))
        object.__setattr__(self, "bodies", dict(self.bodies))

        for key, body in self.bodies.items():
            if not isinstance(body, tuple(BODY_CLASSES.values())):
                raise ConfigError(f"{key}: unknown body record {type(body).__name__}")
            if body.name != key:
                raise ConfigError(f"body registered as {key!r} is named {body.name!r}")

        seen = set()
        for name in self.order:
            if not isinstance(name, str) or name not in self.bodies:
                raise ConfigError(f"order names undeclared body {name!r}")
            if name in seen:
                raise ConfigError(f"order lists {name!r} more than once")
            seen.add(name)
        missing = [name for name in self.bodies if name not in seen]
        if missing:
            raise ConfigError(f"order is missing bodies: {', '.join(missing)}")

        children: Dict[str, list] = {}
        for name in self.order:
            body = self.bodies[name]
            wanted = PARENT_KINDS.get(body.kind)
            if wanted is None:
                continue
            parent = self.bodies.get(body.parent)
            if parent is None:
                raise ConfigError(f"{name}: parent {body.parent!r} is not declared")
            if parent.kind is not wanted:
                raise ConfigError(
                    f"{name}: a {body.kind.value} must orbit a {wanted.value}, "
                    f"but {body.parent!r} is a {parent.kind.value}"
                )
            children.setdefault(body.parent, []).append(name)
        object.__setattr__(self, "_children", {k: tuple(v) for k, v in children.items()})

    def children_of(self, name: str) -> Tuple[str, ...]:
        """Dependents of a body, in declared order."""
        return self._children.get(name, ())

    def binary_pairs(self):
        """(first, second) children of every barycenter that has exactly two binary children."""
        pairs = []
        for name in self.order:
            if self.bodies[name].kind is not BodyKind.BARYCENTER:
                continue
            kids = [c for c in self.children_of(name) if self.bodies[c].kind is BodyKind.BINARY_CHILD]
            if len(kids) == 2:
                pairs.append((kids[0], kids[1]))
        return pairs
