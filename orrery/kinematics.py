#!/usr/bin/env python3
"""
Kinematics engine for Orrery.

Responsibilities
- Evaluate closed-form circular orbits (orbit_pos) for any simulation time.
- Own the simulation clock and the per-body position table, and recompute every
  position on each update in dependency order.

Update schedule
- Pass 1 resolves bodies that only depend on the origin: the Sun (always at the
  origin), Primaries and Barycenters.
- Pass 2 resolves Moons and BinaryChildren as parent position + their own orbit.
  Parents are always pass-1 kinds (enforced by SystemConfig), so the declared
  order never has to put parents first.

Buffering
- The engine keeps two position tables. update() writes the back table and then
  swaps, so the table behind the last FrameState stays untouched while the next
  one is being computed. A FrameState's positions are a read-only view that is
  only valid until the following update(); call snapshot() to keep a copy.

No physics is modeled: orbits are perfect circles with no eccentricity and no
mutual perturbation. Nothing here does I/O and nothing raises once the engine
has been built.
"""
import logging
import math
from types import MappingProxyType
from typing import Dict, Mapping, NamedTuple

from .data_models import BodyKind, ConfigError, Orbit, SystemConfig
from .vector_utils import ORIGIN, Vec3, rotate_x, rotate_y, vec_add

logger = logging.getLogger(__name__)

TAU = 2.0 * math.pi


def orbit_angle(orbit: Orbit, t: float) -> float:
    """Angle along the orbit at time t; constant for a non-positive period."""
    if orbit.period > 0:
        return orbit.phase + TAU * (t / orbit.period)
    return orbit.phase


def orbit_pos(orbit: Orbit, t: float) -> Vec3:
    """
    Position on a tilted circular orbit, relative to the body it orbits.

    The base point (r cos θ, 0, r sin θ) lies in the XZ plane. The plane is
    tilted about X so that a positive inclination lifts its +Z side, then
    swung about the vertical Y axis by the node.
    """
    theta = orbit_angle(orbit, t)
    p = Vec3(orbit.radius * math.cos(theta), 0.0, orbit.radius * math.sin(theta))
    p = rotate_x(p, -orbit.inclination)
    p = rotate_y(p, orbit.node)
    return p


class FrameState(NamedTuple):
    """Simulation time and the positions resolved for it."""
    t: float
    positions: Mapping[str, Vec3]

    def snapshot(self) -> "FrameState":
        """Durable copy that later updates will not touch."""
        return FrameState(self.t, dict(self.positions))


class KinematicsEngine:
    """
    Time-driven position resolver for one system.

    Each instance owns its clock and buffers, so several engines can run side
    by side without sharing anything.
    """

    def __init__(self, config: SystemConfig):
        if not isinstance(config, SystemConfig):
            raise ConfigError(f"expected a SystemConfig, got {type(config).__name__}")
        self.config = config
        self.time_scale = config.time_scale
        self.t = 0.0

        independent = []
        dependent = []
        for name in config.order:
            body = config.bodies[name]
            if body.kind in (BodyKind.MOON, BodyKind.BINARY_CHILD):
                dependent.append((name, body.parent, body.orbit))
            elif body.kind is BodyKind.SUN:
                independent.append((name, None))
            else:
                independent.append((name, body.orbit))
        self._independent = tuple(independent)
        self._dependent = tuple(dependent)

        self._front: Dict[str, Vec3] = {name: ORIGIN for name in config.order}
        self._back: Dict[str, Vec3] = dict(self._front)
        self._resolve(self._front, self.t)
        self._view = MappingProxyType(self._front)

        logger.debug(
            "Built kinematics for %r: %d independent, %d dependent bodies, time scale %g",
            config.name, len(self._independent), len(self._dependent), self.time_scale,
        )

    def _resolve(self, table: Dict[str, Vec3], t: float) -> None:
        for name, orbit in self._independent:
            table[name] = ORIGIN if orbit is None else orbit_pos(orbit, t)
        for name, parent, orbit in self._dependent:
            table[name] = vec_add(table[parent], orbit_pos(orbit, t))

    def update(self, dt: float) -> None:
        """Advance the clock by dt * time_scale and recompute every position."""
        self.t += dt * self.time_scale
        self._resolve(self._back, self.t)
        self._front, self._back = self._back, self._front
        self._view = MappingProxyType(self._front)

    def reset(self) -> None:
        """Return the clock to zero and recompute."""
        self.t = 0.0
        self._resolve(self._back, self.t)
        self._front, self._back = self._back, self._front
        self._view = MappingProxyType(self._front)

    def get_state(self) -> FrameState:
        return FrameState(self.t, self._view)


def create(config: SystemConfig) -> KinematicsEngine:
    """Build an engine for config; raises ConfigError for anything but a valid SystemConfig."""
    return KinematicsEngine(config)
