from __future__ import annotations

import math

import pytest

from orrery.data_models import Barycenter, BinaryChild, Moon, Orbit, Primary, Sun, SystemConfig


def make_config(bodies, time_scale: float = 1.0, order=None, name: str = "test system") -> SystemConfig:
    return SystemConfig(
        order=tuple(order) if order is not None else tuple(b.name for b in bodies),
        bodies={b.name: b for b in bodies},
        time_scale=time_scale,
        name=name,
    )


@pytest.fixture
def small_system() -> SystemConfig:
    """Sun, a tilted primary with a moon, a frozen primary and a binary pair."""
    return make_config(
        [
            # Dependents listed first on purpose: the schedule must not rely on order.
            Moon("Moon", "Planet", Orbit(radius=3.0, period=7.0, phase=0.4, inclination=0.3)),
            BinaryChild("A", "Bary", Orbit(radius=2.0, period=5.0, phase=0.0, inclination=0.1)),
            BinaryChild("B", "Bary", Orbit(radius=2.0, period=5.0, phase=math.pi, inclination=0.1)),
            Sun("Sun", visual_radius=4.0),
            Primary("Planet", Orbit(radius=20.0, period=50.0, phase=1.0, inclination=0.2, node=0.5), visual_radius=1.0),
            Primary("Frozen", Orbit(radius=30.0, period=0.0, phase=2.0, inclination=0.4)),
            Barycenter("Bary", Orbit(radius=40.0, period=80.0, phase=0.3, inclination=0.05, node=1.2)),
        ],
        time_scale=0.5,
    )
