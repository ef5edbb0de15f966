#!/usr/bin/env python3
"""
Built-in system presets.

The Hourglass system: sizes and orbit radii are "look-right" values taken from
game-world metres and scaled down for display; periods follow Kepler's third
law with the game's constant, computed on the unscaled radii.
"""
import math

from .data_models import Barycenter, BinaryChild, Moon, Orbit, Primary, Sun, SystemConfig

SCALE = 1 / 100  # 100 game metres = 1 visual unit
KEPLER_K = 4e8  # m^3 s^-2, game-world gravitational parameter


def kepler_period(radius_m: float) -> float:
    """T = 2*pi * sqrt(r^3 / K), r in game metres."""
    return 2.0 * math.pi * math.sqrt(radius_m ** 3 / KEPLER_K)


def _orbit(radius_m: float, phase: float, inclination: float, node: float = 0.0) -> Orbit:
    return Orbit(
        radius=radius_m * SCALE,
        period=kepler_period(radius_m),
        phase=phase,
        inclination=inclination,
        node=node,
    )


def hourglass_system() -> SystemConfig:
    bodies = [
        Sun("Sun", visual_radius=2001.75 * SCALE, color=(255, 190, 80)),

        # Hourglass Twins: the barycenter orbits the sun, the twins sit on
        # opposite sides of it.
        Barycenter("TwinsBarycenter", _orbit(5000, 0.2, 0.05)),
        BinaryChild("AshTwin", "TwinsBarycenter", _orbit(250, 0.0, 0.02),
                    visual_radius=169 * SCALE, color=(216, 176, 140)),
        BinaryChild("EmberTwin", "TwinsBarycenter", _orbit(250, math.pi, 0.02),
                    visual_radius=170 * SCALE, color=(255, 111, 59)),

        Primary("TimberHearth", _orbit(8593.085981, 1.3, 0.03),
                visual_radius=254 * SCALE, color=(78, 163, 90)),
        Moon("Attlerock", "TimberHearth", _orbit(900, 0.0, 0.15),
             visual_radius=80 * SCALE, color=(189, 189, 189)),

        Primary("BrittleHollow", _orbit(11690.89092, 2.4, 0.02),
                visual_radius=272 * SCALE, color=(143, 107, 75)),
        Moon("HollowsLantern", "BrittleHollow", _orbit(1000, 0.8, 0.1),
             visual_radius=97.3 * SCALE, color=(215, 90, 43)),

        Primary("GiantsDeep", _orbit(16457.58738, 0.5, 0.01),
                visual_radius=500 * SCALE, color=(45, 109, 210)),

        Primary("DarkBramble", _orbit(20000, 3.2, 0.04),
                visual_radius=203.3 * SCALE, color=(44, 107, 79)),
    ]
    return SystemConfig(
        order=tuple(b.name for b in bodies),
        bodies={b.name: b for b in bodies},
        time_scale=0.25,
        name="Hourglass system",
    )


BUILTIN_SYSTEMS = {
    "Hourglass system": hourglass_system,
}
