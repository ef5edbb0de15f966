from __future__ import annotations

import math

import pytest
from conftest import make_config

from orrery.data_models import (
    Barycenter,
    BinaryChild,
    BodyKind,
    ConfigError,
    Moon,
    Orbit,
    Primary,
    Sun,
    SystemConfig,
)


@pytest.mark.parametrize("radius", [0.0, -1.0, float("nan"), float("inf")])
def test_orbit_rejects_bad_radius(radius: float) -> None:
    with pytest.raises(ConfigError):
        Orbit(radius=radius, period=1.0)


def test_orbit_rejects_non_numeric_field() -> None:
    with pytest.raises(ConfigError, match="period"):
        Orbit(radius=1.0, period="soon")


def test_orbit_defaults() -> None:
    orbit = Orbit(radius=2.0, period=-5.0)
    assert (orbit.phase, orbit.inclination, orbit.node) == (0.0, 0.0, 0.0)
    assert orbit.is_static


@pytest.mark.parametrize(
    "value, kind",
    [
        ("Sun", BodyKind.SUN),
        ("primary", BodyKind.PRIMARY),
        ("BARYCENTER", BodyKind.BARYCENTER),
        ("binaryChild", BodyKind.BINARY_CHILD),
        ("binary_child", BodyKind.BINARY_CHILD),
        ("moon", BodyKind.MOON),
    ],
)
def test_kind_parse(value: str, kind: BodyKind) -> None:
    assert BodyKind.parse(value) is kind


def test_kind_parse_unknown() -> None:
    with pytest.raises(ConfigError, match="unknown body kind"):
        BodyKind.parse("comet")


def test_dependents_need_a_parent() -> None:
    with pytest.raises(ConfigError, match="requires a parent"):
        Moon("M", "", Orbit(radius=1.0, period=1.0))
    with pytest.raises(ConfigError, match="requires a parent"):
        BinaryChild("B", None, Orbit(radius=1.0, period=1.0))


def test_orbiting_kinds_need_an_orbit() -> None:
    with pytest.raises(ConfigError, match="requires an orbit"):
        Primary("P", None)
    with pytest.raises(ConfigError, match="requires an orbit"):
        Barycenter("B", {"radius": 1.0})


def test_body_cannot_orbit_itself() -> None:
    with pytest.raises(ConfigError, match="itself"):
        Moon("M", "M", Orbit(radius=1.0, period=1.0))


def test_color_is_clamped_and_radius_checked() -> None:
    sun = Sun("Sun", visual_radius=3, color=(300, -4, 12.7))
    assert sun.color == (255, 0, 12)
    assert sun.visual_radius == 3.0
    with pytest.raises(ConfigError, match="visual_radius"):
        Sun("Sun", visual_radius=0.0)


def test_binary_child_must_orbit_barycenter() -> None:
    with pytest.raises(ConfigError, match="must orbit a Barycenter"):
        make_config([
            Sun("Sun"),
            Primary("P", Orbit(radius=10.0, period=10.0)),
            BinaryChild("C", "P", Orbit(radius=1.0, period=1.0)),
        ])


def test_moon_cannot_orbit_sun() -> None:
    with pytest.raises(ConfigError, match="must orbit a Primary"):
        make_config([Sun("Sun"), Moon("M", "Sun", Orbit(radius=1.0, period=1.0))])


def test_order_must_cover_every_body_once() -> None:
    bodies = [Sun("Sun"), Primary("P", Orbit(radius=10.0, period=10.0))]
    with pytest.raises(ConfigError, match="missing"):
        make_config(bodies, order=["Sun"])
    with pytest.raises(ConfigError, match="more than once"):
        make_config(bodies, order=["Sun", "P", "P"])
    with pytest.raises(ConfigError, match="undeclared"):
        make_config(bodies, order=["Sun", "P", "Q"])


def test_registered_name_must_match_record() -> None:
    with pytest.raises(ConfigError, match="is named"):
        SystemConfig(order=("Star",), bodies={"Star": Sun("Sun")})


def test_time_scale_must_be_finite() -> None:
    with pytest.raises(ConfigError, match="time_scale"):
        make_config([Sun("Sun")], time_scale=math.inf)


def test_children_and_binary_pairs(small_system) -> None:
    assert small_system.children_of("Planet") == ("Moon",)
    assert small_system.children_of("Bary") == ("A", "B")
    assert small_system.children_of("Sun") == ()
    assert small_system.binary_pairs() == [("A", "B")]


def test_barycenter_with_one_child_has_no_pair() -> None:
    config = make_config([
        Sun("Sun"),
        Barycenter("Bary", Orbit(radius=10.0, period=10.0)),
        BinaryChild("Lonely", "Bary", Orbit(radius=1.0, period=1.0)),
    ])
    assert config.binary_pairs() == []


def test_records_are_immutable() -> None:
    sun = Sun("Sun")
    with pytest.raises(AttributeError):
        sun.name = "Other"


def test_config_containers_must_have_the_right_shape() -> None:
    sun = Sun("Sun")
    with pytest.raises(ConfigError, match="bodies must be a mapping"):
        SystemConfig(order=("Sun",), bodies=[sun])
    with pytest.raises(ConfigError, match="order must be a sequence"):
        SystemConfig(order=42, bodies={"Sun": sun})
    with pytest.raises(ConfigError, match="order must be a sequence"):
        SystemConfig(order="Sun", bodies={"Sun": sun})
    with pytest.raises(ConfigError, match="undeclared"):
        SystemConfig(order=(["Sun"],), bodies={"Sun": sun})
