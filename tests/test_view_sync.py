from __future__ import annotations

import math

import pytest

from orrery.constants import (
    CONNECTOR_MAX_RADIUS,
    CONNECTOR_MIN_RADIUS,
    CONNECTOR_RADIUS_FACTOR,
    DEFAULT_VISUAL_RADIUS,
)
from orrery.data_models import ConfigError
from orrery.kinematics import create, orbit_pos
from orrery.scene import Scene, SceneNode
from orrery.vector_utils import (
    UNIT_Y,
    Vec3,
    clamp,
    orbit_plane_rotation,
    quat_rotate,
    vec_len,
    vec_norm,
    vec_sub,
)
from orrery.view_sync import attach, orient_between


def assert_vec_close(a, b, tol: float = 1e-9) -> None:
    assert tuple(a) == pytest.approx(tuple(b), abs=tol)


@pytest.fixture
def view(small_system):
    return attach(Scene(), small_system)


def test_connector_spans_two_points() -> None:
    node = SceneNode("tube", shape="cylinder")
    visible = orient_between(node, (-10.0, 0.0, 0.0), (10.0, 0.0, 0.0))
    assert visible and node.visible
    assert_vec_close(node.translation, (0.0, 0.0, 0.0))
    w = clamp(20.0 * CONNECTOR_RADIUS_FACTOR, CONNECTOR_MIN_RADIUS, CONNECTOR_MAX_RADIUS)
    assert tuple(node.scale) == pytest.approx((w, 20.0, w))
    # canonical +Y axis now points from the first point to the second
    assert_vec_close(quat_rotate(node.rotation, UNIT_Y), (1.0, 0.0, 0.0))
    # the scaled unit cylinder's ends land on the two points
    assert_vec_close(node.world_point((0.0, 0.5, 0.0)), (10.0, 0.0, 0.0))
    assert_vec_close(node.world_point((0.0, -0.5, 0.0)), (-10.0, 0.0, 0.0))


def test_connector_hidden_for_coincident_points() -> None:
    node = SceneNode("tube", shape="cylinder")
    orient_between(node, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
    assert node.visible
    assert orient_between(node, (3.0, 4.0, 5.0), (3.0, 4.0, 5.0)) is False
    assert node.visible is False


@pytest.mark.parametrize(
    "length, expected",
    [
        (1.0, CONNECTOR_MIN_RADIUS),
        (15.0, 15.0 * CONNECTOR_RADIUS_FACTOR),
        (500.0, CONNECTOR_MAX_RADIUS),
    ],
)
def test_connector_cross_section_is_clamped(length: float, expected: float) -> None:
    node = SceneNode("tube", shape="cylinder")
    orient_between(node, (0.0, 0.0, 0.0), (0.0, 0.0, length))
    assert node.scale.x == pytest.approx(expected)
    assert node.scale.z == pytest.approx(expected)


def test_connector_handles_antiparallel_direction() -> None:
    node = SceneNode("tube", shape="cylinder")
    orient_between(node, (0.0, 5.0, 0.0), (0.0, -5.0, 0.0))
    assert_vec_close(quat_rotate(node.rotation, UNIT_Y), (0.0, -1.0, 0.0))


def test_connector_arbitrary_direction() -> None:
    node = SceneNode("tube", shape="cylinder")
    p1, p2 = Vec3(1.0, 2.0, 3.0), Vec3(-4.0, 7.5, 0.25)
    orient_between(node, p1, p2)
    assert_vec_close(quat_rotate(node.rotation, UNIT_Y), vec_norm(vec_sub(p2, p1)))
    assert node.scale.y == pytest.approx(vec_len(vec_sub(p2, p1)))


def test_attach_skips_barycenters(view, small_system) -> None:
    assert "Bary" not in view.nodes
    assert set(view.nodes) == {"Sun", "Planet", "Moon", "Frozen", "A", "B"}
    assert all(node.parent is view.visual_group for node in view.nodes.values())


def test_attach_uses_visual_radius_or_default(view) -> None:
    assert view.nodes["Sun"].radius == 4.0
    assert view.nodes["Frozen"].radius == DEFAULT_VISUAL_RADIUS


def test_attach_adopts_override_node(small_system) -> None:
    scene = Scene()
    external = SceneNode("shader sun", shape="sphere", radius=9.0)
    scene.add(external)
    view = attach(scene, small_system, {"Sun": external})
    assert view.nodes["Sun"] is external
    assert external.parent is view.visual_group
    assert len([n for n in scene.walk() if n is external]) == 1


def test_attach_rejects_bad_overrides(small_system) -> None:
    with pytest.raises(ConfigError):
        attach(Scene(), small_system, {"Nope": SceneNode("x")})
    with pytest.raises(ConfigError, match="virtual"):
        attach(Scene(), small_system, {"Bary": SceneNode("x")})


def test_apply_positions_moves_nodes_and_ignores_unknown(view, small_system) -> None:
    engine = create(small_system)
    engine.update(3.0)
    positions = dict(engine.get_state().positions)
    positions["Ghost"] = Vec3(1.0, 1.0, 1.0)
    view.apply_positions(positions)
    for name, node in view.nodes.items():
        assert tuple(node.translation) == tuple(positions[name])


def test_binary_connector_follows_pair(view, small_system) -> None:
    tube = view.connectors[("A", "B")]
    assert tube.visible is False
    engine = create(small_system)
    engine.update(1.5)
    state = engine.get_state()
    view.apply_positions(state.positions)
    a, b = state.positions["A"], state.positions["B"]
    assert tube.visible
    assert_vec_close(tube.world_point((0.0, 0.5, 0.0)), b)
    assert_vec_close(tube.world_point((0.0, -0.5, 0.0)), a)


def test_connector_hidden_when_endpoint_missing(view) -> None:
    view.apply_positions({"A": Vec3(0.0, 0.0, 0.0), "B": Vec3(4.0, 0.0, 0.0)})
    assert view.connectors[("A", "B")].visible
    view.apply_positions({"A": Vec3(0.0, 0.0, 0.0)})
    assert view.connectors[("A", "B")].visible is False


def test_connectors_can_be_disabled(view) -> None:
    view.set_connectors_enabled(False)
    view.apply_positions({"A": Vec3(0.0, 0.0, 0.0), "B": Vec3(4.0, 0.0, 0.0)})
    assert view.connectors[("A", "B")].visible is False
    view.set_connectors_enabled(True)
    view.apply_positions({"A": Vec3(0.0, 0.0, 0.0), "B": Vec3(4.0, 0.0, 0.0)})
    assert view.connectors[("A", "B")].visible


def test_explicit_connector_pair(small_system) -> None:
    view = attach(Scene(), small_system, connector_pairs=[("Planet", "Moon")])
    assert set(view.connectors) == {("A", "B"), ("Planet", "Moon")}
    with pytest.raises(ConfigError, match="endpoint"):
        attach(Scene(), small_system, connector_pairs=[("Planet", "Pluto")])


def test_rings_parented_to_orbited_frame(view) -> None:
    assert set(view.rings) == {"Planet", "Moon", "Frozen", "Bary", "A", "B"}
    assert view.rings["Planet"].parent is view.visual_group
    assert view.rings["Bary"].parent is view.visual_group
    assert view.rings["Moon"].parent is view.nodes["Planet"]
    anchor = view.rings["A"].parent
    assert anchor is view.rings["B"].parent
    assert anchor.parent is view.visual_group


def test_ring_geometry_matches_orbit(view, small_system) -> None:
    for name, ring in view.rings.items():
        orbit = small_system.bodies[name].orbit
        assert ring.radius == orbit.radius
        assert ring.rotation == pytest.approx(orbit_plane_rotation(orbit.inclination, orbit.node))


def test_body_lies_on_its_ring(view, small_system) -> None:
    engine = create(small_system)
    for dt in [0.0, 2.5, 11.0]:
        engine.update(dt)
        state = engine.get_state()
        view.apply_positions(state.positions)
        for name in ("Planet", "Moon", "A", "Frozen"):
            orbit = small_system.bodies[name].orbit
            ring = view.rings[name]
            theta_point = orbit_pos(orbit, state.t)
            # same angle on the ring, expressed in the ring's local XZ circle
            local = (theta_point.x, theta_point.y, theta_point.z)
            expected_local = quat_rotate(
                (ring.rotation[0], -ring.rotation[1], -ring.rotation[2], -ring.rotation[3]), local
            )
            assert expected_local.y == pytest.approx(0.0, abs=1e-9)
            assert_vec_close(ring.world_point(expected_local), state.positions[name], tol=1e-7)


def test_ring_orientation_is_static(view, small_system) -> None:
    before = {name: ring.rotation for name, ring in view.rings.items()}
    engine = create(small_system)
    engine.update(40.0)
    view.apply_positions(engine.get_state().positions)
    assert {name: ring.rotation for name, ring in view.rings.items()} == before


def test_rings_toggle_and_optional(small_system, view) -> None:
    view.set_rings_visible(False)
    assert not any(r.is_visible() for r in view.rings.values())
    bare = attach(Scene(), small_system, show_rings=False)
    assert bare.rings == {}


def test_detach_removes_group(small_system) -> None:
    scene = Scene()
    view = attach(scene, small_system)
    assert view.visual_group in scene.children
    view.detach()
    assert view.visual_group not in scene.children


def test_world_point_composes_rotation_and_scale() -> None:
    root = Scene()
    parent = root.add(SceneNode("p"))
    parent.set_translation((1.0, 2.0, 3.0))
    parent.rotation = orbit_plane_rotation(0.0, math.pi / 2)
    child = parent.add(SceneNode("c"))
    child.set_translation((2.0, 0.0, 0.0))
    child.scale = Vec3(3.0, 3.0, 3.0)
    # child origin: parent T + R(2,0,0) = (1,2,3) + (0,0,-2)
    assert_vec_close(child.world_point(), (1.0, 2.0, 1.0))
    # a unit step along child X: scaled by 3, then rotated
    assert_vec_close(child.world_point((1.0, 0.0, 0.0)), (1.0, 2.0, -2.0))
    parent.visible = False
    assert child.is_visible() is False
    assert root.find("c") is child


def test_failed_attach_leaves_scene_untouched(small_system) -> None:
    scene = Scene()
    holder = scene.add(SceneNode("holder"))
    external = holder.add(SceneNode("shader sun", shape="sphere"))
    before = list(scene.children)
    with pytest.raises(ConfigError, match="endpoint"):
        attach(scene, small_system, {"Sun": external}, connector_pairs=[("Planet", "Pluto")])
    assert scene.children == before
    assert external.parent is holder
    assert holder.children == [external]


def test_malformed_connector_pair_is_rejected(small_system) -> None:
    scene = Scene()
    with pytest.raises(ConfigError, match="two bodies"):
        attach(scene, small_system, connector_pairs=[("Planet",)])
    assert scene.children == []
