#!/usr/bin/env python3
"""
View synchronizer: maps resolved body positions onto scene nodes.

What this module does
- attach() builds one node per rendered body (adopting externally owned nodes
  from `overrides`), optional orbit rings, and a connector per binary pair.
- SolarView.apply_positions() runs once per tick after the engine update: it
  moves body nodes and re-derives every connector from its two endpoints.

Rings
- A ring's orientation never changes, so it is rotated once at attach time by
  the same inclination/node rotation orbit_pos() applies, and parented to the
  frame it orbits: the visual group for Primary/Barycenter orbits, the parent's
  node for Moon orbits. Barycenters have no node, so BinaryChild rings hang off
  a per-barycenter anchor whose translation follows the barycenter.

Connectors
- orient_between() places a unit-height +Y cylinder between two arbitrary
  points. It is not tied to any pair of bodies.
"""
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .constants import (
    CONNECTOR_COLOR,
    CONNECTOR_EPSILON,
    CONNECTOR_MAX_RADIUS,
    CONNECTOR_MIN_RADIUS,
    CONNECTOR_RADIUS_FACTOR,
    DEFAULT_BODY_COLOR,
    DEFAULT_VISUAL_RADIUS,
    RING_COLOR,
    SUN_COLOR,
)
from .data_models import BodyKind, ConfigError, SystemConfig
from .scene import SceneNode
from .vector_utils import (
    UNIT_Y,
    Vec3,
    clamp,
    orbit_plane_rotation,
    quat_from_unit_vectors,
    vec_len,
    vec_midpoint,
    vec_scale,
    vec_sub,
)

logger = logging.getLogger(__name__)


def orient_between(node: SceneNode, p1, p2,
                   k: float = CONNECTOR_RADIUS_FACTOR,
                   min_radius: float = CONNECTOR_MIN_RADIUS,
                   max_radius: float = CONNECTOR_MAX_RADIUS,
                   epsilon: float = CONNECTOR_EPSILON) -> bool:
    """
    Stretch a unit-height +Y primitive so it spans p1 -> p2.

    Sets the midpoint translation, the minimal rotation from +Y onto the
    direction, and scale (w, length, w) with w = clamp(length * k, min, max).
    Points closer than epsilon hide the node. Returns the resulting visibility.
    """
    d = vec_sub(p2, p1)
    length = vec_len(d)
    if length <= epsilon:
        node.visible = False
        return False
    node.set_translation(vec_midpoint(p1, p2))
    node.rotation = quat_from_unit_vectors(UNIT_Y, vec_scale(d, 1.0 / length))
    w = clamp(length * k, min_radius, max_radius)
    node.scale = Vec3(w, length, w)
    node.visible = True
    return True


class SolarView:
    """
    Scene nodes for one system plus the per-tick synchronization.

    Attributes:
    - visual_group: Group node holding everything this view created or adopted
    - nodes: body name -> node (never contains barycenters)
    - rings: body name -> ring node, for every body with an orbit when rings are on
    - connectors: (name_a, name_b) -> cylinder node
    """

    def __init__(self, visual_group: SceneNode, nodes: Dict[str, SceneNode],
                 rings: Dict[str, SceneNode], anchors: Dict[str, SceneNode],
                 connectors: Dict[Tuple[str, str], SceneNode]):
        self.visual_group = visual_group
        self.nodes = nodes
        self.rings = rings
        self.connectors = connectors
        self._anchors = anchors
        self.connectors_enabled = True

    def apply_positions(self, positions: Mapping[str, Sequence[float]]) -> None:
        """Move nodes to this tick's positions. Must not keep `positions` past the call."""
        for name, pos in positions.items():
            node = self.nodes.get(name)
            if node is not None:
                node.set_translation(pos)
            anchor = self._anchors.get(name)
            if anchor is not None:
                anchor.set_translation(pos)

        for (a, b), node in self.connectors.items():
            p1 = positions.get(a)
            p2 = positions.get(b)
            if not self.connectors_enabled or p1 is None or p2 is None:
                node.visible = False
                continue
            orient_between(node, p1, p2)

    def set_rings_visible(self, flag: bool) -> None:
        for ring in self.rings.values():
            ring.visible = bool(flag)

    def set_connectors_enabled(self, flag: bool) -> None:
        """Hide every connector and keep them hidden until re-enabled."""
        self.connectors_enabled = bool(flag)
        if not flag:
            for node in self.connectors.values():
                node.visible = False

    def detach(self) -> None:
        """Remove the visual group from the scene."""
        if self.visual_group.parent is not None:
            self.visual_group.parent.remove(self.visual_group)


def _make_body_node(name: str, config: SystemConfig) -> SceneNode:
    body = config.bodies[name]
    if body.color is not None:
        color = body.color
    elif body.kind is BodyKind.SUN:
        color = SUN_COLOR
    else:
        color = DEFAULT_BODY_COLOR
    radius = body.visual_radius if body.visual_radius is not None else DEFAULT_VISUAL_RADIUS
    return SceneNode(name, shape="sphere", radius=radius, color=color)


def attach(scene: SceneNode, config: SystemConfig,
           overrides: Optional[Mapping[str, SceneNode]] = None,
           show_rings: bool = True,
           connector_pairs: Optional[Iterable[Tuple[str, str]]] = None) -> SolarView:
    """
    Create the visual group for config under scene.

    overrides maps body names to externally owned nodes that are adopted
    instead of creating a sphere. connector_pairs adds connectors on top of
    the binary pairs found in config. Everything is validated before the
    scene or any override node is touched.
    """
    overrides = dict(overrides or {})
    for name in overrides:
        body = config.bodies.get(name)
        if body is None:
            raise ConfigError(f"override given for undeclared body {name!r}")
        if body.kind is BodyKind.BARYCENTER:
            raise ConfigError(f"{name}: a barycenter is virtual and cannot take a node")

    pairs: List[Tuple[str, str]] = list(config.binary_pairs())
    for pair in connector_pairs or ():
        try:
            a, b = pair
        except (TypeError, ValueError):
            raise ConfigError(f"connector pair must name two bodies, got {pair!r}") from None
        for end in (a, b):
            if end not in config.bodies:
                raise ConfigError(f"connector endpoint {end!r} is not declared")
        if (a, b) not in pairs:
            pairs.append((a, b))

    group = SceneNode(f"{config.name} view", shape="group")
    scene.add(group)

    nodes: Dict[str, SceneNode] = {}
    for name in config.order:
        if config.bodies[name].kind is BodyKind.BARYCENTER:
            continue
        node = overrides.get(name)
        if node is None:
            node = _make_body_node(name, config)
        group.add(node)
        nodes[name] = node

    rings: Dict[str, SceneNode] = {}
    anchors: Dict[str, SceneNode] = {}
    if show_rings:
        for name in config.order:
            body = config.bodies[name]
            if body.kind is BodyKind.SUN:
                continue
            ring = SceneNode(f"{name} orbit", shape="ring", radius=body.orbit.radius, color=RING_COLOR)
            ring.rotation = orbit_plane_rotation(body.orbit.inclination, body.orbit.node)
            if body.kind is BodyKind.MOON:
                frame = nodes[body.parent]
            elif body.kind is BodyKind.BINARY_CHILD:
                frame = anchors.get(body.parent)
                if frame is None:
                    frame = group.add(SceneNode(f"{body.parent} anchor", shape="group"))
                    anchors[body.parent] = frame
            else:
                frame = group
            frame.add(ring)
            rings[name] = ring

    connectors: Dict[Tuple[str, str], SceneNode] = {}
    for a, b in pairs:
        tube = SceneNode(f"{a}-{b} connector", shape="cylinder", radius=1.0, color=CONNECTOR_COLOR)
        tube.visible = False
        group.add(tube)
        connectors[(a, b)] = tube

    logger.debug(
        "Attached %r: %d nodes (%d adopted), %d rings, %d connectors",
        config.name, len(nodes), len(overrides), len(rings), len(connectors),
    )
    return SolarView(group, nodes, rings, anchors, connectors)
