#!/usr/bin/env python3
"""
Minimal scene graph for Orrery.

A SceneNode carries a local transform (translation, rotation, scale), a
visibility flag and a shape description the renderer knows how to draw:

- "group": no geometry, only a transform for its children
- "sphere": a body; radius is the sphere radius
- "cylinder": unit-height cylinder along local +Y, radius 1 before scaling
- "ring": circle of the given radius in the local XZ plane

World transforms compose parent-first: world(p) = parent.world(T + R(S * p)).
The renderer reads world_point() and is_visible(); the view synchronizer only
writes local transforms.
"""
from typing import Iterator, List, Optional, Tuple

from .constants import DEFAULT_BODY_COLOR
from .vector_utils import (
    ORIGIN,
    QUAT_IDENTITY,
    Quat,
    Vec3,
    quat_mul,
    quat_rotate,
    vec_add,
    vec_mul,
)

SHAPES = ("group", "sphere", "cylinder", "ring")


class SceneNode:
    """A transformable node in the scene tree."""

    def __init__(self, name: str, shape: str = "group", radius: float = 1.0,
                 color: Tuple[int, int, int] = DEFAULT_BODY_COLOR):
        if shape not in SHAPES:
            raise ValueError(f"unknown shape {shape!r}")
        self.name = name
        self.shape = shape
        self.radius = float(radius)
        self.color = color
        self.translation: Vec3 = ORIGIN
        self.rotation: Quat = QUAT_IDENTITY
        self.scale: Vec3 = Vec3(1.0, 1.0, 1.0)
        self.visible = True
        self.parent: Optional["SceneNode"] = None
        self.children: List["SceneNode"] = []

    def __repr__(self) -> str:
        return f"SceneNode({self.name!r}, shape={self.shape!r}, translation={tuple(self.translation)})"

    def add(self, child: "SceneNode") -> "SceneNode":
        """Attach child to this node, detaching it from any previous parent."""
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: "SceneNode") -> None:
        if child in self.children:
            self.children.remove(child)
            child.parent = None

    def set_translation(self, p) -> None:
        self.translation = Vec3(float(p[0]), float(p[1]), float(p[2]))

    def walk(self) -> Iterator["SceneNode"]:
        """Depth-first iteration over this node and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()

    def local_to_parent(self, p) -> Vec3:
        return vec_add(self.translation, quat_rotate(self.rotation, vec_mul(self.scale, p)))

    def world_point(self, p=ORIGIN) -> Vec3:
        """Map a point in this node's local frame to world space."""
        node = self
        out = Vec3(*p)
        while node is not None:
            out = node.local_to_parent(out)
            node = node.parent
        return out

    def world_rotation(self) -> Quat:
        q = self.rotation
        node = self.parent
        while node is not None:
            q = quat_mul(node.rotation, q)
            node = node.parent
        return q

    def is_visible(self) -> bool:
        """Visible only if this node and every ancestor are visible."""
        node = self
        while node is not None:
            if not node.visible:
                return False
            node = node.parent
        return True


class Scene(SceneNode):
    """Root of a scene tree."""

    def __init__(self, name: str = "scene"):
        super().__init__(name, shape="group")

    def find(self, name: str) -> Optional[SceneNode]:
        for node in self.walk():
            if node.name == name:
                return node
        return None
