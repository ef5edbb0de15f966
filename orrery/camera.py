#!/usr/bin/env python3
"""
Camera utilities for 3D world-to-screen projection.
"""
import math
from typing import Optional, Tuple

from .constants import (
    CAMERA_FOV_DEG,
    CAMERA_NEAR,
    DEFAULT_CAMERA_DISTANCE,
    DEFAULT_CAMERA_PITCH,
    MAX_CAMERA_DISTANCE,
    MAX_CAMERA_PITCH,
    MIN_CAMERA_DISTANCE,
    VIEW_HEIGHT,
    VIEW_WIDTH,
)
from .vector_utils import Vec3, clamp, vec_add, vec_cross, vec_dot, vec_norm, vec_sub


class OrbitCamera:
    """
    Perspective camera orbiting a target point (Y up).

    yaw swings around the vertical axis, pitch lifts above the XZ plane and
    distance is measured from the target.
    """

    def __init__(self, target=(0.0, 0.0, 0.0), distance=DEFAULT_CAMERA_DISTANCE,
                 yaw=0.0, pitch=DEFAULT_CAMERA_PITCH, fov_deg=CAMERA_FOV_DEG):
        self.target = Vec3(*target)
        self.distance = distance
        self.yaw = yaw
        self.pitch = pitch
        self.fov_deg = fov_deg
        self.viewport_size = (VIEW_WIDTH, VIEW_HEIGHT)

    def set_viewport_size(self, w: int, h: int) -> None:
        self.viewport_size = (w, h)

    def eye(self) -> Vec3:
        cp = math.cos(self.pitch)
        offset = Vec3(
            self.distance * cp * math.sin(self.yaw),
            self.distance * math.sin(self.pitch),
            self.distance * cp * math.cos(self.yaw),
        )
        return vec_add(self.target, offset)

    def _basis(self):
        eye = self.eye()
        forward = vec_norm(vec_sub(self.target, eye))
        right = vec_norm(vec_cross(forward, Vec3(0.0, 1.0, 0.0)))
        up = vec_cross(right, forward)
        return eye, forward, right, up

    def focal_length_px(self) -> float:
        return (self.viewport_size[1] / 2) / math.tan(math.radians(self.fov_deg) / 2)

    def world_to_screen(self, p) -> Optional[Tuple[float, float, float]]:
        """Return (sx, sy, depth) or None when the point is behind the near plane."""
        eye, forward, right, up = self._basis()
        rel = vec_sub(p, eye)
        depth = vec_dot(rel, forward)
        if depth < CAMERA_NEAR:
            return None
        f = self.focal_length_px()
        sx = self.viewport_size[0] / 2 + f * vec_dot(rel, right) / depth
        sy = self.viewport_size[1] / 2 - f * vec_dot(rel, up) / depth
        return (sx, sy, depth)

    def pixels_for(self, world_size: float, depth: float) -> float:
        """Projected size in pixels of a length at the given depth."""
        return world_size * self.focal_length_px() / max(depth, CAMERA_NEAR)

    def zoom(self, factor: float) -> None:
        factor = clamp(factor, 0.05, 20.0)
        self.distance = clamp(self.distance / factor, MIN_CAMERA_DISTANCE, MAX_CAMERA_DISTANCE)

    def rotate(self, d_yaw: float, d_pitch: float) -> None:
        self.yaw = (self.yaw + d_yaw) % (2.0 * math.pi)
        self.pitch = clamp(self.pitch + d_pitch, -MAX_CAMERA_PITCH, MAX_CAMERA_PITCH)

    def frame_radius(self, radius: float) -> None:
        """Move back far enough that a sphere of radius around the target fits the view."""
        half_fov = math.radians(self.fov_deg) / 2
        self.distance = clamp(radius * 1.15 / math.sin(half_fov), MIN_CAMERA_DISTANCE, MAX_CAMERA_DISTANCE)
