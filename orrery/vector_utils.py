#!/usr/bin/env python3
"""
Vector and quaternion helpers for 3D operations.

These are small, fast functions on plain tuples used throughout the app.
Vectors are Vec3(x, y, z); quaternions are (w, x, y, z) tuples of unit length.
"""
import math
from typing import NamedTuple, Tuple

Quat = Tuple[float, float, float, float]

QUAT_IDENTITY: Quat = (1.0, 0.0, 0.0, 0.0)


class Vec3(NamedTuple):
    x: float
    y: float
    z: float


ORIGIN = Vec3(0.0, 0.0, 0.0)
UNIT_X = Vec3(1.0, 0.0, 0.0)
UNIT_Y = Vec3(0.0, 1.0, 0.0)
UNIT_Z = Vec3(0.0, 0.0, 1.0)


def clamp(x: float, a: float, b: float) -> float:
    """Clamp x to the inclusive range [a, b]."""
    return max(a, min(b, x))


def vec_add(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(a[0] + b[0], a[1] + b[1], a[2] + b[2])


def vec_sub(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(a[0] - b[0], a[1] - b[1], a[2] - b[2])


def vec_scale(a: Vec3, s: float) -> Vec3:
    return Vec3(a[0] * s, a[1] * s, a[2] * s)


def vec_mul(a: Vec3, b: Vec3) -> Vec3:
    """Component-wise product."""
    return Vec3(a[0] * b[0], a[1] * b[1], a[2] * b[2])


def vec_len(a: Vec3) -> float:
    return math.sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


def vec_norm(a: Vec3) -> Vec3:
    l = vec_len(a)
    if l == 0:
        return ORIGIN
    return Vec3(a[0] / l, a[1] / l, a[2] / l)


def vec_dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def vec_cross(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def vec_midpoint(a: Vec3, b: Vec3) -> Vec3:
    return Vec3((a[0] + b[0]) * 0.5, (a[1] + b[1]) * 0.5, (a[2] + b[2]) * 0.5)


def rotate_x(v: Vec3, angle: float) -> Vec3:
    """Rotate v about the X axis by angle (radians, right-handed)."""
    c, s = math.cos(angle), math.sin(angle)
    return Vec3(v[0], v[1] * c - v[2] * s, v[1] * s + v[2] * c)


def rotate_y(v: Vec3, angle: float) -> Vec3:
    """Rotate v about the Y axis by angle (radians, right-handed)."""
    c, s = math.cos(angle), math.sin(angle)
    return Vec3(v[0] * c + v[2] * s, v[1], -v[0] * s + v[2] * c)


# -----------------------
# Quaternions
# -----------------------

def quat_from_axis_angle(axis: Vec3, angle: float) -> Quat:
    ax = vec_norm(axis)
    h = angle * 0.5
    s = math.sin(h)
    return (math.cos(h), ax[0] * s, ax[1] * s, ax[2] * s)


def quat_mul(a: Quat, b: Quat) -> Quat:
    """Hamilton product a*b: applying the result rotates by b first, then a."""
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return (
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
    )


def quat_rotate(q: Quat, v: Vec3) -> Vec3:
    """Rotate vector v by unit quaternion q."""
    w, qx, qy, qz = q
    u = (qx, qy, qz)
    # v' = v + 2w(u x v) + 2 u x (u x v)
    t = vec_scale(vec_cross(u, v), 2.0)
    return Vec3(
        v[0] + w * t[0] + (u[1] * t[2] - u[2] * t[1]),
        v[1] + w * t[1] + (u[2] * t[0] - u[0] * t[2]),
        v[2] + w * t[2] + (u[0] * t[1] - u[1] * t[0]),
    )


def quat_from_unit_vectors(v_from: Vec3, v_to: Vec3) -> Quat:
    """
    Minimal rotation taking unit vector v_from onto unit vector v_to.

    When the two are antiparallel any axis perpendicular to v_from works; the
    one closest to a world axis is picked so the result is stable.
    """
    d = vec_dot(v_from, v_to)
    if d < -1.0 + 1e-9:
        axis = vec_cross(UNIT_X, v_from)
        if vec_len(axis) < 1e-6:
            axis = vec_cross(UNIT_Y, v_from)
        return quat_from_axis_angle(axis, math.pi)
    c = vec_cross(v_from, v_to)
    q = (1.0 + d, c[0], c[1], c[2])
    n = math.sqrt(q[0] * q[0] + q[1] * q[1] + q[2] * q[2] + q[3] * q[3])
    return (q[0] / n, q[1] / n, q[2] / n, q[3] / n)


def orbit_plane_rotation(inclination: float, node: float) -> Quat:
    """Same plane orientation orbit_pos applies: tilt (+Z side up) about X, then swing by node about Y."""
    return quat_mul(
        quat_from_axis_angle(UNIT_Y, node),
        quat_from_axis_angle(UNIT_X, -inclination),
    )
