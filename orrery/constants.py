#!/usr/bin/env python3
"""
Shared constants for Orrery (visual units unless stated otherwise).

Keeping constants in one place helps ensure values are consistent across the
codebase and makes tuning easier.
"""

# Kinematics
DEFAULT_TIME_SCALE = 1.0  # simulated seconds per real second when a system omits it

# Connector between a binary pair (cylinder of unit height along +Y)
CONNECTOR_RADIUS_FACTOR = 0.02  # cross-section radius per unit of length
CONNECTOR_MIN_RADIUS = 0.12
CONNECTOR_MAX_RADIUS = 0.6
CONNECTOR_EPSILON = 1e-4  # shorter than this the connector is hidden
CONNECTOR_COLOR = (255, 204, 119)

# Bodies
DEFAULT_VISUAL_RADIUS = 10.0
DEFAULT_BODY_COLOR = (255, 255, 255)
SUN_COLOR = (255, 190, 80)
DEFAULT_SUN_RADIUS = 20.0  # adopted sun node size when the system gives none

# Rings
RING_COLOR = (70, 80, 110)
RING_SEGMENTS = 96

# Rendering (viewport)
VIEW_WIDTH = 1100
VIEW_HEIGHT = 800
BACKGROUND_COLOR = (5, 1, 10)
HUD_COLOR = (200, 200, 200)
TARGET_FPS = 60
MAX_FRAME_DT = 0.25  # s; a stalled frame never advances time by more than this

# Camera
CAMERA_FOV_DEG = 60.0
CAMERA_NEAR = 0.1
DEFAULT_CAMERA_DISTANCE = 285.0
MIN_CAMERA_DISTANCE = 5.0
MAX_CAMERA_DISTANCE = 5000.0
DEFAULT_CAMERA_PITCH = 0.43  # rad, looking down onto the orbital plane
MAX_CAMERA_PITCH = 1.55

# Safety: avoid drawing outside reasonable integer pixel ranges
SAFE_COORD_LIMIT = 30000
