#!/usr/bin/env python3
"""
Orrery application entry point and UI/renderer coordination.

What this module does
- Starts two event loops: a Pygame rendering thread (viewport) and the Dear PyGui UI
  (running on the main thread).
- Maintains a shared SimulationController that owns the kinematics engine, the scene
  and the view synchronizer; all access is guarded by a re-entrant lock.
- Provides a system picker (built-in presets plus systems/*.json), playback controls,
  ring/connector toggles and a read-out of the selected body.

Threading model
- PygameRenderer runs in a background thread and performs: input handling (for the viewport),
  one engine update followed by one apply_positions per frame, and drawing. The whole tick
  and the scene read for drawing happen under the controller lock, so the engine stays the
  only writer of its positions and the view never sees a half-updated frame.
- The UI class runs in the main thread via Dear PyGui. It updates controls on a periodic
  frame callback and invokes SimulationController methods as needed; these are lock-protected.

Units and conventions
- Visual units for lengths, seconds for time, radians for angles. Y is up.
- Colors are RGB tuples in 0..255.

Running
1) Install dependencies: `pip install pygame dearpygui`
2) Run this module: `python orrery_app.py`
"""

import logging
import math
import threading
import time
from typing import List, Optional, Tuple

# GUI and Rendering libs
import pygame
from pygame import gfxdraw
import dearpygui.dearpygui as dpg

from orrery.camera import OrbitCamera
from orrery.constants import (
    BACKGROUND_COLOR,
    DEFAULT_SUN_RADIUS,
    HUD_COLOR,
    MAX_FRAME_DT,
    RING_SEGMENTS,
    SAFE_COORD_LIMIT,
    SUN_COLOR,
    TARGET_FPS,
    VIEW_HEIGHT,
    VIEW_WIDTH,
)
from orrery.data_models import BodyKind, ConfigError, SystemConfig
from orrery.kinematics import KinematicsEngine, create
from orrery.presets import BUILTIN_SYSTEMS, hourglass_system
from orrery.presets_loader import list_systems, load_system
from orrery.scene import Scene, SceneNode
from orrery.vector_utils import ORIGIN
from orrery.view_sync import SolarView, attach

logger = logging.getLogger("orrery")

# ============================================================
# Simulation Controller (Shared State)
# ============================================================

class SimulationController:
    """
    Shared state between UI thread (DearPyGui) and rendering thread (Pygame).
    Includes thread-safe operations guarded by a lock.
    """
    def __init__(self, config: SystemConfig):
        self.lock = threading.RLock()
        self.running = True  # app running
        self.playing = True  # simulation running
        self.speed = 1.0  # x the system's own time scale
        self.show_rings = True
        self.show_connectors = True
        self.selected: Optional[str] = None

        self.scene = Scene()
        # Externally owned sun node, adopted by the view instead of a plain sphere
        self.sun_node = SceneNode("Sun", shape="sphere", radius=DEFAULT_SUN_RADIUS, color=SUN_COLOR)

        self.config: SystemConfig = None
        self.engine: KinematicsEngine = None
        self.view: SolarView = None
        self.replace_system(config)

    def replace_system(self, config: SystemConfig):
        """Build a fresh engine and view for config; the old ones are dropped only on success."""
        engine = create(config)
        with self.lock:
            overrides = {}
            sun_names = [n for n in config.order if config.bodies[n].kind is BodyKind.SUN]
            if sun_names:
                sun = config.bodies[sun_names[0]]
                if sun.visual_radius is not None:
                    self.sun_node.radius = sun.visual_radius
                else:
                    self.sun_node.radius = DEFAULT_SUN_RADIUS
                overrides[sun_names[0]] = self.sun_node
            if self.view is not None:
                self.view.detach()
            self.view = attach(self.scene, config, overrides, show_rings=True)
            self.view.set_rings_visible(self.show_rings)
            self.view.set_connectors_enabled(self.show_connectors)
            self.config = config
            self.engine = engine
            self.view.apply_positions(engine.get_state().positions)
            self.selected = None
        logger.info("Loaded system %r (%d bodies)", config.name, len(config.order))

    def set_speed(self, s: float):
        with self.lock:
            self.speed = max(0.0, float(s))

    def set_rings_visible(self, flag: bool):
        with self.lock:
            self.show_rings = bool(flag)
            self.view.set_rings_visible(self.show_rings)

    def set_connectors_visible(self, flag: bool):
        with self.lock:
            self.show_connectors = bool(flag)
            self.view.set_connectors_enabled(self.show_connectors)
            if flag:
                self.view.apply_positions(self.engine.get_state().positions)

    def reset_clock(self):
        with self.lock:
            self.engine.reset()
            self.view.apply_positions(self.engine.get_state().positions)

    def tick(self, dt_real_seconds: float):
        """One frame: engine update, then view sync, strictly in that order."""
        with self.lock:
            dt = min(max(dt_real_seconds, 0.0), MAX_FRAME_DT) * self.speed
            self.engine.update(dt)
            self.view.apply_positions(self.engine.get_state().positions)

    def select_nearest(self, screen_pos: Tuple[int, int], camera: OrbitCamera, pick_px: float = 12.0) -> Optional[str]:
        with self.lock:
            best = None
            best_d = float("inf")
            for name, node in self.view.nodes.items():
                sp = camera.world_to_screen(node.world_point())
                if sp is None:
                    continue
                d = math.hypot(sp[0] - screen_pos[0], sp[1] - screen_pos[1])
                pr = max(camera.pixels_for(node.radius, sp[2]), pick_px)
                if d < pr and d < best_d:
                    best_d = d
                    best = name
            self.selected = best
            return best

    def selected_info(self) -> Optional[Tuple[str, Tuple[float, float, float], float]]:
        with self.lock:
            if self.selected is None:
                return None
            state = self.engine.get_state()
            pos = state.positions.get(self.selected)
            if pos is None:
                return None
            return self.selected, tuple(pos), state.t

# ============================================================
# Pygame Renderer Thread
# ============================================================

class PygameRenderer(threading.Thread):
    """
    Pygame loop: steps the simulation, draws rings, bodies and connectors.
    Handles selection, camera orbit (drag) and zoom (wheel).
    """
    def __init__(self, sim: SimulationController):
        super().__init__(daemon=True)
        self.sim = sim
        self.camera = OrbitCamera()
        self.surface = None
        self.clock = None
        self.dragging = False
        self.drag_start_screen = (0, 0)
        self.rotate_speed_keys = 1.5  # rad per second
        self.running = True

    def auto_frame_camera(self):
        """
        Adjust camera distance to fit every orbit into view.
        """
        with self.sim.lock:
            extent = 0.0
            for name in self.sim.config.order:
                body = self.sim.config.bodies[name]
                if body.kind is BodyKind.SUN:
                    extent = max(extent, body.visual_radius or 0.0)
                elif body.kind in (BodyKind.PRIMARY, BodyKind.BARYCENTER):
                    extent = max(extent, body.orbit.radius)
                else:
                    parent = self.sim.config.bodies[body.parent]
                    extent = max(extent, parent.orbit.radius + body.orbit.radius)
        self.camera.target = ORIGIN
        self.camera.frame_radius(max(extent, 1.0))

    def run(self):
        pygame.init()
        pygame.display.set_caption("Orrery - Viewport")
        self.surface = pygame.display.set_mode((VIEW_WIDTH, VIEW_HEIGHT), pygame.RESIZABLE)
        self.camera.set_viewport_size(VIEW_WIDTH, VIEW_HEIGHT)
        self.clock = pygame.time.Clock()
        self.auto_frame_camera()

        last_time = time.perf_counter()
        while self.running and self.sim.running:
            now = time.perf_counter()
            real_dt = now - last_time
            last_time = now

            # Input handling
            self.handle_events(real_dt)

            # Simulation tick
            with self.sim.lock:
                playing = self.sim.playing
            if playing:
                self.sim.tick(real_dt)

            # Draw
            self.draw()

            # Limit FPS
            self.clock.tick(TARGET_FPS)

        pygame.quit()

    def handle_events(self, real_dt):
        keys = pygame.key.get_pressed()
        step = self.rotate_speed_keys * real_dt
        if keys[pygame.K_LEFT]:
            self.camera.rotate(-step, 0.0)
        if keys[pygame.K_RIGHT]:
            self.camera.rotate(step, 0.0)
        if keys[pygame.K_UP]:
            self.camera.rotate(0.0, step)
        if keys[pygame.K_DOWN]:
            self.camera.rotate(0.0, -step)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.sim.running = False
                self.running = False

            elif event.type == pygame.VIDEORESIZE:
                self.surface = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                self.camera.set_viewport_size(event.w, event.h)

            elif event.type == pygame.MOUSEWHEEL:
                self.camera.zoom(1.1 if event.y > 0 else 1.0 / 1.1)

            elif event.type == pygame.KEYDOWN and event.key == pygame.K_SPACE:
                with self.sim.lock:
                    self.sim.playing = not self.sim.playing

            elif event.type == pygame.MOUSEBUTTONDOWN:
                if event.button == 1:  # left click selects, otherwise starts an orbit drag
                    mouse = pygame.mouse.get_pos()
                    if self.sim.select_nearest(mouse, self.camera) is None:
                        self.dragging = True
                        self.drag_start_screen = mouse
                elif event.button in (2, 3):
                    self.dragging = True
                    self.drag_start_screen = pygame.mouse.get_pos()

            elif event.type == pygame.MOUSEBUTTONUP:
                if event.button in (1, 2, 3):
                    self.dragging = False

            elif event.type == pygame.MOUSEMOTION and self.dragging:
                mouse = pygame.mouse.get_pos()
                dx = mouse[0] - self.drag_start_screen[0]
                dy = mouse[1] - self.drag_start_screen[1]
                self.camera.rotate(-dx * 0.005, dy * 0.005)
                self.drag_start_screen = mouse

    def _collect(self) -> List[tuple]:
        """Project every visible node into (depth, kind, payload) draw items."""
        items = []
        cam = self.camera
        with self.sim.lock:
            selected = self.sim.selected
            selected_node = self.sim.view.nodes.get(selected) if selected else None
            for node in self.sim.scene.walk():
                if node.shape == "group" or not node.is_visible():
                    continue
                if node.shape == "ring":
                    pts = []
                    for i in range(RING_SEGMENTS + 1):
                        a = 2.0 * math.pi * i / RING_SEGMENTS
                        sp = cam.world_to_screen(node.world_point((node.radius * math.cos(a), 0.0, node.radius * math.sin(a))))
                        if sp is not None:
                            pts.append(_safe_point(sp))
                    pts = [p for p in pts if p is not None]
                    if len(pts) > 1:
                        # rings sit behind everything else
                        items.append((float("inf"), "ring", (pts, node.color)))
                elif node.shape == "sphere":
                    sp = cam.world_to_screen(node.world_point())
                    if sp is None:
                        continue
                    r_px = max(2, min(400, int(cam.pixels_for(node.radius, sp[2]))))
                    glow = node is self.sim.sun_node
                    items.append((sp[2], "sphere", (sp, r_px, node.color, glow, node is selected_node)))
                elif node.shape == "cylinder":
                    a = cam.world_to_screen(node.world_point((0.0, -0.5, 0.0)))
                    b = cam.world_to_screen(node.world_point((0.0, 0.5, 0.0)))
                    c = cam.world_to_screen(node.world_point())
                    if a is None or b is None or c is None:
                        continue
                    width = max(1, int(2 * cam.pixels_for(node.radius * node.scale.x, c[2])))
                    items.append((c[2], "cylinder", (a, b, width, node.color)))
        # painter's order: far to near
        items.sort(key=lambda it: -it[0])
        return items

    def draw(self):
        surf = self.surface
        surf.fill(BACKGROUND_COLOR)

        for _, kind, payload in self._collect():
            if kind == "ring":
                pts, color = payload
                try:
                    pygame.draw.aalines(surf, color, False, pts)
                except (TypeError, ValueError):
                    pass
            elif kind == "sphere":
                sp, r_px, color, glow, selected = payload
                center = _safe_point(sp)
                if center is None:
                    continue
                if glow:
                    draw_glow(surf, center, r_px, color)
                try:
                    gfxdraw.filled_circle(surf, center[0], center[1], r_px, color)
                    gfxdraw.aacircle(surf, center[0], center[1], r_px, color)
                    if selected:
                        gfxdraw.aacircle(surf, center[0], center[1], r_px + 4, (255, 255, 0))
                except OverflowError:
                    pass
            elif kind == "cylinder":
                a, b, width, color = payload
                a_s, b_s = _safe_point(a), _safe_point(b)
                if a_s and b_s:
                    pygame.draw.line(surf, color, a_s, b_s, width)

        # HUD text
        draw_text(surf, "Left-click: select | Drag: orbit camera | Wheel: zoom | Arrows: orbit | Space: Pause/Play", 10, 10, HUD_COLOR)
        with self.sim.lock:
            t = self.sim.engine.t
            speed = self.sim.speed
            playing = self.sim.playing
            name = self.sim.config.name
        draw_text(surf, f"{name}   t = {t:.1f} s   speed {speed:.2f}x  [{'Playing' if playing else 'Paused'}]", 10, 30, HUD_COLOR)

        pygame.display.flip()

_cached_font = None

def draw_text(surface, text, x, y, color):
    global _cached_font
    if not pygame.font.get_init():
        pygame.font.init()
    if _cached_font is None:
        try:
            _cached_font = pygame.font.SysFont("consolas", 16)
        except (OSError, pygame.error):
            _cached_font = pygame.font.Font(None, 16)
    img = _cached_font.render(text, True, color)
    surface.blit(img, (x, y))

def _safe_point(pt):
    try:
        x, y = int(pt[0]), int(pt[1])
    except (TypeError, ValueError, OverflowError):
        return None
    if -SAFE_COORD_LIMIT <= x <= SAFE_COORD_LIMIT and -SAFE_COORD_LIMIT <= y <= SAFE_COORD_LIMIT:
        return (x, y)
    return None

def draw_glow(surface, center, r_px, color):
    # Soft halo: a few translucent rings fading outwards
    size = r_px * 4
    halo = pygame.Surface((size * 2, size * 2), pygame.SRCALPHA)
    for i in range(6, 0, -1):
        alpha = int(18 * (7 - i))
        radius = int(r_px * (1.0 + 0.5 * i))
        pygame.draw.circle(halo, (*color, alpha), (size, size), radius)
    surface.blit(halo, (center[0] - size, center[1] - size))

# ============================================================
# Dear PyGui UI
# ============================================================

class UI:
    """
    Dear PyGui interface: system picker, playback controls, visibility toggles, body read-out.
    """
    def __init__(self, sim: SimulationController, renderer: PygameRenderer):
        self.sim = sim
        self.renderer = renderer

        self.status_msg_id = None
        self.sel_name_id = None
        self.sel_pos_id = None
        self.clock_id = None

        # display name -> ("builtin", factory) | ("json", file name)
        self._system_map = {}

        self._build_ui()

        # Periodic UI sync without timers (for wider DPG version support)
        self._schedule_sync()

    def _schedule_sync(self):
        """Reschedule the periodic sync callback using frame callbacks (approx ~10Hz)."""
        current = dpg.get_frame_count()
        dpg.set_frame_callback(current + 6, self._sync_ui_with_sim)

    # -----------------------
    # UI Construction
    # -----------------------

    def _refresh_system_map(self):
        self._system_map = {name: ("builtin", factory) for name, factory in BUILTIN_SYSTEMS.items()}
        for fn, display in list_systems():
            self._system_map.setdefault(display, ("json", fn))
        return list(self._system_map.keys())

    def _build_ui(self):
        dpg.create_context()
        dpg.create_viewport(title='Orrery - Controls', width=460, height=440)

        with dpg.window(label="Controls", width=440, height=420, pos=(10, 10), tag="main_window"):
            with dpg.group(horizontal=True):
                dpg.add_text("System:")
                items = self._refresh_system_map()
                dpg.add_combo(items,
                              default_value=self.sim.config.name if self.sim.config.name in items else items[0],
                              width=240,
                              tag="system_combo")
                dpg.add_button(label="Load", callback=lambda: self.load_system(dpg.get_value("system_combo")))
            with dpg.group(horizontal=True):
                dpg.add_button(label="Rescan systems", callback=self._on_rescan)
                dpg.add_button(label="Auto-fit Camera", callback=self.renderer.auto_frame_camera)

            dpg.add_separator()
            dpg.add_text("Playback")
            with dpg.group(horizontal=True):
                dpg.add_button(label="Play/Pause", callback=self._toggle_play)
                dpg.add_button(label="Step", callback=self._step_once)
                dpg.add_button(label="Reset clock", callback=self._reset_clock)
            dpg.add_slider_float(label="Speed (x)", default_value=self.sim.speed,
                                 min_value=0.0, max_value=200.0, format="%.2f",
                                 callback=lambda s, a, u: self.sim.set_speed(a),
                                 tag="speed_slider")
            self.clock_id = dpg.add_text("t = 0.0 s")

            dpg.add_separator()
            dpg.add_text("Display")
            dpg.add_checkbox(label="Orbit rings", default_value=self.sim.show_rings,
                             callback=lambda s, a, u: self.sim.set_rings_visible(a))
            dpg.add_checkbox(label="Binary connectors", default_value=self.sim.show_connectors,
                             callback=lambda s, a, u: self.sim.set_connectors_visible(a))

            dpg.add_separator()
            dpg.add_text("Selected body")
            self.sel_name_id = dpg.add_text("(click a body in the viewport)")
            self.sel_pos_id = dpg.add_text("")

            dpg.add_separator()
            self.status_msg_id = dpg.add_text("", color=(180, 220, 180))

        dpg.setup_dearpygui()
        dpg.show_viewport()
        dpg.set_primary_window("main_window", True)

    def _set_status(self, msg: str, color=(180, 220, 180)):
        dpg.set_value(self.status_msg_id, msg)
        dpg.configure_item(self.status_msg_id, color=color)

    def _set_error(self, msg: str):
        self._set_status(msg, color=(255, 120, 120))

    # -----------------------
    # Callbacks
    # -----------------------

    def _on_rescan(self):
        items = self._refresh_system_map()
        dpg.configure_item("system_combo", items=items)
        self._set_status(f"Found {len(items)} systems.")

    def _toggle_play(self):
        with self.sim.lock:
            self.sim.playing = not self.sim.playing
            state = "Playing" if self.sim.playing else "Paused"
        self._set_status(f"Simulation {state}.")

    def _step_once(self):
        # Advance by one 1/60 s frame while paused
        with self.sim.lock:
            was_playing = self.sim.playing
            self.sim.playing = False
        self.sim.tick(1 / 60.0)
        with self.sim.lock:
            self.sim.playing = was_playing
        self._set_status("Stepped one frame.")

    def _reset_clock(self):
        self.sim.reset_clock()
        self._set_status("Clock reset to t = 0.")

    def load_system(self, name: str):
        entry = self._system_map.get(name)
        if entry is None:
            self._set_error(f"Unknown system: {name}")
            return
        source, ref = entry
        try:
            config = ref() if source == "builtin" else load_system(ref)
            self.sim.replace_system(config)
        except (ConfigError, OSError) as e:
            logger.warning("Could not load system %r: %s", name, e)
            self._set_error(f"Could not load {name}: {e}")
            return
        self._set_status(f"Loaded system: {config.name}")
        self.renderer.auto_frame_camera()

    def _sync_ui_with_sim(self):
        """
        Periodic UI update: clock read-out and selected body position.
        """
        with self.sim.lock:
            t = self.sim.engine.t
        dpg.set_value(self.clock_id, f"t = {t:.2f} s")

        info = self.sim.selected_info()
        if info:
            name, pos, _ = info
            dpg.set_value(self.sel_name_id, name)
            dpg.set_value(self.sel_pos_id, f"x={pos[0]:.3f}  y={pos[1]:.3f}  z={pos[2]:.3f}")
        else:
            dpg.set_value(self.sel_name_id, "(click a body in the viewport)")
            dpg.set_value(self.sel_pos_id, "")
        # Reschedule next sync
        self._schedule_sync()

# ============================================================
# Application Entry
# ============================================================

def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sim = SimulationController(hourglass_system())

    renderer = PygameRenderer(sim)

    # Start Pygame renderer thread
    renderer.start()

    ui = UI(sim, renderer)

    # Keyboard shortcut in UI window to toggle play/pause (Space)
    with dpg.handler_registry():
        def key_down(sender, app_data):
            if app_data == dpg.mvKey_Spacebar:
                ui._toggle_play()
        dpg.add_key_press_handler(callback=key_down)

    # Run Dear PyGui event loop
    try:
        dpg.start_dearpygui()
    finally:
        # Stop simulation and renderer
        sim.running = False
        renderer.running = False
        renderer.join(timeout=2.0)
        dpg.destroy_context()

if __name__ == "__main__":
    main()
