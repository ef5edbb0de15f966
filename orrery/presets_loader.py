#!/usr/bin/env python3
"""
System JSON loading utilities.

This module defines a simple JSON schema and loaders for system definitions
(systems/*.json). Files use the same key spelling as the built-in presets:

Schema
======
{
  "name": "Human-friendly system name",    # optional, defaults to file stem
  "timeScale": 0.25,                       # optional, default 1.0 (also for null)
  "order": ["Sun", "Inner", "InnerMoon"],
  "bodies": {
    "Sun":   {"kind": "Sun", "visualRadius": 20.0, "color": [255, 190, 80]},
    "Inner": {"kind": "Primary",
              "orbit": {"radius": 60, "period": 90, "phase": 0.0,
                        "inclination": 0.03, "node": 0.0},
              "visualRadius": 3.0},
    "InnerMoon": {"kind": "Moon", "parent": "Inner",
                  "orbit": {"radius": 8, "period": 12}}
  }
}

"kind" is matched case-insensitively; "type" is accepted in its place, and
"visual_radius" / "time_scale" are accepted as snake_case spellings.

Users can add their own JSON files into the systems folder and they'll be
picked up by list_systems().
"""
import json
import logging
import os
from typing import Any, Dict, List, Mapping, Tuple

from .constants import DEFAULT_TIME_SCALE
from .data_models import BODY_CLASSES, BodyKind, ConfigError, Orbit, SystemConfig

logger = logging.getLogger(__name__)

SYSTEMS_DIR = os.path.join(os.path.dirname(__file__), "systems")

_ORBIT_KEYS = ("radius", "period", "phase", "inclination", "node")


def _read_json(path: str) -> Any:
  try:
    with open(path, "r", encoding="utf-8") as f:
      return json.load(f)
  except UnicodeDecodeError as e:
    raise ConfigError(f"{os.path.basename(path)}: not valid UTF-8 ({e})") from e
  except json.JSONDecodeError as e:
    raise ConfigError(f"{os.path.basename(path)}: invalid JSON ({e})") from e


def _pick(data: Mapping[str, Any], *keys: str, default=None):
  for k in keys:
    if k in data:
      return data[k]
  return default


def _orbit_from_dict(name: str, data: Any) -> Orbit:
  if not isinstance(data, Mapping):
    raise ConfigError(f"{name}: orbit must be an object")
  unknown = set(data) - set(_ORBIT_KEYS)
  if unknown:
    raise ConfigError(f"{name}: unknown orbit keys {sorted(unknown)}")
  if "radius" not in data or "period" not in data:
    raise ConfigError(f"{name}: orbit needs radius and period")
  try:
    return Orbit(**{k: data[k] for k in _ORBIT_KEYS if k in data})
  except ConfigError as e:
    raise ConfigError(f"{name}: {e}") from e


def body_from_dict(name: str, data: Any):
  """Build the body record for one entry of the "bodies" object."""
  if not isinstance(data, Mapping):
    raise ConfigError(f"{name}: body must be an object")
  kind_value = _pick(data, "kind", "type")
  if kind_value is None:
    raise ConfigError(f"{name}: missing kind")
  kind = BodyKind.parse(kind_value)

  fields: Dict[str, Any] = {"name": name}
  visual_radius = _pick(data, "visualRadius", "visual_radius")
  if visual_radius is not None:
    fields["visual_radius"] = visual_radius
  if data.get("color") is not None:
    fields["color"] = data["color"]

  orbit = data.get("orbit")
  parent = data.get("parent")
  if kind is BodyKind.SUN:
    if orbit is not None:
      raise ConfigError(f"{name}: a Sun cannot have an orbit")
  else:
    if orbit is None:
      raise ConfigError(f"{name}: {kind.value} requires an orbit")
    fields["orbit"] = _orbit_from_dict(name, orbit)

  if kind in (BodyKind.MOON, BodyKind.BINARY_CHILD):
    if parent is None:
      raise ConfigError(f"{name}: {kind.value} requires a parent")
    fields["parent"] = parent
  elif parent is not None:
    raise ConfigError(f"{name}: a {kind.value} does not take a parent")

  return BODY_CLASSES[kind](**fields)


def config_from_dict(data: Any, default_name: str = "Untitled system") -> SystemConfig:
  """Validate a decoded system description and build its SystemConfig."""
  if not isinstance(data, Mapping):
    raise ConfigError("system must be a JSON object")
  bodies_data = data.get("bodies")
  if not isinstance(bodies_data, Mapping) or not bodies_data:
    raise ConfigError("system needs a non-empty 'bodies' object")
  order = data.get("order")
  if order is None:
    order = list(bodies_data.keys())
  if not isinstance(order, (list, tuple)):
    raise ConfigError("'order' must be a list of body names")

  time_scale = _pick(data, "timeScale", "time_scale")
  if time_scale is None:
    time_scale = DEFAULT_TIME_SCALE

  bodies = {name: body_from_dict(name, b) for name, b in bodies_data.items()}
  return SystemConfig(
    order=tuple(order),
    bodies=bodies,
    time_scale=time_scale,
    name=str(data.get("name") or default_name),
  )


def list_systems(directory: str = SYSTEMS_DIR) -> List[Tuple[str, str]]:
  """Return list of (file_name, display_name) for loadable systems; broken files are skipped."""
  items: List[Tuple[str, str]] = []
  if not os.path.isdir(directory):
    return items
  for fn in sorted(os.listdir(directory)):
    if not fn.lower().endswith(".json"):
      continue
    try:
      config = load_system(fn, directory)
    except (ConfigError, OSError) as e:
      logger.warning("Skipping system file %s: %s", fn, e)
      continue
    items.append((fn, config.name))
  return items


def load_system(file_name: str, directory: str = SYSTEMS_DIR) -> SystemConfig:
  """Load and validate a system JSON by file name."""
  path = os.path.join(directory, file_name)
  data = _read_json(path)
  return config_from_dict(data, default_name=os.path.splitext(file_name)[0])
