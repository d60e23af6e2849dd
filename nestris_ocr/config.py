"""Capture profiles: crop rectangles, digit patterns and task profile selection.

A profile is a plain JSON document, saved and loaded whole:

    {
      "profile": "classic",
      "palette": null,
      "brightness": 1.0,
      "contrast": 1.0,
      "score7": false,
      "use_half_height": false,
      "tasks": {
        "score": {"crop": [x, y, w, h], "pattern": "ADDDDD"},
        ...
      }
    }

Replacing the configuration always means building a new ``OCRConfig``;
there is no partial patching of a live one.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .constants import DIGIT_PITCH, DIGIT_SIZE, PIECES, PROFILE_CLASSIC, PROFILE_DAS_TRAINER, PROFILES, TASK_RESIZE
from .output import atomic_write_json

log = logging.getLogger(__name__)

Color = Tuple[int, int, int]

DIGIT_TASKS = ("score", "level", "lines", "instant_das", "cur_piece_das") + tuple(p.value for p in PIECES)

DEFAULT_PATTERNS = {
    "score": "ADDDDD",
    "level": "AA",
    "lines": "DDD",
    "instant_das": "DD",
    "cur_piece_das": "DD",
}
PIECE_COUNT_PATTERN = "DDD"
SCORE7_PATTERN = "DDDDDDD"


class ConfigError(ValueError):
    pass


@dataclass
class TaskConfig:
    crop: Tuple[int, int, int, int]
    pattern: Optional[str] = None
    red: bool = False


@dataclass
class OCRConfig:
    tasks: Dict[str, TaskConfig] = field(default_factory=dict)
    profile: str = PROFILE_CLASSIC
    palette: Optional[str] = None
    brightness: float = 1.0
    contrast: float = 1.0
    score7: bool = False
    use_half_height: bool = False

    @property
    def tracks_piece_counts(self) -> bool:
        return self.profile == PROFILE_CLASSIC

    @property
    def tracks_das(self) -> bool:
        return self.profile == PROFILE_DAS_TRAINER

    def to_dict(self) -> dict:
        return {
            "profile": self.profile,
            "palette": self.palette,
            "brightness": self.brightness,
            "contrast": self.contrast,
            "score7": self.score7,
            "use_half_height": self.use_half_height,
            "tasks": {name: vars(task) | {"crop": list(task.crop)} for name, task in self.tasks.items()},
        }


def required_tasks(profile: str, with_palette: bool) -> List[str]:
    names = ["score", "level", "lines", "field", "preview"]
    if not with_palette:
        names += ["color2", "color3"]
    if profile == PROFILE_CLASSIC:
        names += [p.value for p in PIECES]
    elif profile == PROFILE_DAS_TRAINER:
        names += ["instant_das", "cur_piece_das", "cur_piece"]
    return names


def _parse_crop(name: str, raw) -> Tuple[int, int, int, int]:
    try:
        x, y, w, h = (int(v) for v in raw)
    except (TypeError, ValueError):
        raise ConfigError(f"task {name!r}: crop must be [x, y, w, h], got {raw!r}")
    if w <= 0 or h <= 0:
        raise ConfigError(f"task {name!r}: crop has non-positive size {w}x{h}")
    return x, y, w, h


def _default_pattern(name: str, score7: bool) -> Optional[str]:
    if name == "score" and score7:
        return SCORE7_PATTERN
    if len(name) == 1:
        return PIECE_COUNT_PATTERN
    return DEFAULT_PATTERNS.get(name)


def resize_for(name: str, score7: bool = False) -> Tuple[int, int]:
    """Size a task crop is resampled to before recognition."""
    if len(name) == 1:
        return TASK_RESIZE["piece_count"]
    if name == "score" and score7:
        return TASK_RESIZE["score7"]
    return TASK_RESIZE[name]


def config_from_dict(data: dict, palettes: Optional[dict] = None) -> OCRConfig:
    """Build and validate an ``OCRConfig`` from a decoded profile."""
    profile = data.get("profile", PROFILE_CLASSIC)
    if profile not in PROFILES:
        raise ConfigError(f"unknown task profile {profile!r}, expected one of {PROFILES}")

    palette = data.get("palette") or None
    if palette is not None and (palettes is None or palette not in palettes):
        raise ConfigError(f"palette {palette!r} is not defined")

    score7 = bool(data.get("score7", False))
    tasks = {}
    for name, raw in (data.get("tasks") or {}).items():
        if not isinstance(raw, dict):
            raise ConfigError(f"task {name!r}: expected an object, got {raw!r}")
        pattern = raw.get("pattern") or _default_pattern(name, score7)
        if pattern is not None and name in DIGIT_TASKS:
            bad = set(pattern) - set("BTDA")
            if bad:
                raise ConfigError(f"task {name!r}: invalid pattern characters {sorted(bad)}")
            width = resize_for(name, score7)[0]
            if DIGIT_PITCH * (len(pattern) - 1) + DIGIT_SIZE > width:
                raise ConfigError(f"task {name!r}: pattern {pattern!r} does not fit in {width} pixels")
        tasks[name] = TaskConfig(
            crop=_parse_crop(name, raw.get("crop")),
            pattern=pattern,
            red=bool(raw.get("red", False)),
        )

    missing = [n for n in required_tasks(profile, palette is not None) if n not in tasks]
    if missing:
        raise ConfigError(f"profile {profile!r} requires tasks {missing}")

    return OCRConfig(
        tasks=tasks,
        profile=profile,
        palette=palette,
        brightness=float(data.get("brightness", 1.0)),
        contrast=float(data.get("contrast", 1.0)),
        score7=score7,
        use_half_height=bool(data.get("use_half_height", False)),
    )


def load_config(path: str, palettes: Optional[dict] = None) -> OCRConfig:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    config = config_from_dict(data, palettes)
    log.info("Loaded %s profile from %s (%d tasks)", config.profile, path, len(config.tasks))
    return config


def save_config(config: OCRConfig, path: str):
    atomic_write_json(path, config.to_dict())


def load_palettes(path: str) -> Dict[str, List[List[Color]]]:
    """Load palettes: name -> 10 entries (one per level units digit) of 2 or 3 RGB colors."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    palettes = {}
    for name, entries in data.items():
        if len(entries) != 10:
            raise ConfigError(f"palette {name!r} must have 10 entries, got {len(entries)}")
        parsed = []
        for entry in entries:
            if len(entry) not in (2, 3):
                raise ConfigError(f"palette {name!r}: each entry needs 2 or 3 colors, got {entry!r}")
            parsed.append([tuple(int(c) for c in color) for color in entry])
        palettes[name] = parsed
    return palettes
