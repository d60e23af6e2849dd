"""Game state OCR for live NES Tetris captures."""

from .config import ConfigError, OCRConfig, TaskConfig, config_from_dict, load_config, load_palettes
from .constants import Piece
from .frames import DispatchEvent, FrameScan
from .tracker import GameTracker

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DispatchEvent",
    "FrameScan",
    "GameTracker",
    "OCRConfig",
    "Piece",
    "TaskConfig",
    "config_from_dict",
    "load_config",
    "load_palettes",
]
