"""Command line runner.

A capture thread feeds frames through a small queue; the main thread runs
the tracker on them one at a time and writes each dispatched event to the
output directory (atomic files, OBS "Read from file" friendly).

    nestris-ocr --config profile.json --source camera --camera-index 1 --out-dir out
    nestris-ocr --config profile.json --source video --video game.mp4 --format json
"""
from __future__ import annotations

import argparse
import logging
import queue
import sys
import threading
import time
from typing import Optional

from .capture import SOURCES, CaptureSource, enumerate_cameras
from .config import ConfigError, load_config, load_palettes
from .backends import BACKENDS
from .frames import DispatchEvent
from .output import atomic_write_json, write_event
from .session import JsonFileStore, MemoryStore
from .templates import generate_templates, load_templates
from .tracker import GameTracker

log = logging.getLogger(__name__)

OUTPUT_FORMATS = ("txt", "json", "csv")

# queue marker for "the source has no more frames"
END_OF_STREAM = object()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nestris-ocr", description="Read NES Tetris game state from a video feed.")
    parser.add_argument("--config", help="capture profile JSON (crops, patterns, task profile)")
    parser.add_argument("--templates", default=None, help="PNG strip of 17 14x14 glyphs; generated glyphs if omitted")
    parser.add_argument("--palettes", default=None, help="palettes JSON (name -> 10 entries of 2 or 3 RGB colors)")
    parser.add_argument("--source", choices=SOURCES, default="camera")
    parser.add_argument("--camera-index", type=int, default=0)
    parser.add_argument("--video", default=None, help="video file for --source video")
    parser.add_argument("--screen-box", type=int, nargs=4, metavar=("X", "Y", "W", "H"), default=None,
                        help="screen region for --source screen (default: primary monitor)")
    parser.add_argument("--backend", choices=sorted(BACKENDS), default="software")
    parser.add_argument("--out-dir", default="out")
    parser.add_argument("--format", choices=OUTPUT_FORMATS, default="txt")
    parser.add_argument("--state-file", default=None, help="JSON file keeping the last game id across runs")
    parser.add_argument("--palette-out", default=None, help="write the learned palette here once complete")
    parser.add_argument("--max-frames", type=int, default=0, help="stop after this many frames (0: no limit)")
    parser.add_argument("--list-cameras", action="store_true", help="print the camera indexes that open and exit")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


class Runner:
    def __init__(self, args, tracker: GameTracker, capture: CaptureSource):
        self.args = args
        self.tracker = tracker
        self.capture = capture
        self.frame_q: "queue.Queue" = queue.Queue(maxsize=2)
        self.stop_flag = threading.Event()
        self.frames = 0
        self.events = 0

        tracker.on_message = self.on_message
        tracker.on_new_game = self.on_new_game
        tracker.on_palette = self.on_palette

    def on_message(self, event: DispatchEvent):
        self.events += 1
        write_event(self.args.out_dir, event.to_dict(), self.args.format)

    def on_new_game(self, gameid: int):
        log.info("Game %d started", gameid)

    def on_palette(self, palette):
        if not self.args.palette_out:
            return
        name = f"learned_{self.tracker.gameid}"
        atomic_write_json(self.args.palette_out, {name: [[list(c) for c in colors] for colors in palette]})
        log.info("Wrote learned palette %s to %s", name, self.args.palette_out)

    def _put(self, item):
        if self.capture.mode == "video":
            # every frame of a file matters; wait for room
            while not self.stop_flag.is_set():
                try:
                    self.frame_q.put(item, timeout=0.5)
                    return
                except queue.Full:
                    continue
            return
        # live sources: drop oldest if queue is full
        try:
            if self.frame_q.full():
                self.frame_q.get_nowait()
            self.frame_q.put_nowait(item)
        except (queue.Empty, queue.Full):
            pass

    def _capture_loop(self):
        """Background thread: read frames until stopped or the video ends."""
        while not self.stop_flag.is_set():
            try:
                frame = self.capture.read()
            except Exception as e:
                log.warning("Capture read failed: %s", e)
                frame = None
            if frame is None:
                if self.capture.eof:
                    break
                time.sleep(0.01)
                continue
            self._put(frame)
        self._put(END_OF_STREAM)

    def run(self):
        thread = threading.Thread(target=self._capture_loop, daemon=True)
        thread.start()
        try:
            while not self.stop_flag.is_set():
                try:
                    frame = self.frame_q.get(timeout=0.5)
                except queue.Empty:
                    continue
                if frame is END_OF_STREAM:
                    break
                self.tracker.process_frame(frame)
                self.frames += 1
                if self.args.max_frames and self.frames >= self.args.max_frames:
                    break
        except KeyboardInterrupt:
            log.info("Interrupted")
        finally:
            self.stop_flag.set()
            thread.join(timeout=2.0)
            self.capture.release()
        log.info("Processed %d frames, dispatched %d events", self.frames, self.events)


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_cameras:
        for idx in enumerate_cameras():
            print(idx)
        return 0

    if not args.config:
        log.error("--config is required")
        return 2

    try:
        palettes = load_palettes(args.palettes) if args.palettes else None
        config = load_config(args.config, palettes)
    except (OSError, ConfigError) as e:
        log.error("Invalid configuration: %s", e)
        return 2

    templates = load_templates(args.templates) if args.templates else generate_templates()
    store = JsonFileStore(args.state_file) if args.state_file else MemoryStore()
    tracker = GameTracker(templates, palettes, config, store=store, backend=args.backend)

    screen_box = None
    if args.screen_box:
        x, y, w, h = args.screen_box
        screen_box = {"left": x, "top": y, "width": w, "height": h}
    capture = CaptureSource(mode=args.source, camera_index=args.camera_index,
                            screen_box=screen_box, video_path=args.video)
    try:
        ok = capture.open()
    except (RuntimeError, ValueError) as e:
        log.error("Failed to open %s source: %s", args.source, e)
        return 1
    if not ok:
        log.error("Failed to open %s source", args.source)
        return 1
    if capture.frame_size:
        log.info("Capturing %s at %dx%d", args.source, *capture.frame_size)

    Runner(args, tracker, capture).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
