"""Frame sources: capture card / webcam (OpenCV), screen region (MSS) or a video file.

All sources hand out RGB frames, which is what the OCR works in.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import cv2
import numpy as np

# Optional MSS for screen capture
try:
    import mss
    HAVE_MSS = True
except ImportError:
    HAVE_MSS = False

log = logging.getLogger(__name__)

SOURCES = ("camera", "screen", "video")


def enumerate_cameras(max_cams: int = 10) -> List[int]:
    """Indexes of the camera devices that open, from 0 to max_cams-1."""
    found = []
    for idx in range(max_cams):
        cap = cv2.VideoCapture(idx)
        if cap is not None and cap.isOpened():
            found.append(idx)
        if cap is not None:
            cap.release()
    return found


class CaptureSource:
    def __init__(self, mode="camera", camera_index=0, screen_box=None, video_path=None, desired_size=(1920, 1080)):
        if mode not in SOURCES:
            raise ValueError(f"unknown capture source {mode!r}, expected one of {SOURCES}")
        self.mode = mode
        self.camera_index = camera_index
        self.screen_box = screen_box  # dict for mss
        self.video_path = video_path
        self.desired_size = desired_size
        self.cap = None
        self.mss = None
        self.eof = False

    def _open_camera(self) -> bool:
        # Try several common OpenCV backends; None means let OpenCV choose.
        try_backends = [None]
        for name in ("CAP_DSHOW", "CAP_MSMF", "CAP_V4L2", "CAP_FFMPEG"):
            if hasattr(cv2, name):
                try_backends.append(getattr(cv2, name))
        for backend in try_backends:
            cap = cv2.VideoCapture(self.camera_index) if backend is None else cv2.VideoCapture(self.camera_index, backend)
            if not cap or not cap.isOpened():
                if cap is not None:
                    cap.release()
                continue
            # may be ignored by some backends
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.desired_size[0])
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.desired_size[1])
            self.cap = cap
            log.info("Opened camera %d (backend %s)", self.camera_index, backend)
            return True
        # all backends failed
        return False

    def open(self) -> bool:
        self.release()
        self.eof = False

        if self.mode == "camera":
            return self._open_camera()

        if self.mode == "video":
            if not self.video_path:
                raise ValueError("video source needs a file path")
            self.cap = cv2.VideoCapture(self.video_path)
            return bool(self.cap.isOpened())

        if not HAVE_MSS:
            raise RuntimeError("mss not installed. pip install mss")
        self.mss = mss.mss()
        if self.screen_box is None:
            # Fullscreen primary
            mon = self.mss.monitors[1]
            self.screen_box = {"top": mon["top"], "left": mon["left"], "width": mon["width"], "height": mon["height"]}
        return True

    def read(self) -> Optional[np.ndarray]:
        """Next RGB frame, or None if nothing could be read."""
        if self.mode == "screen":
            sct_img = self.mss.grab(self.screen_box)
            # BGRA -> RGB
            return np.ascontiguousarray(np.asarray(sct_img)[..., 2::-1])

        ok, frame = self.cap.read()
        if not ok:
            if self.mode == "video":
                self.eof = True
            return None
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    @property
    def frame_size(self) -> Optional[Tuple[int, int]]:
        if self.cap is None:
            return None
        return int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH)), int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        if self.mss is not None:
            self.mss.close()
            self.mss = None
