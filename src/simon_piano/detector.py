from __future__ import annotations

import logging
import os
import ssl
import threading
import urllib.request
from dataclasses import dataclass
from typing import List, Optional

import certifi
import cv2

from .types import HandLandmark, HandPosition
from .utils import LatestValue, clamp_int

logger = logging.getLogger(__name__)

LANDMARKER_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/latest/hand_landmarker.task"
)


def fetch_landmarker_model(model_path: str, url: str = LANDMARKER_MODEL_URL, timeout_s: int = 30) -> str:
    """Download the Tasks hand model to ``model_path`` unless it is already there."""
    if os.path.exists(model_path):
        return model_path

    os.makedirs(os.path.dirname(model_path) or ".", exist_ok=True)
    logger.info("Downloading hand landmarker model to %s", model_path)
    # certifi's bundle covers Python builds without system root certificates.
    ctx = ssl.create_default_context(cafile=certifi.where())
    try:
        with urllib.request.urlopen(url, context=ctx, timeout=timeout_s) as r, open(model_path, "wb") as f:
            f.write(r.read())
    except OSError as e:
        if os.path.exists(model_path):
            os.remove(model_path)
        raise RuntimeError(
            f"Could not download the hand landmarker model to {model_path}.\n"
            f"Fetch it manually:\n  curl -L -o \"{model_path}\" \"{url}\""
        ) from e
    return model_path


@dataclass(frozen=True)
class _SolutionsBackend:
    hands: object


@dataclass(frozen=True)
class _TasksBackend:
    mp: object
    landmarker: object


def _try_create_solutions_backend(
    max_num_hands: int,
    min_detection_confidence: float,
    min_tracking_confidence: float,
) -> Optional[_SolutionsBackend]:
    import mediapipe as mp  # type: ignore

    if not hasattr(mp, "solutions"):
        return None
    hands = mp.solutions.hands.Hands(
        static_image_mode=False,
        max_num_hands=max_num_hands,
        min_detection_confidence=min_detection_confidence,
        min_tracking_confidence=min_tracking_confidence,
    )
    return _SolutionsBackend(hands=hands)


def _try_create_tasks_backend(
    model_path: str,
    max_num_hands: int,
    min_detection_confidence: float,
    min_tracking_confidence: float,
) -> _TasksBackend:
    """
    Fallback for MediaPipe distributions that do not include `mp.solutions`.

    Uses the MediaPipe Tasks HandLandmarker API, which requires a `.task` model asset on disk.
    """

    import mediapipe as mp  # type: ignore
    from mediapipe.tasks.python import BaseOptions  # type: ignore
    from mediapipe.tasks.python.vision import HandLandmarker, HandLandmarkerOptions, RunningMode  # type: ignore

    model_path = fetch_landmarker_model(model_path)

    options = HandLandmarkerOptions(
        base_options=BaseOptions(model_asset_path=model_path),
        running_mode=RunningMode.VIDEO,
        num_hands=max_num_hands,
        min_hand_detection_confidence=min_detection_confidence,
        min_tracking_confidence=min_tracking_confidence,
    )
    return _TasksBackend(mp=mp, landmarker=HandLandmarker.create_from_options(options))


def build_hand_position(landmarks, label: Optional[str], w: int, h: int) -> HandPosition:
    """Convert normalized MediaPipe landmarks to pixel coordinates of a ``w`` x ``h`` frame."""
    lm_px: List[HandLandmark] = []
    for idx, lm in enumerate(landmarks):
        lm_px.append(
            HandLandmark(
                idx=idx,
                x_norm=float(lm.x),
                y_norm=float(lm.y),
                x_px=clamp_int(int(round(float(lm.x) * w)), 0, w - 1),
                y_px=clamp_int(int(round(float(lm.y) * h)), 0, h - 1),
            )
        )
    return HandPosition(handedness_label=label, landmarks=lm_px)


class HandTracker:
    """
    Hand landmark detector using MediaPipe Hands.

    Input frames are expected as **BGR** images (OpenCV default), unmirrored.
    """

    def __init__(
        self,
        max_num_hands: int = 2,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        tasks_model_path: str = "models/hand_landmarker.task",
    ) -> None:
        self._solutions = _try_create_solutions_backend(
            max_num_hands=max_num_hands,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        self._tasks: Optional[_TasksBackend] = None
        self._tasks_timestamp_ms = 0

        if self._solutions is None:
            logger.info("mediapipe has no `solutions` module, using the Tasks HandLandmarker")
            try:
                self._tasks = _try_create_tasks_backend(
                    model_path=tasks_model_path,
                    max_num_hands=max_num_hands,
                    min_detection_confidence=min_detection_confidence,
                    min_tracking_confidence=min_tracking_confidence,
                )
            except FileNotFoundError as e:
                raise RuntimeError(
                    "MediaPipe does not provide `mp.solutions` in your environment, so the Tasks\n"
                    "HandLandmarker is used instead. It needs a model file on disk:\n"
                    f"  {tasks_model_path}"
                ) from e
            except Exception as e:
                raise RuntimeError(
                    "Could not initialize MediaPipe Hands.\n"
                    "Your installed `mediapipe` package does not expose `mp.solutions`, and the Tasks fallback\n"
                    "could not be initialized."
                ) from e

    def close(self) -> None:
        if self._solutions is not None:
            self._solutions.hands.close()
        if self._tasks is not None:
            self._tasks.landmarker.close()

    def __enter__(self) -> "HandTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def detect(self, frame_bgr) -> List[HandPosition]:
        h, w = frame_bgr.shape[:2]
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        if self._solutions is not None:
            results = self._solutions.hands.process(frame_rgb)
            if not results.multi_hand_landmarks:
                return []

            handedness_list = results.multi_handedness or []
            positions: List[HandPosition] = []
            for i, hand_landmarks in enumerate(results.multi_hand_landmarks):
                label: Optional[str] = None
                if i < len(handedness_list) and handedness_list[i].classification:
                    label = getattr(handedness_list[i].classification[0], "label", None)
                positions.append(build_hand_position(hand_landmarks.landmark, label, w, h))
            return positions

        if self._tasks is None:
            return []

        mp = self._tasks.mp
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)

        # Tasks VIDEO mode requires monotonically increasing timestamps.
        self._tasks_timestamp_ms += 33
        result = self._tasks.landmarker.detect_for_video(mp_image, self._tasks_timestamp_ms)

        hand_landmarks_list = getattr(result, "hand_landmarks", None) or []
        handedness_list = getattr(result, "handedness", None) or []

        positions = []
        for i, landmarks in enumerate(hand_landmarks_list):
            label = None
            if i < len(handedness_list) and handedness_list[i]:
                label = getattr(handedness_list[i][0], "category_name", None)
            positions.append(build_hand_position(landmarks, label, w, h))
        return positions


class AsyncHandTracker:
    """
    Runs a detector on a worker thread.

    :meth:`submit` hands over the newest camera frame, :meth:`latest` returns
    the newest detection result. Frames that arrive while the detector is
    busy replace each other; only the most recent one is processed.
    """

    def __init__(self, detector) -> None:
        self._detector = detector
        self._frames: LatestValue = LatestValue()
        self._hands: LatestValue = LatestValue([])
        self._wake = threading.Event()
        self._stopping = threading.Event()
        self._error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="hand-tracker", daemon=True)
        self._thread.start()

    def submit(self, frame_bgr) -> None:
        self._frames.set(frame_bgr)
        self._wake.set()

    def latest(self) -> List[HandPosition]:
        if self._error is not None:
            raise RuntimeError("Hand tracking stopped with an error") from self._error
        return self._hands.get() or []

    def close(self) -> None:
        self._stopping.set()
        self._wake.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        if hasattr(self._detector, "close"):
            self._detector.close()

    def __enter__(self) -> "AsyncHandTracker":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _run(self) -> None:
        while not self._stopping.is_set():
            if not self._wake.wait(timeout=0.1):
                continue
            self._wake.clear()
            frame = self._frames.take()
            if frame is None:
                continue
            try:
                hands = self._detector.detect(frame)
            except Exception as e:
                logger.exception("Hand detection failed")
                self._error = e
                return
            self._hands.set(hands)
