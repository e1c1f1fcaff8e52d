from __future__ import annotations

from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from .layout import KeyboardLayout
from .sequence import GameState
from .types import VICTORY, Point2, TransientMessage

# BGR
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
HIGHLIGHT = (255, 0, 0)  # blue
VICTORY_COLOR = (0, 255, 0)
FAILURE_COLOR = (0, 0, 255)
FINGERTIP_COLOR = (0, 255, 255)

INSTRUCTIONS = "Follow the sequence! Hover your index finger over the keys in the correct order."


def draw_text(frame, text: str, org: Tuple[int, int], color=(255, 255, 255), scale=0.6, thickness=2):
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, (0, 0, 0), thickness + 2, cv2.LINE_AA)
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness, cv2.LINE_AA)
    return frame


def draw_text_centered(frame, text: str, center: Tuple[int, int], color=(255, 255, 255), scale=0.6, thickness=2):
    (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, thickness)
    org = (int(center[0] - tw / 2), int(center[1] + th / 2))
    return draw_text(frame, text, org, color=color, scale=scale, thickness=thickness)


def draw_message(canvas, message: TransientMessage):
    h, w = canvas.shape[:2]
    color = VICTORY_COLOR if message.kind == VICTORY else FAILURE_COLOR
    return draw_text_centered(canvas, message.text, (w // 2, h // 2), color=color, scale=1.0, thickness=2)


def draw_keyboard(canvas, layout: KeyboardLayout, highlighted):
    for j, (x0, y0, x1, y1) in enumerate(layout.white_keys):
        fill = HIGHLIGHT if highlighted[j] else WHITE
        cv2.rectangle(canvas, (x0, y0), (x1 - 1, y1 - 1), fill, -1)
        cv2.rectangle(canvas, (x0, y0), (x1 - 1, y1 - 1), BLACK, 1)
    for box in layout.black_keys:
        if box is None:
            continue
        x0, y0, x1, y1 = box
        cv2.rectangle(canvas, (x0, y0), (x1 - 1, y1 - 1), BLACK, -1)
    return canvas


def render_frame(
    layout: KeyboardLayout,
    state: GameState,
    camera_bgr: Optional[np.ndarray] = None,
    fingertips: Iterable[Point2] = (),
):
    """
    Draw one full frame.

    ``camera_bgr`` is the raw (unmirrored) camera image, ``fingertips`` are
    already in screen (mirrored) coordinates. While a message is showing,
    nothing but the message is drawn.
    """
    w, h = layout.width, layout.height
    canvas = np.zeros((h, w, 3), dtype=np.uint8)

    if state.message is not None:
        return draw_message(canvas, state.message)

    if camera_bgr is not None:
        frame = cv2.flip(camera_bgr, 1)
        if frame.shape[:2] != (h, w):
            frame = cv2.resize(frame, (w, h))
        canvas[:] = frame

    draw_keyboard(canvas, layout, state.highlighted)

    for pt in fingertips:
        cv2.circle(canvas, pt, 8, FINGERTIP_COLOR, -1, lineType=cv2.LINE_AA)

    draw_text_centered(canvas, f"Level {state.level}", (w // 2, h - 62), scale=0.9, thickness=2)
    draw_text_centered(canvas, INSTRUCTIONS, (w // 2, h - 25), scale=0.42, thickness=1)
    return canvas
