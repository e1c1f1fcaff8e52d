from __future__ import annotations

import argparse
import logging
import os
import platform
import random
import sys

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from simon_piano.audio import SCALES, NoteBank  # noqa: E402
from simon_piano.config import GameConfig  # noqa: E402
from simon_piano.detector import AsyncHandTracker, HandTracker  # noqa: E402
from simon_piano.game import SimonGame  # noqa: E402


def main() -> int:
    ap = argparse.ArgumentParser(description="Simon Says piano: repeat the notes by pointing at the keys.")
    ap.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    ap.add_argument("--width", type=int, default=640, help="Canvas width (default: 640)")
    ap.add_argument("--height", type=int, default=480, help="Canvas height (default: 480)")
    ap.add_argument("--keys", type=int, default=8, help="Number of piano keys (default: 8)")
    ap.add_argument("--max-hands", type=int, default=2, help="Maximum number of hands to detect")
    ap.add_argument(
        "--notes-dir",
        type=str,
        default=None,
        help="Directory with note clips 1..N (.wav/.mp3/.flac/.ogg; default: synthesized piano tones)",
    )
    ap.add_argument(
        "--scale",
        type=str,
        default="c_major",
        choices=list(SCALES.keys()),
        help="Scale for synthesized notes when --notes-dir is not given (default: c_major)",
    )
    ap.add_argument("--volume", type=float, default=0.8, help="Volume level (0.0 to 1.0, default: 0.8)")
    ap.add_argument(
        "--lock-input",
        action="store_true",
        help="Ignore key presses while the sequence is being demonstrated",
    )
    ap.add_argument("--seed", type=int, default=None, help="Random seed for note sequences")
    ap.add_argument("--log-level", type=str, default="WARNING", help="Logging level (default: WARNING)")
    args = ap.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = GameConfig(
        num_keys=args.keys,
        width=args.width,
        height=args.height,
        lock_input_during_replay=args.lock_input,
    )

    if args.notes_dir:
        notes = NoteBank.from_directory(args.notes_dir, config.num_keys, volume=args.volume)
    else:
        notes = NoteBank.synthesized(config.num_keys, scale=args.scale, volume=args.volume)

    if platform.system() == "Darwin":
        cap = cv2.VideoCapture(args.camera, cv2.CAP_AVFOUNDATION)
    else:
        cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        raise RuntimeError(
            f"Could not open camera index {args.camera}. "
            "On macOS: System Settings -> Privacy & Security -> Camera -> allow your terminal/Cursor."
        )

    cap.set(cv2.CAP_PROP_FRAME_WIDTH, config.width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, config.height)

    rng = random.Random(args.seed)
    with AsyncHandTracker(HandTracker(max_num_hands=args.max_hands)) as tracker, notes:
        game = SimonGame(notes, config=config, rng=rng)
        game.start()
        print("Watch the keys light up, then point at them in the same order.")
        print("Press 'q' or ESC to quit")

        while True:
            ok, frame = cap.read()
            if not ok:
                break

            frame = cv2.resize(frame, (config.width, config.height))
            tracker.submit(frame)
            game.tick(tracker.latest())

            cv2.imshow("simon piano", game.render(frame))
            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), 27):
                break

    cap.release()
    cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
