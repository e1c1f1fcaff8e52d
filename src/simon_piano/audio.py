from __future__ import annotations

import logging
import os
import threading
from typing import Dict, List, Optional, Tuple

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)


# Musical scale definitions as MIDI note numbers.
SCALES: Dict[str, List[int]] = {
    "c_major": [60, 62, 64, 65, 67, 69, 71],  # C4 to B4, octave added on demand
    "pentatonic": [60, 62, 64, 67, 69],
    "chromatic": list(range(60, 72)),
}

# Tried in this order when looking for ``<n>.<ext>``.
CLIP_EXTENSIONS = (".wav", ".mp3", ".flac", ".ogg")


class NoteAssetError(RuntimeError):
    """A note clip could not be found or decoded."""


def midi_to_freq(midi_note: int) -> float:
    """Convert MIDI note number to frequency in Hz."""
    return 440.0 * (2.0 ** ((midi_note - 69) / 12.0))


def scale_midi(scale: str, count: int) -> List[int]:
    """First ``count`` notes of ``scale``, continuing upward an octave at a time."""
    if scale not in SCALES:
        raise ValueError(f"Unknown scale '{scale}'. Available: {list(SCALES.keys())}")
    notes = SCALES[scale]
    return [notes[i % len(notes)] + 12 * (i // len(notes)) for i in range(count)]


def synth_note(freq_hz: float, sample_rate: int = 44100, duration_s: float = 0.9) -> np.ndarray:
    """A short plucked-piano-like tone: a few decaying harmonics with a soft attack."""
    n = max(1, int(sample_rate * duration_s))
    t = np.arange(n, dtype=np.float32) / float(sample_rate)
    tone = np.zeros(n, dtype=np.float32)
    for k, amp in enumerate((1.0, 0.45, 0.2, 0.1), start=1):
        tone += amp * np.sin(2.0 * np.pi * freq_hz * k * t) * np.exp(-t * (3.0 + 1.5 * k))
    attack = min(n, max(1, int(sample_rate * 0.005)))
    tone[:attack] *= np.linspace(0.0, 1.0, attack, dtype=np.float32)
    peak = float(np.max(np.abs(tone))) or 1.0
    return (tone / peak).astype(np.float32)


def find_clip(directory: str, number: int) -> str:
    """Path of the clip named ``<number>.<ext>`` in ``directory``, trying each supported extension."""
    for ext in CLIP_EXTENSIONS:
        path = os.path.join(directory, f"{number}{ext}")
        if os.path.exists(path):
            return path
    tried = ", ".join(f"{number}{ext}" for ext in CLIP_EXTENSIONS)
    raise NoteAssetError(f"Missing note clip {number} in {directory} (tried {tried})")


def load_clip(path: str) -> Tuple[np.ndarray, int]:
    """Read an audio file as mono float32 in [-1, 1]."""
    if not os.path.exists(path):
        raise NoteAssetError(f"Missing note clip: {path}")
    try:
        data, sample_rate = sf.read(path, dtype="float32", always_2d=False)
    except sf.SoundFileError as e:
        raise NoteAssetError(f"Could not decode note clip {path}: {e}") from e

    if data.ndim > 1:
        data = data.mean(axis=1)
    return data.astype(np.float32), int(sample_rate)


class NoteBank:
    """
    Preloaded note clips indexed 0..N-1, played fire-and-forget.

    All playing notes are mixed into one sounddevice output stream, so a new
    note does not cut off the previous one.
    """

    def __init__(self, clips: List[np.ndarray], sample_rate: int = 44100, volume: float = 0.8) -> None:
        if not clips:
            raise ValueError("NoteBank needs at least one clip")
        self.clips = [np.asarray(c, dtype=np.float32) for c in clips]
        self.sample_rate = sample_rate
        self.volume = max(0.0, min(1.0, volume))

        # Audio stream state
        self._stream = None
        self._lock = threading.Lock()
        self._voices: List[List] = []  # [clip, read position]

    @classmethod
    def from_directory(cls, directory: str, num_keys: int, volume: float = 0.8) -> "NoteBank":
        """Load clips ``1`` .. ``N`` (wav, mp3, flac or ogg) from ``directory``; key ``i`` plays clip ``i+1``."""
        clips: List[np.ndarray] = []
        rate: Optional[int] = None
        for i in range(num_keys):
            path = find_clip(directory, i + 1)
            clip, sr = load_clip(path)
            if rate is not None and sr != rate:
                raise NoteAssetError(f"{path} is {sr} Hz but earlier clips are {rate} Hz")
            rate = sr
            clips.append(clip)
        logger.info("Loaded %d note clips from %s (%s Hz)", len(clips), directory, rate)
        return cls(clips, sample_rate=rate or 44100, volume=volume)

    @classmethod
    def synthesized(
        cls,
        num_keys: int,
        scale: str = "c_major",
        sample_rate: int = 44100,
        duration_s: float = 0.9,
        volume: float = 0.8,
    ) -> "NoteBank":
        clips = [synth_note(midi_to_freq(m), sample_rate, duration_s) for m in scale_midi(scale, num_keys)]
        logger.info("Synthesized %d notes on the %s scale", len(clips), scale)
        return cls(clips, sample_rate=sample_rate, volume=volume)

    def __len__(self) -> int:
        return len(self.clips)

    def play(self, index: int) -> None:
        if not 0 <= index < len(self.clips):
            raise IndexError(f"Note index {index} outside [0, {len(self.clips)})")
        with self._lock:
            self._voices.append([self.clips[index], 0])

    def active_voices(self) -> int:
        with self._lock:
            return len(self._voices)

    def mix(self, frames: int) -> np.ndarray:
        """Render and consume the next ``frames`` samples of all playing notes."""
        out = np.zeros(frames, dtype=np.float32)
        with self._lock:
            alive: List[List] = []
            for voice in self._voices:
                clip, pos = voice
                chunk = clip[pos : pos + frames]
                out[: len(chunk)] += chunk
                voice[1] = pos + frames
                if voice[1] < len(clip):
                    alive.append(voice)
            self._voices = alive
        return np.clip(out * self.volume, -1.0, 1.0)

    def start(self) -> None:
        """Start the audio stream."""
        if self._stream is not None:
            return
        import sounddevice as sd

        self._stream = sd.OutputStream(
            samplerate=self.sample_rate,
            channels=1,
            callback=self._audio_callback,
            blocksize=512,
        )
        self._stream.start()

    def stop(self) -> None:
        """Stop the audio stream."""
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None

    def _audio_callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug("Audio stream status: %s", status)
        outdata[:, 0] = self.mix(frames)

    def __enter__(self) -> "NoteBank":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
