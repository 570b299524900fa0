"""
Note Playback
=============
Plays a single sine tone for the ear trainer and blocks until it is done.

Two backends share the `NotePlayer` interface:
  * SoxPlayer        – shells out to SoX's `play` utility (what the CLI uses)
  * SineSynthPlayer  – renders the tone with numpy, plays it via sounddevice

Dependencies: numpy, sounddevice (SineSynthPlayer only), SoX (SoxPlayer only)

To quiz without SoX, hand the in-process backend to the quiz directly:

    from ear_trainer import QuizSettings, run_quiz
    from note_player import SineSynthPlayer
    run_quiz(QuizSettings(octaves=2), SineSynthPlayer())
"""

import logging
import subprocess

import numpy as np

log = logging.getLogger(__name__)


# ─── Tuning ──────────────────────────────────────────────────────────────────
NOTES_PER_OCTAVE = 12
BASE_NOTE = 69              # MIDI A4
BASE_FREQ = 440.0           # A440

# ─── Tone Settings ───────────────────────────────────────────────────────────
SAMPLE_RATE = 44100
TONE_DURATION = 1.0         # seconds
FADE_IN = 0.1               # seconds
FADE_OUT = 0.7              # seconds, ends at TONE_DURATION
TONE_VOLUME = 0.6

PLAY_EXECUTABLE = "play"


class PlaybackError(RuntimeError):
    """The tone could not be played at all."""


def note_frequency(note: int) -> float:
    """Equal-tempered frequency of a MIDI note number, e.g. 69 → 440.0."""
    return BASE_FREQ * 2.0 ** ((note - BASE_NOTE) / NOTES_PER_OCTAVE)


def render_tone(freq: float, duration: float = TONE_DURATION,
                volume: float = TONE_VOLUME) -> np.ndarray:
    """Generate the quiz tone: a sine with a short fade-in and a long fade-out."""
    n_samples = int(SAMPLE_RATE * duration)
    t = np.arange(n_samples) / SAMPLE_RATE

    envelope = np.ones(n_samples)
    fade_in = min(int(FADE_IN * SAMPLE_RATE), n_samples)
    if fade_in > 0:
        envelope[:fade_in] = np.linspace(0, 1, fade_in)
    fade_out = min(int(FADE_OUT * SAMPLE_RATE), n_samples)
    if fade_out > 0:
        envelope[n_samples - fade_out:] *= np.linspace(1, 0, fade_out)

    signal = volume * np.sin(2 * np.pi * freq * t) * envelope
    return signal.astype(np.float32)


class NotePlayer:
    """Something that can sound a frequency and wait for it to finish."""

    def play(self, freq: float):
        raise NotImplementedError

    def play_note(self, note: int):
        self.play(note_frequency(note))


class SoxPlayer(NotePlayer):
    """Runs `play -q -n synth 1 sine <freq> fade 0.1 1 0.7 vol 0.6`."""

    def __init__(self, executable: str = PLAY_EXECUTABLE):
        self.executable = executable

    def command(self, freq: float) -> list[str]:
        return [
            self.executable, "-q", "-n",
            "synth", f"{TONE_DURATION:g}", "sine", f"{freq}",
            "fade", f"{FADE_IN:g}", f"{TONE_DURATION:g}", f"{FADE_OUT:g}",
            "vol", f"{TONE_VOLUME:g}",
        ]

    def play(self, freq: float):
        cmd = self.command(freq)
        log.debug("running %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd)
        except OSError as e:
            log.error("failed to start playback: %s", e)
            raise PlaybackError(f"failed to start playback: {e}") from e
        if proc.returncode != 0:
            log.warning("%s exited with status %d", self.executable, proc.returncode)


def _sounddevice():
    # PortAudio is loaded on import, so only pay for it when this backend is used
    import sounddevice
    return sounddevice


class SineSynthPlayer(NotePlayer):
    """Synthesizes the tone in-process and plays it on the default output."""

    def __init__(self):
        self._cache: dict[float, np.ndarray] = {}

    def play(self, freq: float):
        sd = _sounddevice()
        tone = self._cache.get(freq)
        if tone is None:
            tone = self._cache[freq] = render_tone(freq)
        try:
            sd.play(tone, SAMPLE_RATE)
            sd.wait()
        except sd.PortAudioError as e:
            log.error("audio output failed: %s", e)
            raise PlaybackError(f"audio output failed: {e}") from e
