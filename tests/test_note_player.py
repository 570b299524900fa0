import subprocess
import types

import numpy as np
import pytest

import note_player
from ear_trainer import QuizSettings, run_quiz
from note_player import (
    PlaybackError,
    SAMPLE_RATE,
    SineSynthPlayer,
    SoxPlayer,
    note_frequency,
    render_tone,
)

from conftest import FixedRng, scripted_input


@pytest.mark.parametrize("note, freq", [
    (69, 440.0),
    (81, 880.0),
    (57, 220.0),
])
def test_note_frequency_octaves(note, freq):
    assert note_frequency(note) == pytest.approx(freq)


def test_note_frequency_middle_c():
    assert note_frequency(60) == pytest.approx(261.6256, abs=1e-3)


def test_render_tone_shape_and_envelope():
    tone = render_tone(440.0)
    assert tone.dtype == np.float32
    assert len(tone) == SAMPLE_RATE
    assert np.max(np.abs(tone)) <= 0.6 + 1e-6
    # silent at both ends
    assert tone[0] == 0.0
    assert abs(tone[-1]) < 1e-3


def test_sox_command():
    cmd = SoxPlayer().command(440.0)
    assert cmd == ["play", "-q", "-n", "synth", "1", "sine", "440.0",
                   "fade", "0.1", "1", "0.7", "vol", "0.6"]


def test_sox_player_waits_for_play(monkeypatch):
    calls = []

    def fake_run(cmd):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0)
    monkeypatch.setattr(subprocess, "run", fake_run)

    SoxPlayer().play_note(69)
    assert len(calls) == 1
    assert calls[0][6] == "440.0"


def test_sox_player_missing_executable(monkeypatch):
    def fake_run(cmd):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])
    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(PlaybackError):
        SoxPlayer().play(440.0)


def test_sox_player_ignores_exit_status(monkeypatch, caplog):
    monkeypatch.setattr(subprocess, "run",
                        lambda cmd: subprocess.CompletedProcess(cmd, 1))
    SoxPlayer().play(440.0)
    assert "exited with status 1" in caplog.text


class _PortAudioError(Exception):
    pass


def _fake_sounddevice(fail=False):
    sd = types.SimpleNamespace(PortAudioError=_PortAudioError, played=[], waits=0)

    def play(data, samplerate):
        if fail:
            raise _PortAudioError("no output device")
        sd.played.append((data, samplerate))

    def wait():
        sd.waits += 1
    sd.play = play
    sd.wait = wait
    return sd


def test_sine_synth_player_plays_and_waits(monkeypatch):
    sd = _fake_sounddevice()
    monkeypatch.setattr(note_player, "_sounddevice", lambda: sd)

    player = SineSynthPlayer()
    player.play_note(69)
    player.play_note(69)

    assert len(sd.played) == 2
    assert sd.waits == 2
    data, rate = sd.played[0]
    assert rate == SAMPLE_RATE
    assert data is sd.played[1][0]


def test_sine_synth_player_wraps_audio_errors(monkeypatch):
    sd = _fake_sounddevice(fail=True)
    monkeypatch.setattr(note_player, "_sounddevice", lambda: sd)

    with pytest.raises(PlaybackError):
        SineSynthPlayer().play(440.0)


def test_quiz_runs_on_sine_synth_player(monkeypatch, capsys):
    sd = _fake_sounddevice()
    monkeypatch.setattr(note_player, "_sounddevice", lambda: sd)

    result = run_quiz(QuizSettings(test_count=1), SineSynthPlayer(),
                      FixedRng([69]), scripted_input(["?", "A4"]))
    assert result.perfect_count == 1
    assert len(sd.played) == 2
    assert "Your final score: 100% = S" in capsys.readouterr().out
