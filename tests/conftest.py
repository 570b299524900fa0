import pytest

from note_player import NotePlayer


class RecordingPlayer(NotePlayer):
    """Remembers what it was asked to play instead of making sound."""

    def __init__(self):
        self.played = []

    def play(self, freq):
        self.played.append(freq)


class FixedRng:
    def __init__(self, notes):
        self.notes = list(notes)
        self.ranges = []

    def randint(self, a, b):
        self.ranges.append((a, b))
        return self.notes.pop(0)


def scripted_input(lines):
    """input() replacement that feeds *lines* and then hits end of input."""
    pending = list(lines)

    def read_line():
        if not pending:
            raise EOFError
        return pending.pop(0)
    return read_line


@pytest.fixture
def player():
    return RecordingPlayer()
