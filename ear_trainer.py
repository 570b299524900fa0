#!/usr/bin/env python3
"""
Ear Trainer
===========
A terminal quiz that:
  1. Plays a random note (sine tone) from a range centred on middle C
  2. Asks you to name it, e.g. "C#4"  ("?" plays it again)
  3. Gives full credit for the exact note, half credit for the right
     note in the wrong octave
  4. Grades you at the end (S, A+ … D-, F)

Dependencies: numpy, sounddevice, SoX's `play` command
Usage:        ear-trainer [-o OCTAVES] [-t TEST_COUNT] [-a ATTEMPT_LIMIT]
"""

import argparse
import enum
import logging
import random
import re
import sys
from dataclasses import dataclass

from note_player import NOTES_PER_OCTAVE, NotePlayer, PlaybackError, SoxPlayer

__version__ = "0.1.0"

log = logging.getLogger(__name__)


# ─── Note Definitions ────────────────────────────────────────────────────────
NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
MIDDLE_C = 60

# Pitch class (sharps only on A C D F G) followed by a single octave digit 2–6
VALID_NOTE_PATTERN = re.compile(r"^([ACDFG]#?|[BE])?[2-6]$")
REPLAY_COMMAND = "?"

# ─── Quiz Defaults ───────────────────────────────────────────────────────────
MIN_OCTAVES = 1
MAX_OCTAVES = 5
DEFAULT_OCTAVES = 1
DEFAULT_TEST_COUNT = 20
DEFAULT_ATTEMPT_LIMIT = 3

# ─── Grading ─────────────────────────────────────────────────────────────────
GRADES = [
    (100, "S"),
    (97, "A+"),
    (94, "A"),
    (90, "A-"),
    (87, "B+"),
    (84, "B"),
    (80, "B-"),
    (77, "C+"),
    (74, "C"),
    (70, "C-"),
    (67, "D+"),
    (64, "D"),
    (60, "D-"),
]
FAILING_GRADE = "F"

# ─── Terminal Colors ─────────────────────────────────────────────────────────
RST = "\033[0m"
BOLD = "\033[1m"
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
CYAN = "\033[96m"


# ─── Note Naming ─────────────────────────────────────────────────────────────

def full_note_name(note: int) -> str:
    """MIDI number → pitch class + octave, e.g. 61 → 'C#4'."""
    octave = note // NOTES_PER_OCTAVE - 1
    return f"{NOTE_NAMES[note % NOTES_PER_OCTAVE]}{octave}"


def note_name(note: int) -> str:
    """MIDI number → pitch class only, e.g. 61 → 'C#'."""
    return NOTE_NAMES[note % NOTES_PER_OCTAVE]


def note_range(octaves: int) -> tuple[int, int]:
    """
    Lowest and highest note to quiz for an octave range.

    The range is clamped to 1–5 octaves. Odd counts lean upwards: one octave
    covers middle C up to the C above it, three add the octave below, etc.
    """
    octaves = max(MIN_OCTAVES, min(octaves, MAX_OCTAVES))
    octaves_below = octaves // 2
    octaves_above = (octaves + 1) // 2
    return (MIDDLE_C - octaves_below * NOTES_PER_OCTAVE,
            MIDDLE_C + octaves_above * NOTES_PER_OCTAVE)


# ─── Guess Evaluation ────────────────────────────────────────────────────────

class Guess(enum.Enum):
    WRONG = "wrong"
    WRONG_OCTAVE = "wrong_octave"
    PERFECT = "perfect"


def is_valid_guess(text: str) -> bool:
    return VALID_NOTE_PATTERN.fullmatch(text) is not None


def classify_guess(text: str, note: int) -> Guess:
    """Compare a grammar-conforming guess against the note that was played."""
    if text == full_note_name(note):
        return Guess.PERFECT
    if text[:-1] == note_name(note):
        return Guess.WRONG_OCTAVE
    return Guess.WRONG


def read_guess(note: int, player: NotePlayer, read_line=input) -> Guess:
    """
    Prompt until the user enters a well-formed note name.

    "?" replays the note and anything unparseable prints a hint; neither
    counts as a guess. End of input or an unreadable line ends the whole
    program (status 0).
    """
    while True:
        print("Your guess?")
        try:
            line = read_line()
        except (EOFError, OSError, UnicodeDecodeError):
            raise SystemExit(0)
        line = line.rstrip("\n")

        if is_valid_guess(line):
            guess = classify_guess(line, note)
            log.debug("guess %r for %s: %s", line, full_note_name(note), guess.value)
            return guess
        elif line == REPLAY_COMMAND:
            player.play_note(note)
        else:
            print('Please enter a note in MIDI notation (e.g. "C#4"), or '
                  '"?" to repeat the\nnote playback.')


# ─── Scoring ─────────────────────────────────────────────────────────────────

def compute_score(perfect_count: int, right_count: int, test_count: int) -> int:
    """
    Percentage score, whole credit per perfect guess and half per
    wrong-octave guess. Integer maths throughout; halves round up.
    """
    if test_count <= 0:
        return 0
    return ((perfect_count * 2 + right_count) * 100 // test_count + 1) // 2


def letter_grade(score: int) -> str:
    for threshold, grade in GRADES:
        if score >= threshold:
            return grade
    return FAILING_GRADE


@dataclass
class QuizSettings:
    octaves: int = DEFAULT_OCTAVES
    test_count: int = DEFAULT_TEST_COUNT
    attempt_limit: int = DEFAULT_ATTEMPT_LIMIT

    def note_range(self) -> tuple[int, int]:
        return note_range(self.octaves)


@dataclass
class QuizResult:
    test_count: int
    perfect_count: int = 0
    right_count: int = 0

    @property
    def score(self) -> int:
        return compute_score(self.perfect_count, self.right_count, self.test_count)

    @property
    def grade(self) -> str:
        return letter_grade(self.score)


# ─── Quiz ────────────────────────────────────────────────────────────────────

def run_trial(note: int, player: NotePlayer, attempt_limit: int,
              read_line=input) -> Guess:
    """Play one note and take up to *attempt_limit* guesses at it."""
    answer = full_note_name(note)
    print("---")
    player.play_note(note)

    guess = Guess.WRONG
    for remaining in reversed(range(attempt_limit)):
        guess = read_guess(note, player, read_line)
        if guess is Guess.PERFECT:
            print(f"{GREEN}Correct!{RST}")
            break
        if guess is Guess.WRONG_OCTAVE:
            print(f"{YELLOW}You got the note right, but the octave wrong.{RST}")
            print(f"The correct answer was: {answer}")
            break

        if remaining > 1:
            print(f"Try again ({remaining} guesses left)")
        elif remaining > 0:
            print("Try again (last guess)")
        else:
            print(f"{RED}Out of guesses.{RST}")
            print(f"The note was: {answer}")
    return guess


def run_quiz(settings: QuizSettings, player: NotePlayer, rng=None,
             read_line=input) -> QuizResult:
    """Run every trial, print the final report and return the tallies."""
    rng = rng or random.Random()
    min_note, max_note = settings.note_range()
    print(f" Lowest note we'll play: {CYAN}{full_note_name(min_note)}{RST}")
    print(f"Highest note we'll play: {CYAN}{full_note_name(max_note)}{RST}")

    result = QuizResult(test_count=settings.test_count)
    for _ in range(settings.test_count):
        note = rng.randint(min_note, max_note)
        log.debug("drew note %d (%s)", note, full_note_name(note))
        guess = run_trial(note, player, settings.attempt_limit, read_line)
        if guess is Guess.PERFECT:
            result.perfect_count += 1
        elif guess is Guess.WRONG_OCTAVE:
            result.right_count += 1

    _print_report(result)
    return result


def _print_report(result: QuizResult):
    print(f"You got {result.perfect_count}/{result.test_count} correct. "
          f"Half credit for {result.right_count} wrong-octave guesses.")
    print(f"{BOLD}Your final score: {result.score}% = {result.grade}{RST}")


# ─── Main ────────────────────────────────────────────────────────────────────

def _count(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid count: {value!r}")
    if n < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {n}")
    return n


def parse_args(argv=None) -> QuizSettings:
    ap = argparse.ArgumentParser(
        prog="ear-trainer",
        description="Test and train your musical note distinguishingmentness!",
    )
    ap.add_argument("-o", "--octaves", type=_count, default=DEFAULT_OCTAVES,
                    help="Octave range. 1 = middle octave only. 2 = middle and "
                         "below. 3 = middle and above. etc. Max = 5, min = 1. "
                         "Middle C is the one that's below the A that is 440Hz, "
                         "and is C3. (default: %(default)s)")
    ap.add_argument("-t", "--test-count", type=_count, default=DEFAULT_TEST_COUNT,
                    help="Number of notes to test. (default: %(default)s)")
    ap.add_argument("-a", "--attempt-limit", type=_count,
                    default=DEFAULT_ATTEMPT_LIMIT,
                    help="Number of tries per note. (default: %(default)s)")
    ap.add_argument("-V", "--version", action="version",
                    version=f"%(prog)s {__version__}")
    args = ap.parse_args(argv)
    return QuizSettings(octaves=args.octaves, test_count=args.test_count,
                        attempt_limit=args.attempt_limit)


def main(argv=None):
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    settings = parse_args(argv)

    try:
        run_quiz(settings, SoxPlayer())
    except PlaybackError as e:
        print(f"\n  {RED}❌ Audio error: {e}{RST}")
        print("  Make sure SoX is installed and `play` is on your PATH.")
        print("  On Fedora: sudo dnf install sox")
        sys.exit(1)
    except KeyboardInterrupt:
        print()
        sys.exit(130)


if __name__ == "__main__":
    main()
