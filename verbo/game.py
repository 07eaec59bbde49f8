# Core game logic for Verbo.
# Implements canonical Wordle marking rules:
# - Two-pass algorithm: first mark exact hits and consume them from the
#   secret's letter tally, then mark wrong-position letters left to right
#   while the tally for that letter lasts.
# - Hard mode: every revealed hint must be honoured by later guesses.

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence
import re
import unicodedata
from .config import WORD_LENGTH

CORRECT = "correct"
WRONG_POSITION = "wrong-position"
INCORRECT = "incorrect"

# Letters including Portuguese accents.
LETTERS_RE = re.compile(r"^[a-zA-ZÀ-ÿÀ-ſ]+$")

VERB_SUFFIXES = ("ar", "er", "ir", "or")


class LengthMismatch(ValueError):
    """Guess and secret do not have the same length."""


@dataclass(frozen=True)
class LetterFeedback:
    letter: str
    status: str


@dataclass(frozen=True)
class HardModeViolation:
    reason: str
    letter: str
    position: Optional[int] = None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: str
    code: str


def fold(word: str) -> List[str]:
    # One folded character per input character; "İ".lower() is two code points
    return [ch.lower()[:1] for ch in word]


def score(guess: str, secret: str) -> List[LetterFeedback]:
    if len(guess) != len(secret):
        raise LengthMismatch(f"guess has {len(guess)} letters, secret has {len(secret)}")

    guess_lower = fold(guess)
    secret_lower = fold(secret)
    remaining = Counter(secret_lower)
    statuses = [INCORRECT] * len(guess)

    # First pass: exact hits
    for i, ch in enumerate(guess_lower):
        if ch == secret_lower[i]:
            statuses[i] = CORRECT
            remaining[ch] -= 1

    # Second pass: displaced letters, bounded by what the hits left over
    for i, ch in enumerate(guess_lower):
        if statuses[i] == INCORRECT and remaining[ch] > 0:
            statuses[i] = WRONG_POSITION
            remaining[ch] -= 1

    return [LetterFeedback(letter=guess[i], status=s) for i, s in enumerate(statuses)]


def is_victory(feedback: Iterable[LetterFeedback]) -> bool:
    return all(f.status == CORRECT for f in feedback)


def validate_hard_mode(
    candidate: str, history: Sequence[Sequence[LetterFeedback]]
) -> Optional[HardModeViolation]:
    """
    Check a candidate guess against every hint revealed by `history`.

    Returns None when the guess is acceptable, otherwise the first
    violation found: positional constraints are checked in ascending
    position order, then inclusion constraints in the order the letters
    were first revealed.
    """
    if not history:
        return None

    required_at: dict = {}
    must_include: List[str] = []
    for guess in history:
        for position, fb in enumerate(guess):
            letter = fb.letter.lower()[:1]
            if fb.status == CORRECT:
                required_at[position] = letter
                # A correct mark anywhere (same or later guess) turns an earlier
                # wrong-position hint for this letter into a positional one.
                # Wrong-position hints revealed after it are kept.
                if letter in must_include:
                    must_include.remove(letter)
            elif fb.status == WRONG_POSITION:
                if letter not in must_include:
                    must_include.append(letter)

    candidate = fold(candidate)
    for position in sorted(required_at):
        letter = required_at[position]
        if position >= len(candidate) or candidate[position] != letter:
            return HardModeViolation(
                reason=f'A {position + 1}ª letra deve ser "{letter.upper()}"',
                letter=letter,
                position=position,
            )

    for letter in must_include:
        if letter not in candidate:
            return HardModeViolation(
                reason=f'Deve incluir a letra "{letter.upper()}"',
                letter=letter,
            )

    return None


def validate_attempt(word) -> ValidationResult:
    if not word or not isinstance(word, str):
        return ValidationResult(False, "A palavra é obrigatória", "WORD_REQUIRED")

    w = word.strip()
    if not w:
        return ValidationResult(False, "A palavra não pode estar vazia", "WORD_EMPTY")
    if len(w) != WORD_LENGTH:
        return ValidationResult(
            False, f"A palavra deve ter exatamente {WORD_LENGTH} letras", "WORD_INVALID_LENGTH"
        )
    if not LETTERS_RE.match(w):
        return ValidationResult(False, "A palavra deve conter apenas letras", "WORD_INVALID_CHARACTERS")

    return ValidationResult(True, "Tentativa válida", "VALID")


def normalize_word(word: str) -> str:
    # Lower-case and drop diacritics: "pôr" -> "por"
    decomposed = unicodedata.normalize("NFD", word.strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def is_verb_form(word: str) -> bool:
    return word.strip().lower().endswith(VERB_SUFFIXES)
