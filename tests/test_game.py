"""
Testing pure game logic: scoring, hard mode and attempt validation.
"""

from collections import Counter
import pytest
from verbo.game import (
    CORRECT, INCORRECT, WRONG_POSITION, LengthMismatch, LetterFeedback,
    is_verb_form, is_victory, normalize_word, score, validate_attempt, validate_hard_mode,
)

C, W, I = CORRECT, WRONG_POSITION, INCORRECT


def statuses(feedback):
    return [f.status for f in feedback]


def history_of(*pairs):
    return [score(guess, secret) for guess, secret in pairs]


@pytest.mark.parametrize("guess,secret,expected", [
    ("comer", "comer", [C, C, C, C, C]),
    ("ficar", "ferir", [C, W, I, I, C]),
    ("rorro", "carro", [I, I, C, C, C]),
    ("errar", "ferir", [W, I, C, I, C]),
    ("amara", "falar", [W, I, W, W, I]),
    ("lavar", "abrir", [I, W, I, I, C]),
])
def test_score_golden(guess, secret, expected):
    assert statuses(score(guess, secret)) == expected


def test_score_duplicate_letters_never_exceed_secret_count():
    pairs = [
        ("rorro", "carro"), ("errar", "ferir"), ("aaaaa", "amara"), ("ooooo", "mover"),
        ("rrrrr", "errar"), ("parar", "pagar"), ("beber", "bater"), ("ferir", "errar"),
    ]
    for guess, secret in pairs:
        feedback = score(guess, secret)
        hits = Counter(f.letter.lower() for f in feedback if f.status in (C, W))
        secret_counts = Counter(secret)
        for letter, n in hits.items():
            assert n <= secret_counts[letter], (guess, secret, letter)


def test_score_exact_match_is_never_downgraded():
    # The trailing "r" is an exact hit even though earlier "r"s come first
    feedback = score("rrrrr", "abrir")
    assert statuses(feedback) == [I, I, C, I, C]


def test_score_is_case_insensitive_and_keeps_input_letters():
    feedback = score("FiCaR", "ferir")
    assert [f.letter for f in feedback] == ["F", "i", "C", "a", "R"]
    assert statuses(feedback) == [C, W, I, I, C]


def test_score_length_mismatch():
    with pytest.raises(LengthMismatch):
        score("come", "comer")
    with pytest.raises(ValueError):
        score("comerr", "comer")


def test_is_victory():
    assert is_victory(score("comer", "comer")) is True
    assert is_victory(score("comir", "comer")) is False


def test_hard_mode_empty_history_accepts_anything():
    assert validate_hard_mode("zzzzz", []) is None


def test_hard_mode_positional_violation_names_position_and_letter():
    history = history_of(("ficar", "ferir"))
    violation = validate_hard_mode("comer", history)
    assert violation is not None
    assert violation.position == 0
    assert violation.letter == "f"
    assert violation.reason == 'A 1ª letra deve ser "F"'


def test_hard_mode_reports_lowest_position_first():
    history = history_of(("ficar", "ferir"))
    # Breaks both position 0 and position 4
    violation = validate_hard_mode("amada", history)
    assert violation.position == 0


def test_hard_mode_missing_included_letter():
    history = history_of(("ficar", "ferir"))
    violation = validate_hard_mode("fazer", history)
    assert violation is not None
    assert violation.position is None
    assert violation.letter == "i"
    assert violation.reason == 'Deve incluir a letra "I"'


def test_hard_mode_inclusion_checked_in_reveal_order():
    history = [[
        LetterFeedback("r", W), LetterFeedback("i", W), LetterFeedback("x", I),
        LetterFeedback("y", I), LetterFeedback("z", I),
    ]]
    assert validate_hard_mode("ferir", history) is None
    assert validate_hard_mode("casas", history).letter == "r"
    assert validate_hard_mode("lavar", history).letter == "i"


def test_hard_mode_accepts_consistent_guess():
    history = history_of(("ficar", "ferir"))
    assert validate_hard_mode("ferir", history) is None
    assert validate_hard_mode("fibar", history) is None


def test_hard_mode_positions_stay_constrained_across_guesses():
    history = history_of(("ficar", "ferir"), ("fibar", "ferir"))
    for candidate in ("cibar", "xerir", "ferix"):
        assert validate_hard_mode(candidate, history) is not None


def test_hard_mode_upgraded_letter_becomes_positional():
    history = [
        [LetterFeedback("e", W)] + [LetterFeedback("x", I)] * 4,
        [LetterFeedback("x", I), LetterFeedback("e", C)] + [LetterFeedback("x", I)] * 3,
    ]
    violation = validate_hard_mode("comar", history)
    assert violation.position == 1
    assert violation.letter == "e"


def test_hard_mode_is_case_insensitive():
    history = [[LetterFeedback("F", C)] + [LetterFeedback("x", I)] * 4]
    assert validate_hard_mode("Fazer", history) is None
    assert validate_hard_mode("fazer", history) is None


@pytest.mark.parametrize("word,code", [
    (None, "WORD_REQUIRED"),
    ("", "WORD_REQUIRED"),
    ("   ", "WORD_EMPTY"),
    ("come", "WORD_INVALID_LENGTH"),
    ("comerr", "WORD_INVALID_LENGTH"),
    ("com3r", "WORD_INVALID_CHARACTERS"),
    ("co-er", "WORD_INVALID_CHARACTERS"),
    ("comer", "VALID"),
    (" Comer ", "VALID"),
    ("pôrem", "VALID"),
])
def test_validate_attempt(word, code):
    result = validate_attempt(word)
    assert result.code == code
    assert result.valid is (code == "VALID")


def test_normalize_word_strips_accents():
    assert normalize_word(" Pôr ") == "por"
    assert normalize_word("ação") == "acao"


def test_is_verb_form():
    assert is_verb_form("comer")
    assert is_verb_form("compor")
    assert not is_verb_form("casas")


def test_score_letters_that_lowercase_to_two_characters():
    # "İ".lower() is "i" plus a combining dot; each guess letter stays one slot
    assert validate_attempt("abİcd").valid is True
    feedback = score("abİcd", "abrir")
    assert len(feedback) == 5
    assert [f.letter for f in feedback] == list("abİcd")
    assert statuses(feedback) == [C, C, W, I, I]


def test_hard_mode_with_letters_that_lowercase_to_two_characters():
    history = [score("abİcd", "abrir")]
    assert validate_hard_mode("abİrr", history) is None
    assert validate_hard_mode("abrrr", history).letter == "i"


def test_hard_mode_correct_in_same_guess_makes_hint_positional():
    # Wrong-position "e" at 0, then the same guess places "e" at 3
    history = [[
        LetterFeedback("e", W), LetterFeedback("x", I), LetterFeedback("x", I),
        LetterFeedback("e", C), LetterFeedback("x", I),
    ]]
    assert validate_hard_mode("comer", history) is None
    violation = validate_hard_mode("eabcd", history)
    assert violation.position == 3
    assert violation.letter == "e"


def test_hard_mode_keeps_hint_revealed_after_correct():
    history = [
        [LetterFeedback("r", C)] + [LetterFeedback("x", I)] * 4,
        [LetterFeedback("r", C), LetterFeedback("x", I), LetterFeedback("e", W)] + [LetterFeedback("x", I)] * 2,
    ]
    violation = validate_hard_mode("rabcd", history)
    assert violation.position is None
    assert violation.letter == "e"
