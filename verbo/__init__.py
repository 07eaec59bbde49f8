"""Verbo: a daily Wordle-style guessing game over Portuguese verbs."""

__version__ = "1.0.0"
