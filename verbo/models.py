# Pydantic models and data structures for API IO.

from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Literal
from .game import LetterFeedback as CoreLetterFeedback

LetterStatus = Literal["correct", "wrong-position", "incorrect"]
WordType = Literal["noun", "adjective", "verb", "other"]


class LetterFeedback(BaseModel):
    letter: str
    status: LetterStatus

    def to_core(self) -> CoreLetterFeedback:
        return CoreLetterFeedback(letter=self.letter, status=self.status)

    @classmethod
    def from_core(cls, fb: CoreLetterFeedback) -> "LetterFeedback":
        return cls(letter=fb.letter, status=fb.status)


class DayResponse(BaseModel):
    word: str
    length: int
    id: int


class AttemptRequest(BaseModel):
    word: str = Field(..., description="5-letter guess")
    verb_id: int = Field(..., description="Id returned by /api/verb/day")
    hard_mode: bool = False
    history: List[List[LetterFeedback]] = Field(default_factory=list, description="Previously scored guesses")


class AttemptResponse(BaseModel):
    feedback: List[LetterFeedback]
    victory: bool
    word: Optional[str] = None
    correct_word: str


class HardModeRequest(BaseModel):
    word: str
    history: List[List[LetterFeedback]] = Field(default_factory=list)


class HardModeResponse(BaseModel):
    valid: bool
    reason: Optional[str] = None
    position: Optional[int] = None
    letter: Optional[str] = None


class UsageStats(BaseModel):
    total: int
    used: int
    available: int


class AdminLoginRequest(BaseModel):
    password: str


class AdminLoginResponse(BaseModel):
    token: str


class VerbCreate(BaseModel):
    word: str = Field(..., min_length=5, max_length=5, pattern=r"^[a-zA-ZÀ-ÿ]+$")
    active: bool = True
    used: bool = False

    @field_validator("word")
    @classmethod
    def lower_word(cls, v: str) -> str:
        return v.strip().lower()


class VerbUpdate(BaseModel):
    word: Optional[str] = Field(None, min_length=5, max_length=5, pattern=r"^[a-zA-ZÀ-ÿ]+$")
    active: Optional[bool] = None
    used: Optional[bool] = None


class VerbOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    word: str
    active: bool
    used: bool


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool = False
    has_prev: bool = False


class VerbList(BaseModel):
    verbs: List[VerbOut]
    pagination: Pagination


class CommonWordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    word: str
    type: str
    active: bool
    created_at: Optional[datetime] = None


class CommonWordList(BaseModel):
    words: List[CommonWordOut]
    pagination: Pagination


class WordsCreate(BaseModel):
    words: List[str] = Field(..., min_length=1)
    type: WordType = "other"


class WordUpdate(BaseModel):
    word: Optional[str] = None
    type: Optional[WordType] = None
    active: Optional[bool] = None


class BatchImportRequest(BaseModel):
    text: str = Field(..., min_length=1)
    type: WordType = "other"
    separator: str = "\n"


class InvalidWord(BaseModel):
    word: str
    error: str


class WordsAdded(BaseModel):
    added_words: List[CommonWordOut]
    invalid_words: List[InvalidWord] = Field(default_factory=list)


class BatchImportResponse(WordsAdded):
    total: int
    valid: int
    invalid: int
