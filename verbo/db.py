# SQLAlchemy data layer: verb pool, common-word dictionary and day state.

from __future__ import annotations
from datetime import date
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Tuple
import logging
from sqlalchemy import create_engine, Column, Integer, String, DateTime, Boolean, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.sql import select
from .config import DATABASE_URL, VERBS_PATH, WORD_LENGTH
from .game import is_verb_form, normalize_word

logger = logging.getLogger(__name__)

Base = declarative_base()

WORD_TYPES = ("noun", "adjective", "verb", "other")

# DayState row tracking the last day whose advance already ran.
VERB_DAY_KEY = "verb_day"


class DuplicateWord(ValueError):
    pass


class Verb(Base):
    __tablename__ = "verbs"
    id = Column(Integer, primary_key=True)
    word = Column(String(WORD_LENGTH), unique=True, index=True, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    used = Column(Boolean, default=False, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class CommonWord(Base):
    __tablename__ = "common_words"
    id = Column(Integer, primary_key=True)
    word = Column(String(15), unique=True, index=True, nullable=False)
    type = Column(String, default="other", index=True, nullable=False)
    active = Column(Boolean, default=True, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class DayState(Base):
    __tablename__ = "day_state"
    key = Column(String, primary_key=True)
    last_advanced = Column(String(10), nullable=False)  # YYYY-MM-DD, Brazil time


_engine = create_engine(DATABASE_URL, echo=False, future=True)
SessionLocal = sessionmaker(bind=_engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def configure(url: str):
    """Point the session factory at another database (used by tests and tooling)."""
    global _engine
    _engine = create_engine(url, echo=False, future=True)
    SessionLocal.configure(bind=_engine)
    return _engine


def init_db():
    if _engine.url.get_backend_name() == "sqlite" and _engine.url.database:
        Path(_engine.url.database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(_engine)


def _clean_verb(word: str) -> str:
    w = word.strip().lower()
    if len(w) != WORD_LENGTH:
        raise ValueError(f"Word must have exactly {WORD_LENGTH} letters")
    if not is_verb_form(w):
        raise ValueError("Word must be a valid Portuguese verb")
    return w


class VerbRepository:
    def __init__(self, sessions=None):
        self._sessions = sessions or SessionLocal

    def pool(self) -> List[Verb]:
        with self._sessions() as s:
            return list(s.execute(select(Verb).order_by(Verb.id)).scalars().all())

    def get(self, verb_id: int) -> Optional[Verb]:
        with self._sessions() as s:
            return s.get(Verb, verb_id)

    def find_word(self, word: str) -> Optional[Verb]:
        candidates = {word.strip().lower(), normalize_word(word)}
        with self._sessions() as s:
            return s.execute(select(Verb).where(Verb.word.in_(candidates))).scalars().first()

    def words(self) -> set:
        with self._sessions() as s:
            return set(s.execute(select(Verb.word)).scalars().all())

    def add(self, word: str, active: bool = True, used: bool = False) -> Verb:
        verb = Verb(word=_clean_verb(word), active=active, used=used)
        with self._sessions() as s:
            s.add(verb)
            try:
                s.commit()
            except IntegrityError:
                s.rollback()
                raise DuplicateWord(f"Verb {verb.word!r} already exists")
            s.refresh(verb)
        logger.info("Added verb %r", verb.word)
        return verb

    def list(self, page: int = 1, limit: int = 20, active: Optional[bool] = None,
             search: Optional[str] = None) -> Tuple[List[Verb], int]:
        query = select(Verb)
        if active is not None:
            query = query.where(Verb.active.is_(active))
        if search and search.strip():
            query = query.where(Verb.word.ilike(f"%{search.strip()}%"))
        with self._sessions() as s:
            total = s.execute(select(func.count()).select_from(query.subquery())).scalar_one()
            rows = s.execute(
                query.order_by(Verb.id.desc()).offset((page - 1) * limit).limit(limit)
            ).scalars().all()
        return list(rows), total

    def update(self, verb_id: int, word: Optional[str] = None, active: Optional[bool] = None,
               used: Optional[bool] = None) -> Optional[Verb]:
        with self._sessions() as s:
            verb = s.get(Verb, verb_id)
            if verb is None:
                return None
            if word is not None:
                verb.word = _clean_verb(word)
            if active is not None:
                verb.active = active
            if used is not None:
                verb.used = used
            try:
                s.commit()
            except IntegrityError:
                s.rollback()
                raise DuplicateWord(f"Verb {word!r} already exists")
            logger.info("Updated verb %s (%r)", verb.id, verb.word)
            return verb

    def deactivate(self, verb_id: int) -> Optional[Verb]:
        return self.update(verb_id, active=False)

    def mark_used(self, verb_id: int) -> bool:
        """Flip `used` only if it is still false. True when this call flipped it."""
        with self._sessions() as s:
            flipped = self._mark(s, verb_id)
            s.commit()
            return flipped

    def _mark(self, s, verb_id: int) -> bool:
        stmt = (
            update(Verb)
            .where(Verb.id == verb_id, Verb.used.is_(False))
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        return s.execute(stmt).rowcount == 1

    def reset_all(self) -> int:
        stmt = (
            update(Verb)
            .where(Verb.active.is_(True))
            .values(used=False)
            .execution_options(synchronize_session=False)
        )
        with self._sessions() as s:
            result = s.execute(stmt)
            s.commit()
        logger.info("Reset %d verbs to unused", result.rowcount)
        return result.rowcount

    def usage_stats(self) -> dict:
        with self._sessions() as s:
            total = s.execute(select(func.count()).where(Verb.active.is_(True))).scalar_one()
            used = s.execute(
                select(func.count()).where(Verb.active.is_(True), Verb.used.is_(True))
            ).scalar_one()
        return {"total": total, "used": used, "available": total - used}

    def claim_day(self, today: date) -> bool:
        """
        Record `today` as the last advanced day.

        True only for the single caller that moved the stored date forward.
        The very first call just stores the date: there is no served
        yesterday to mark on a fresh database.
        """
        with self._sessions() as s:
            claimed = self._claim(s, today)
            s.commit()
            return claimed

    def advance(self, today: date, pick: Callable[[List[Verb]], Optional[Any]]):
        """
        Claim `today` and mark the verb `pick(pool)` returns as used.

        Both writes share one transaction: if marking fails the claim is
        rolled back and the next call retries the whole advance. Returns
        the picked selection when this call marked it, otherwise None.
        """
        with self._sessions() as s:
            if not self._claim(s, today):
                s.commit()
                return None
            pool = list(s.execute(select(Verb).order_by(Verb.id)).scalars().all())
            selection = pick(pool)
            marked = selection is not None and self._mark(s, selection.id)
            s.commit()
            return selection if marked else None

    def _claim(self, s, today: date) -> bool:
        iso = today.isoformat()
        stmt = (
            update(DayState)
            .where(DayState.key == VERB_DAY_KEY, DayState.last_advanced != iso)
            .values(last_advanced=iso)
            .execution_options(synchronize_session=False)
        )
        if s.execute(stmt).rowcount == 1:
            return True
        if s.get(DayState, VERB_DAY_KEY) is not None:
            return False
        s.add(DayState(key=VERB_DAY_KEY, last_advanced=iso))
        try:
            s.flush()
        except IntegrityError:
            # Another process created it first
            s.rollback()
        return False


class CommonWordRepository:
    def __init__(self, sessions=None):
        self._sessions = sessions or SessionLocal

    def is_valid_word(self, word: str) -> bool:
        w = word.strip().lower()
        with self._sessions() as s:
            found = s.execute(
                select(CommonWord.id).where(CommonWord.word == w, CommonWord.active.is_(True))
            ).first()
        return found is not None

    def add_words(self, words: Iterable[str], type: str = "other") -> List[CommonWord]:
        cleaned = sorted({w.strip().lower() for w in words if w.strip()})
        if type not in WORD_TYPES:
            raise ValueError(f"type must be one of {', '.join(WORD_TYPES)}")
        with self._sessions() as s:
            existing = set(s.execute(select(CommonWord.word).where(CommonWord.word.in_(cleaned))).scalars().all())
            for w in cleaned:
                if w not in existing:
                    s.add(CommonWord(word=w, type=type, active=True))
            s.commit()
            rows = s.execute(select(CommonWord).where(CommonWord.word.in_(cleaned))).scalars().all()
        logger.info("Stored %d common words (%d new)", len(rows), len(cleaned) - len(existing))
        return list(rows)

    def list(self, page: int = 1, limit: int = 20, type: Optional[str] = None,
             active: Optional[bool] = None, search: Optional[str] = None) -> Tuple[List[CommonWord], int]:
        query = select(CommonWord)
        if type:
            query = query.where(CommonWord.type == type)
        if active is not None:
            query = query.where(CommonWord.active.is_(active))
        if search:
            query = query.where(CommonWord.word.ilike(f"%{search}%"))
        with self._sessions() as s:
            total = s.execute(select(func.count()).select_from(query.subquery())).scalar_one()
            rows = s.execute(
                query.order_by(CommonWord.word).offset((page - 1) * limit).limit(limit)
            ).scalars().all()
        return list(rows), total

    def update(self, word_id: int, word: Optional[str] = None, type: Optional[str] = None,
               active: Optional[bool] = None) -> Optional[CommonWord]:
        with self._sessions() as s:
            row = s.get(CommonWord, word_id)
            if row is None:
                return None
            if word is not None:
                row.word = word.strip().lower()
            if type is not None:
                if type not in WORD_TYPES:
                    raise ValueError(f"type must be one of {', '.join(WORD_TYPES)}")
                row.type = type
            if active is not None:
                row.active = active
            try:
                s.commit()
            except IntegrityError:
                s.rollback()
                raise DuplicateWord(f"Word {word!r} already exists")
            return row

    def delete(self, word_id: int) -> Optional[CommonWord]:
        with self._sessions() as s:
            row = s.get(CommonWord, word_id)
            if row is None:
                return None
            s.delete(row)
            s.commit()
            return row


def seed_verbs(path: Path = VERBS_PATH, repo: Optional[VerbRepository] = None) -> int:
    """Import a newline-separated verb list, skipping invalid and known words."""
    repo = repo or VerbRepository()
    known = repo.words()
    added = 0
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            w = line.strip().lower()
            if not w or w in known:
                continue
            try:
                repo.add(w)
            except ValueError as e:
                logger.warning("Skipping %r: %s", w, e)
                continue
            known.add(w)
            added += 1
    logger.info("Seeded %d verbs from %s", added, path)
    return added
