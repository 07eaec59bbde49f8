# Daily word selection.
# - The game day is the calendar date in Brazil (fixed UTC-3 offset).
# - Today's verb is a pure function of (date, pool): a 32-bit rolling hash
#   of the ISO date indexes into the active-and-unused verbs, in id order.
# - Once per day, yesterday's verb is marked used. The day claim and the
#   mark are conditional writes committed together, so concurrent requests
#   and several server processes agree without any lock, and a failed mark
#   leaves the day unclaimed for the next request to retry.

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional, Protocol, Sequence, Union
import logging
from .config import BRAZIL_UTC_OFFSET_HOURS

logger = logging.getLogger(__name__)

BRAZIL_TZ = timezone(timedelta(hours=BRAZIL_UTC_OFFSET_HOURS))


class PoolEntry(Protocol):
    id: int
    word: str
    active: bool
    used: bool


class WordPoolRepository(Protocol):
    def pool(self) -> List[PoolEntry]: ...

    def advance(self, today: date, pick: Callable[[List[PoolEntry]], Optional["DailySelection"]]) -> Optional["DailySelection"]: ...

    def usage_stats(self) -> dict: ...


@dataclass(frozen=True)
class DailySelection:
    day: date
    word: str
    id: int


@dataclass(frozen=True)
class NoWordsAvailable:
    day: date
    message: str = "Todos os verbos já foram usados. Entre em contato com o administrador para resetar."


def brazil_now(now: Optional[datetime] = None) -> datetime:
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        # Naive datetimes are taken as UTC
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(BRAZIL_TZ)


def brazil_today(now: Optional[datetime] = None) -> date:
    return brazil_now(now).date()


def date_hash(text: str) -> int:
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    # Reinterpret as signed 32-bit, then drop the sign
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def eligible(pool: Sequence[PoolEntry]) -> List[PoolEntry]:
    return sorted((v for v in pool if v.active and not v.used), key=lambda v: v.id)


def select_for_date(day: date, pool: Sequence[PoolEntry]) -> Union[DailySelection, NoWordsAvailable]:
    candidates = eligible(pool)
    if not candidates:
        return NoWordsAvailable(day=day)
    chosen = candidates[date_hash(day.isoformat()) % len(candidates)]
    return DailySelection(day=day, word=chosen.word, id=chosen.id)


def advance_day(repo: WordPoolRepository, today: date) -> Optional[DailySelection]:
    """
    Mark the verb served yesterday as used, at most once per `today`.

    Returns the selection that was marked, or None when another caller
    already advanced this day, when nothing was eligible yesterday, or
    when yesterday's verb had already been marked.
    """
    yesterday = today - timedelta(days=1)

    def pick(pool):
        selection = select_for_date(yesterday, pool)
        return None if isinstance(selection, NoWordsAvailable) else selection

    marked = repo.advance(today, pick)
    if marked is not None:
        logger.info("Marked yesterday's verb %r as used (%s, Brazil time)", marked.word, yesterday)
    return marked


def todays_word(repo: WordPoolRepository, now: Optional[datetime] = None) -> Union[DailySelection, NoWordsAvailable]:
    # Advance first so the pool is settled before today's pick.
    today = brazil_today(now)
    advance_day(repo, today)
    selection = select_for_date(today, repo.pool())
    if isinstance(selection, NoWordsAvailable):
        logger.warning("No verbs available for %s: %s", today, repo.usage_stats())
    else:
        logger.debug("Verb of the day: %r (%s)", selection.word, today)
    return selection


def daily_history(repo: WordPoolRepository, days: int, today: date) -> List[dict]:
    """Selections the current pool yields for `today` and the days before it."""
    pool = repo.pool()
    by_id = {v.id: v for v in pool}
    results = []
    for offset in range(days):
        day = today - timedelta(days=offset)
        selection = select_for_date(day, pool)
        if isinstance(selection, NoWordsAvailable):
            results.append({"date": day.isoformat(), "verb": None, "used": None, "id": None})
        else:
            results.append({
                "date": day.isoformat(),
                "verb": selection.word,
                "used": by_id[selection.id].used,
                "id": selection.id,
            })
    return results
