from dataclasses import dataclass
from datetime import date
import pytest
from verbo import db


@dataclass
class Entry:
    id: int
    word: str
    active: bool = True
    used: bool = False


class MemoryPool:
    """In-memory stand-in for the verb repository."""

    def __init__(self, words):
        self.entries = [Entry(id=i + 1, word=w) for i, w in enumerate(words)]
        self.last_advanced = None
        self.mark_calls = 0

    def pool(self):
        return list(self.entries)

    def claim_day(self, today: date) -> bool:
        if self.last_advanced is None:
            self.last_advanced = today
            return False
        if self.last_advanced == today:
            return False
        self.last_advanced = today
        return True

    def advance(self, today: date, pick):
        previous = self.last_advanced
        try:
            if not self.claim_day(today):
                return None
            selection = pick(self.pool())
            if selection is None or not self.mark_used(selection.id):
                return None
            return selection
        except Exception:
            # Same outcome as a rolled back transaction
            self.last_advanced = previous
            raise

    def mark_used(self, verb_id: int) -> bool:
        self.mark_calls += 1
        for e in self.entries:
            if e.id == verb_id and not e.used:
                e.used = True
                return True
        return False

    def usage_stats(self) -> dict:
        active = [e for e in self.entries if e.active]
        used = len([e for e in active if e.used])
        return {"total": len(active), "used": used, "available": len(active) - used}


@pytest.fixture
def database(tmp_path):
    db.configure(f"sqlite:///{tmp_path / 'verbo-test.db'}")
    db.init_db()
    yield


@pytest.fixture
def verb_repo(database):
    return db.VerbRepository()


@pytest.fixture
def word_repo(database):
    return db.CommonWordRepository()
