# FastAPI server implementing the Verbo API.
# Provides:
# - GET  /api/verb/day: today's verb (same verb all day, Brazil time)
# - POST /api/verb/attempt: score a guess, optionally enforcing hard mode
# - POST /api/verb/hard-mode: check a guess against revealed hints only
# - GET  /api/verb/validate?word=...: is the word a known verb or common word
# - GET  /api/verb/debug: recent daily selections and pool usage
# - POST /api/admin/login: exchange the admin password for a token
# - /api/admin/verbs...: verb pool administration (token required)
# - /api/words...: common-word dictionary administration (token required)
#
# Run: uvicorn verbo.main:app --host 0.0.0.0 --port 8000

from __future__ import annotations
from contextlib import asynccontextmanager
from math import ceil
from typing import Optional
import logging
from fastapi import FastAPI, HTTPException, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from itsdangerous import TimestampSigner, BadSignature
from .config import ADMIN_PASSWORD, ADMIN_TOKEN_MAX_AGE, CORS_ORIGINS, DEBUG_DAYS, DEFAULT_PAGE_SIZE, LOG_LEVEL, SECRET_KEY
from .daily import NoWordsAvailable, brazil_now, daily_history, todays_word
from .db import CommonWordRepository, DuplicateWord, VerbRepository, init_db, seed_verbs
from .game import is_victory, normalize_word, score, validate_attempt, validate_hard_mode
from .models import (
    AdminLoginRequest, AdminLoginResponse, AttemptRequest, AttemptResponse, BatchImportRequest,
    BatchImportResponse, CommonWordList, CommonWordOut, DayResponse, HardModeRequest, HardModeResponse,
    InvalidWord, LetterFeedback, Pagination, UsageStats, VerbCreate, VerbList, VerbOut, VerbUpdate,
    WordsAdded, WordsCreate, WordUpdate,
)

logger = logging.getLogger(__name__)

_signer = TimestampSigner(SECRET_KEY, salt="verbo-admin")

verbs = VerbRepository()
common_words = CommonWordRepository()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    init_db()
    if verbs.usage_stats()["total"] == 0:
        seed_verbs(repo=verbs)
    yield


app = FastAPI(title="Verbo", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Erro interno do servidor", "message": "Não foi possível processar a requisição"},
    )


def issue_admin_token() -> str:
    return _signer.sign(b"admin").decode()


def verify_admin_token(token: Optional[str]) -> bool:
    if not token:
        return False
    try:
        return _signer.unsign(token, max_age=ADMIN_TOKEN_MAX_AGE) == b"admin"
    except BadSignature:
        return False


def _require_admin(token: Optional[str]):
    if not verify_admin_token(token):
        raise HTTPException(status_code=401, detail="Invalid admin token")


def _pagination(page: int, limit: int, total: int) -> Pagination:
    pages = ceil(total / limit) if limit else 0
    return Pagination(page=page, limit=limit, total=total, pages=pages, has_next=page < pages, has_prev=page > 1)


def _check_page(page: int, limit: int):
    if page < 1 or limit < 1:
        raise HTTPException(status_code=400, detail="page and limit must be positive")


# --------------------
# Game routes
# --------------------
@app.get("/api/verb/day", response_model=DayResponse)
def api_day():
    selection = todays_word(verbs)
    if isinstance(selection, NoWordsAvailable):
        return JSONResponse(
            status_code=404,
            content={
                "error": "Nenhum verbo disponível",
                "message": selection.message,
                "stats": verbs.usage_stats(),
            },
        )
    return DayResponse(word=selection.word, length=len(selection.word), id=selection.id)


@app.post("/api/verb/attempt", response_model=AttemptResponse)
def api_attempt(req: AttemptRequest):
    validation = validate_attempt(req.word)
    if not validation.valid:
        raise HTTPException(status_code=400, detail={"message": validation.message, "code": validation.code})
    guess = req.word.strip()

    verb = verbs.get(req.verb_id)
    if verb is None or not verb.active:
        raise HTTPException(status_code=404, detail="Verb not found or inactive")

    if req.hard_mode:
        violation = validate_hard_mode(guess, [[fb.to_core() for fb in g] for g in req.history])
        if violation is not None:
            raise HTTPException(
                status_code=400,
                detail={
                    "message": f"Modo Hard: {violation.reason}",
                    "code": "HARD_MODE_VIOLATION",
                    "reason": violation.reason,
                    "position": violation.position,
                    "letter": violation.letter,
                },
            )

    feedback = score(guess, verb.word)
    victory = is_victory(feedback)
    return AttemptResponse(
        feedback=[LetterFeedback.from_core(fb) for fb in feedback],
        victory=victory,
        word=verb.word if victory else None,
        correct_word=verb.word,
    )


@app.post("/api/verb/hard-mode", response_model=HardModeResponse)
def api_hard_mode(req: HardModeRequest):
    violation = validate_hard_mode(req.word.strip(), [[fb.to_core() for fb in g] for g in req.history])
    if violation is None:
        return HardModeResponse(valid=True)
    return HardModeResponse(valid=False, reason=violation.reason, position=violation.position, letter=violation.letter)


@app.get("/api/verb/validate")
def api_validate(word: Optional[str] = None):
    validation = validate_attempt(word)
    if not validation.valid:
        return JSONResponse(
            status_code=400,
            content={"valid": False, "message": validation.message, "code": validation.code},
        )

    if verbs.find_word(word) is not None:
        return {"valid": True, "type": "verb"}
    if common_words.is_valid_word(word) or common_words.is_valid_word(normalize_word(word)):
        return {"valid": True, "type": "common"}
    return {"valid": False, "message": "Palavra não encontrada", "code": "WORD_NOT_FOUND"}


@app.get("/api/verb/debug")
def api_debug():
    now = brazil_now()
    return {
        "daily_system": daily_history(verbs, DEBUG_DAYS, now.date()),
        "stats": verbs.usage_stats(),
        "current_date": now.date().isoformat(),
        "current_datetime": now.strftime("%Y-%m-%d %H:%M:%S") + " (Brasil UTC-3)",
    }


# --------------------
# Admin: verb pool
# --------------------
@app.post("/api/admin/login", response_model=AdminLoginResponse)
def api_admin_login(req: AdminLoginRequest):
    if req.password != ADMIN_PASSWORD:
        logger.warning("Rejected admin login")
        raise HTTPException(status_code=401, detail="Senha de administrador incorreta")
    return AdminLoginResponse(token=issue_admin_token())


@app.post("/api/admin/verbs", response_model=VerbOut, status_code=201)
def api_create_verb(req: VerbCreate, x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    try:
        verb = verbs.add(req.word, active=req.active, used=req.used)
    except DuplicateWord as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return verb


@app.get("/api/admin/verbs", response_model=VerbList)
def api_list_verbs(page: int = 1, limit: int = DEFAULT_PAGE_SIZE, active: Optional[bool] = None,
                   search: Optional[str] = None, x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    _check_page(page, limit)
    rows, total = verbs.list(page=page, limit=limit, active=active, search=search)
    return VerbList(verbs=[VerbOut.model_validate(v) for v in rows], pagination=_pagination(page, limit, total))


@app.get("/api/admin/verbs/stats", response_model=UsageStats)
def api_verb_stats(x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    return verbs.usage_stats()


@app.post("/api/admin/verbs/reset")
def api_reset_verbs(x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    verbs.reset_all()
    return {"ok": True, "stats": verbs.usage_stats()}


@app.put("/api/admin/verbs/{verb_id}", response_model=VerbOut)
def api_update_verb(verb_id: int, req: VerbUpdate, x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    if req.word is None and req.active is None and req.used is None:
        raise HTTPException(status_code=400, detail="Nothing to update")
    try:
        verb = verbs.update(verb_id, word=req.word, active=req.active, used=req.used)
    except DuplicateWord as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if verb is None:
        raise HTTPException(status_code=404, detail="Verb not found")
    return verb


@app.delete("/api/admin/verbs/{verb_id}", response_model=VerbOut)
def api_deactivate_verb(verb_id: int, x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    verb = verbs.deactivate(verb_id)
    if verb is None:
        raise HTTPException(status_code=404, detail="Verb not found")
    return verb


# --------------------
# Admin: common words
# --------------------
def _split_valid_words(words):
    known_verbs = verbs.words()
    valid, invalid = [], []
    for w in words:
        clean = w.strip().lower()
        if clean in known_verbs:
            invalid.append(InvalidWord(word=w, error="Esta palavra já existe como verbo do jogo"))
            continue
        validation = validate_attempt(w)
        if validation.valid:
            valid.append(clean)
        else:
            invalid.append(InvalidWord(word=w, error=validation.message))
    return valid, invalid


@app.get("/api/words", response_model=CommonWordList)
def api_list_words(page: int = 1, limit: int = DEFAULT_PAGE_SIZE, type: Optional[str] = None,
                   active: Optional[bool] = None, search: Optional[str] = None,
                   x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    _check_page(page, limit)
    rows, total = common_words.list(page=page, limit=limit, type=type, active=active, search=search)
    return CommonWordList(
        words=[CommonWordOut.model_validate(w) for w in rows],
        pagination=_pagination(page, limit, total),
    )


@app.post("/api/words", response_model=WordsAdded, status_code=201)
def api_add_words(req: WordsCreate, x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    valid, invalid = _split_valid_words(req.words)
    if not valid:
        raise HTTPException(status_code=400, detail={"message": "Todas as palavras fornecidas são inválidas", "invalid_words": [i.model_dump() for i in invalid]})
    added = common_words.add_words(valid, req.type)
    return WordsAdded(
        added_words=[CommonWordOut.model_validate(w) for w in added],
        invalid_words=invalid,
    )


@app.post("/api/words/batch-import", response_model=BatchImportResponse, status_code=201)
def api_batch_import(req: BatchImportRequest, x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    words = [w.strip() for w in req.text.split(req.separator or "\n") if w.strip()]
    if not words:
        raise HTTPException(status_code=400, detail="Nenhuma palavra encontrada")
    valid, invalid = _split_valid_words(words)
    if not valid:
        raise HTTPException(status_code=400, detail={"message": "Todas as palavras extraídas são inválidas", "invalid_words": [i.model_dump() for i in invalid]})
    added = common_words.add_words(valid, req.type)
    return BatchImportResponse(
        total=len(words),
        valid=len(valid),
        invalid=len(invalid),
        added_words=[CommonWordOut.model_validate(w) for w in added],
        invalid_words=invalid,
    )


@app.put("/api/words/{word_id}", response_model=CommonWordOut)
def api_update_word(word_id: int, req: WordUpdate, x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    if req.word is not None:
        validation = validate_attempt(req.word)
        if not validation.valid:
            raise HTTPException(status_code=400, detail=validation.message)
    try:
        row = common_words.update(word_id, word=req.word, type=req.type, active=req.active)
    except DuplicateWord as e:
        raise HTTPException(status_code=409, detail=str(e))
    if row is None:
        raise HTTPException(status_code=404, detail="Word not found")
    return row


@app.delete("/api/words/{word_id}", response_model=CommonWordOut)
def api_delete_word(word_id: int, x_admin_token: Optional[str] = Header(None)):
    _require_admin(x_admin_token)
    row = common_words.delete(word_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Word not found")
    return row
