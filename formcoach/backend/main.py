# formcoach/backend/main.py
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from ..config import get_cors_origins, settings
from ..dispatcher import advance
from ..exercises import ExerciseType, get_exercise_settings, list_exercises
from ..rep_logic import ExerciseState, create_state
from .models import ExerciseInfo, FrameIn, SessionCreate, StateResponse

logger = logging.getLogger(__name__)


@dataclass
class Session:
    state: ExerciseState
    last_seen: float = field(default_factory=time.time)
    # Frames of one session are applied one at a time
    lock: threading.Lock = field(default_factory=threading.Lock)


sessions: Dict[str, Session] = {}


def _evict_sessions(now: float) -> None:
    """Drops idle sessions, then the least recently used ones, to make room for one more."""
    expired = [sid for sid, s in sessions.items() if now - s.last_seen > settings.SESSION_TTL_SECONDS]
    for sid in expired:
        sessions.pop(sid, None)

    overflow = len(sessions) - max(settings.MAX_SESSIONS - 1, 0)
    oldest = sorted(sessions, key=lambda sid: sessions[sid].last_seen)[:max(overflow, 0)]
    for sid in oldest:
        sessions.pop(sid, None)

    if expired or oldest:
        logger.info("Evicted %d idle and %d surplus sessions", len(expired), len(oldest))


app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_session(session_id: str) -> Session:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    session.last_seen = time.time()
    return session


@app.get("/")
def health_check():
    return {"status": "ok", "sessions": len(sessions)}


@app.get("/exercises", response_model=List[ExerciseInfo])
def get_exercises():
    return [ExerciseInfo.from_settings(s) for s in list_exercises()]


@app.get("/exercises/{exercise}", response_model=ExerciseInfo)
def get_exercise(exercise: str):
    if ExerciseType.parse(exercise) is ExerciseType.NONE:
        raise HTTPException(status_code=404, detail=f"Unknown exercise: {exercise}")
    return ExerciseInfo.from_settings(get_exercise_settings(exercise))


@app.post("/sessions", response_model=StateResponse, status_code=201)
def start_session(body: SessionCreate):
    exercise = ExerciseType.parse(body.exercise)
    if exercise is ExerciseType.NONE:
        raise HTTPException(status_code=422, detail=f"Cannot track exercise: {body.exercise}")

    _evict_sessions(time.time())
    session_id = uuid.uuid4().hex
    sessions[session_id] = Session(state=create_state(exercise))
    logger.info("Started %s session %s", exercise.value, session_id)
    return StateResponse.from_state(session_id, sessions[session_id].state)


@app.post("/sessions/{session_id}/frames", response_model=StateResponse)
def push_frame(session_id: str, frame: FrameIn):
    session = _get_session(session_id)
    with session.lock:
        session.state = advance(session.state, frame.to_pose(), now=frame.timestamp)
        return StateResponse.from_state(session_id, session.state)


@app.get("/sessions/{session_id}", response_model=StateResponse)
def get_session(session_id: str):
    session = _get_session(session_id)
    return StateResponse.from_state(session_id, session.state)


@app.delete("/sessions/{session_id}", status_code=204)
def end_session(session_id: str):
    _get_session(session_id)
    sessions.pop(session_id, None)
    logger.info("Ended session %s", session_id)


def serve():
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    uvicorn.run(app, host=settings.BACKEND_HOST, port=settings.BACKEND_PORT)
