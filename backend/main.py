"""
FastAPI Backend for the Encrypt Logic Tutor

Provides REST endpoints over the in-memory LogicTutor:
- Chat sends with gate, busy and failure notices
- Session state, messages and diagram artifacts
- Knowledge level selection
- Glossary lookups for [[Term]] markers
- Logic template synthesis

Notices are ordinary 200 payloads with show_notice=true; presentation never
receives a raw exception from the tutor.
"""

from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional, List
import os
import sys
import time
import logging
import signal

from lib.logger import setup_logging, get_logger

setup_logging(level=logging.INFO, use_colors=True)

logger = get_logger("backend.chat")
session_logger = get_logger("backend.sessions")
glossary_logger = get_logger("backend.glossary")

# Add the encrypt_tutor package to Python path when running from a checkout
backend_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(backend_dir)
package_src = os.path.join(project_root, 'encrypt_tutor', 'src')
if os.path.exists(package_src) and package_src not in sys.path:
    sys.path.insert(0, package_src)

from encrypt_tutor.config import ConfigurationError
from encrypt_tutor.instructions import KnowledgeLevel
from encrypt_tutor.logic_tutor import LogicTutor
from encrypt_tutor.mentor_state import MentorStatus
from encrypt_tutor.output_extractor import find_term_markers
from encrypt_tutor.session_state import SessionState

# Singleton tutor; sessions live in its memory for the process lifetime
_tutor_instance: Optional[LogicTutor] = None


def get_tutor_instance() -> LogicTutor:
    """Get or create the singleton LogicTutor (reads settings on first use)."""
    global _tutor_instance
    if _tutor_instance is None:
        _tutor_instance = LogicTutor()
    return _tutor_instance


app = FastAPI(
    title="Encrypt Logic Tutor API",
    description="REST API for a Socratic logic tutor that never hands out full solutions",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== Pydantic Models ====================

class ChatMessage(BaseModel):
    content: str
    session_id: Optional[str] = None
    skip_gate: bool = False


class TurnModel(BaseModel):
    id: str
    role: str
    text: str
    created_at: str


class ArtifactModel(BaseModel):
    id: str
    kind: str
    source_text: str
    created_at: str


class ChatResponse(BaseModel):
    session_id: str
    status: str
    reply: Optional[TurnModel] = None
    diagrams: List[ArtifactModel] = []
    term_markers: List[str] = []
    mentor_status: MentorStatus
    mentor_changed: bool = False
    show_notice: bool = False
    notice: Optional[str] = None


class StateSummary(BaseModel):
    session_id: str
    knowledge_level: KnowledgeLevel
    mentor_status: MentorStatus
    turn_count: int
    artifact_count: int
    interaction_count: int
    is_sending: bool
    glossary_term: Optional[str] = None


class LevelUpdate(BaseModel):
    level: KnowledgeLevel


class GlossaryRequest(BaseModel):
    session_id: str
    term: str


class GlossaryResponse(BaseModel):
    term: Optional[str] = None
    definition: Optional[str] = None
    pending: bool = False
    stale: bool = False
    show_notice: bool = False
    notice: Optional[str] = None


class TemplateRequest(BaseModel):
    query: str


class TemplateModel(BaseModel):
    id: str
    title: str
    description: str
    content: str
    category: str
    is_synthesized: bool


class TemplateResponse(BaseModel):
    template: Optional[TemplateModel] = None
    show_notice: bool = False
    notice: Optional[str] = None


# ==================== Helper Functions ====================

def require_session(tutor: LogicTutor, session_id: str) -> SessionState:
    session = tutor.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def summarize(session: SessionState) -> StateSummary:
    return StateSummary(
        session_id=session.session_id,
        knowledge_level=session.knowledge_level,
        mentor_status=session.mentor.status,
        turn_count=len(session.history),
        artifact_count=len(session.visual_artifacts),
        interaction_count=session.interaction_count,
        is_sending=session.is_sending,
        glossary_term=session.glossary.term if session.glossary else None,
    )


# ==================== API Endpoints ====================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "Encrypt Logic Tutor API",
        "version": "1.0.0",
        "active_sessions": len(_tutor_instance.sessions) if _tutor_instance else 0,
    }


@app.post("/api/chat", response_model=ChatResponse)
async def chat(message: ChatMessage, tutor: LogicTutor = Depends(get_tutor_instance)):
    """Send one learner message and return the tutor's outcome."""
    start_time = time.time()
    session = tutor.get_or_create_session(message.session_id)
    logger.request("POST", "/api/chat", session_id=session.session_id, data={
        "message_length": len(message.content),
        "message_preview": message.content[:50] + "..." if len(message.content) > 50 else message.content,
        "knowledge_level": session.knowledge_level.value,
    })

    outcome = await tutor.send_message(session, message.content, skip_gate=message.skip_gate)

    reply = TurnModel(**outcome.reply.to_dict()) if outcome.reply else None
    response = ChatResponse(
        session_id=session.session_id,
        status=outcome.status.value,
        reply=reply,
        diagrams=[ArtifactModel(**artifact.to_dict()) for artifact in outcome.diagrams],
        term_markers=find_term_markers(outcome.reply.text) if outcome.reply else [],
        mentor_status=outcome.mentor_status,
        mentor_changed=outcome.mentor_changed,
        show_notice=outcome.show_notice,
        notice=outcome.notice,
    )

    logger.response(200, "/api/chat", duration=time.time() - start_time, data={
        "status": outcome.status.value,
        "diagrams": len(outcome.diagrams),
        "mentor_status": outcome.mentor_status.value,
    })
    return response


@app.get("/api/state/{session_id}", response_model=StateSummary)
async def get_state(session_id: str, tutor: LogicTutor = Depends(get_tutor_instance)):
    """Get derived session state for the header and side panes."""
    return summarize(require_session(tutor, session_id))


@app.get("/api/sessions/{session_id}/messages", response_model=List[TurnModel])
async def get_messages(session_id: str, tutor: LogicTutor = Depends(get_tutor_instance)):
    """Full conversation history in order."""
    session = require_session(tutor, session_id)
    return [TurnModel(**turn.to_dict()) for turn in session.history.snapshot()]


@app.get("/api/sessions/{session_id}/artifacts", response_model=List[ArtifactModel])
async def get_artifacts(session_id: str, tutor: LogicTutor = Depends(get_tutor_instance)):
    """All diagram artifacts extracted so far, oldest first."""
    session = require_session(tutor, session_id)
    return [ArtifactModel(**artifact.to_dict()) for artifact in session.visual_artifacts]


@app.put("/api/sessions/{session_id}/level", response_model=StateSummary)
async def update_level(session_id: str, update: LevelUpdate, tutor: LogicTutor = Depends(get_tutor_instance)):
    """Apply the learner's knowledge level selection."""
    session = require_session(tutor, session_id)
    tutor.set_knowledge_level(session, update.level)
    session_logger.info(f"Knowledge level set to {update.level.value}", data={"session_id": session_id})
    return summarize(session)


@app.post("/api/glossary", response_model=GlossaryResponse)
async def lookup_glossary(request: GlossaryRequest, tutor: LogicTutor = Depends(get_tutor_instance)):
    """Define a [[Term]] marker; only the most recent lookup fills the slot."""
    session = require_session(tutor, request.session_id)
    glossary_logger.request("POST", "/api/glossary", session_id=request.session_id, data={"term": request.term})

    outcome = await tutor.lookup_term(session, request.term)
    entry = outcome.entry
    return GlossaryResponse(
        term=entry.term if entry else None,
        definition=entry.definition if entry else None,
        pending=entry.is_pending if entry else False,
        stale=outcome.stale,
        show_notice=outcome.show_notice,
        notice=outcome.notice,
    )


@app.delete("/api/sessions/{session_id}/glossary")
async def close_glossary(session_id: str, tutor: LogicTutor = Depends(get_tutor_instance)):
    """Dismiss the glossary overlay."""
    session = require_session(tutor, session_id)
    tutor.close_glossary(session)
    return {"status": "closed", "session_id": session_id}


@app.post("/api/templates/synthesize", response_model=TemplateResponse)
async def synthesize_template(request: TemplateRequest, tutor: LogicTutor = Depends(get_tutor_instance)):
    """Generate a fill-in logic template for a topic."""
    outcome = await tutor.synthesize_template(request.query)
    template = TemplateModel(**outcome.template.to_dict()) if outcome.template else None
    return TemplateResponse(template=template, show_notice=outcome.show_notice, notice=outcome.notice)


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str, tutor: LogicTutor = Depends(get_tutor_instance)):
    """Forget a session and everything it holds."""
    if not tutor.end_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    session_logger.info("Session deleted", data={"session_id": session_id})
    return {"status": "deleted", "session_id": session_id}


@app.on_event("startup")
async def startup_event():
    """Startup event - load settings; a missing credential stops the server."""
    try:
        tutor = get_tutor_instance()
    except ConfigurationError as e:
        logger.error("Cannot start without configuration", error=e)
        raise
    logger.success("Tutor ready", data={"model": getattr(tutor.client, "model", None)})


if __name__ == "__main__":
    import uvicorn

    def handle_exit(*args):
        """Handle graceful shutdown."""
        logger.section("SERVER SHUTDOWN", {"reason": "signal received"})
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_exit)
    signal.signal(signal.SIGTERM, handle_exit)

    try:
        uvicorn.run(app, host="0.0.0.0", port=8000)
    except KeyboardInterrupt:
        logger.info("🛑 Server stopped.")
        sys.exit(0)
