"""
Logic Tutor - conversation orchestration

Single boundary between presentation and the tutoring core:
- Gate check before any network I/O
- Request assembly from the full history plus the composed directive
- Output extraction (display text, diagrams, mentor signal)
- Out-of-band glossary lookups and template synthesis

Transport and signal errors stop here. Presentation only ever receives an
outcome object with an optional human-readable notice, never a raw exception.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from encrypt_tutor.completion_client import CompletionClient, CompletionError
from encrypt_tutor.config import DEFAULT_GLOSSARY_MAX_TOKENS, Settings, load_settings
from encrypt_tutor.glossary import GlossaryEntry, GlossaryLookup
from encrypt_tutor.history_buffer import Turn, TurnRole
from encrypt_tutor.instructions import SYSTEM_INSTRUCTION, KnowledgeLevel, compose, parse_knowledge_level
from encrypt_tutor.mentor_state import MentorStatus
from encrypt_tutor.output_extractor import DEFAULT_DIAGRAM_POLICY, DiagramPolicy, extract
from encrypt_tutor.session_state import SessionState, VisualArtifact
from encrypt_tutor.solution_gate import SendPolicy, SolutionRequestGate
from encrypt_tutor.templates import LogicTemplate, TemplateError, TemplateSynthesizer


logger = logging.getLogger(__name__)


FILLER_REPLY = "I am analyzing your logic..."
CONNECTION_LOST_NOTICE = "Logical connection lost. Please rephrase or refresh."
BUSY_NOTICE = "Encrypt is still working on your last message. Please wait for the reply."
GLOSSARY_ERROR_NOTICE = "Connection error. Please check your settings."
TEMPLATE_ERROR_NOTICE = "Template synthesis failed. Please try a different topic."


class SendStatus(str, Enum):
    DELIVERED = "delivered"
    BLOCKED = "blocked"
    BUSY = "busy"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class SendOutcome:
    """Result of one primary send, as handed to presentation."""
    status: SendStatus
    mentor_status: MentorStatus
    reply: Optional[Turn] = None
    diagrams: List[VisualArtifact] = field(default_factory=list)
    mentor_changed: bool = False
    notice: Optional[str] = None

    @property
    def show_notice(self) -> bool:
        return self.notice is not None

    @property
    def delivered(self) -> bool:
        return self.status == SendStatus.DELIVERED


@dataclass
class GlossaryOutcome:
    """
    Result of a glossary lookup.

    stale is True when a newer lookup (or a close) superseded this one; its
    result was dropped and the slot left untouched.
    """
    entry: Optional[GlossaryEntry]
    notice: Optional[str] = None
    stale: bool = False

    @property
    def show_notice(self) -> bool:
        return self.notice is not None


@dataclass
class TemplateOutcome:
    template: Optional[LogicTemplate]
    notice: Optional[str] = None

    @property
    def show_notice(self) -> bool:
        return self.notice is not None


class LogicTutor:
    """
    Orchestrates tutoring sessions held in memory.

    Only one primary send may be in flight per session; a second one is
    refused. Glossary lookups run alongside and only compete for the
    session's glossary slot (last write wins).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[CompletionClient] = None,
        gate: Optional[SendPolicy] = None,
        diagram_policy: DiagramPolicy = DEFAULT_DIAGRAM_POLICY,
        base_directive: str = SYSTEM_INSTRUCTION,
    ):
        if client is None:
            settings = settings or load_settings()
            client = CompletionClient(settings)
        self.client = client
        self.gate = gate or SolutionRequestGate()
        self.diagram_policy = diagram_policy
        self.base_directive = base_directive

        glossary_max_tokens = settings.glossary_max_tokens if settings else DEFAULT_GLOSSARY_MAX_TOKENS
        self.glossary = GlossaryLookup(client, max_tokens=glossary_max_tokens)
        self.template_synthesizer = TemplateSynthesizer(client)

        self.sessions: Dict[str, SessionState] = {}
        logger.info("✅ [LogicTutor] Initialized")

    # ==================== Sessions ====================

    def get_or_create_session(self, session_id: Optional[str] = None) -> SessionState:
        """Get an existing session or start a new one seeded with the welcome turn."""
        session_id = session_id or f"session_{uuid.uuid4().hex[:12]}"
        state = self.sessions.get(session_id)
        if state is None:
            state = SessionState(session_id=session_id)
            self.sessions[session_id] = state
            logger.info(f"💾 [LogicTutor] Created session {session_id}")
        return state

    def get_session(self, session_id: str) -> Optional[SessionState]:
        return self.sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        return self.sessions.pop(session_id, None) is not None

    def set_knowledge_level(
        self,
        session: SessionState,
        level: Union[KnowledgeLevel, str],
    ) -> KnowledgeLevel:
        """
        Apply an explicit level selection.

        Raises:
            ValueError: if level names no KnowledgeLevel
        """
        new_level = parse_knowledge_level(level)
        if new_level != session.knowledge_level:
            logger.info(
                f"📊 [LogicTutor] Knowledge level: {session.knowledge_level.value} → {new_level.value}"
            )
        session.knowledge_level = new_level
        session.last_updated = datetime.now()
        return new_level

    # ==================== Conversation ====================

    async def send_message(
        self,
        session: SessionState,
        text: str,
        skip_gate: bool = False,
    ) -> SendOutcome:
        """
        Send one learner message and apply the model's answer to the session.

        Args:
            session: Session to update
            text: Learner message
            skip_gate: True for prompts that come from the template library

        Returns:
            SendOutcome; history, artifacts and mentor status only change
            when the status is DELIVERED (FAILED keeps the user turn)
        """
        if not text or not text.strip():
            return SendOutcome(status=SendStatus.EMPTY, mentor_status=session.mentor.status)

        if session.is_sending:
            logger.info(f"⏳ [LogicTutor] Send refused for {session.session_id}: previous send pending")
            return SendOutcome(
                status=SendStatus.BUSY,
                mentor_status=session.mentor.status,
                notice=BUSY_NOTICE,
            )

        if not skip_gate and self.gate.should_block(text):
            logger.info(f"🚫 [LogicTutor] Direct solution request blocked: {text[:60]}")
            return SendOutcome(
                status=SendStatus.BLOCKED,
                mentor_status=session.mentor.status,
                notice=self.gate.notice,
            )

        session.is_sending = True
        try:
            self._record_user_turn(session, text)
            prior_turns = session.history.snapshot()[:-1]
            directive = compose(self.base_directive, session.knowledge_level)

            try:
                result = await self.client.complete(directive, prior_turns, text)
            except CompletionError as e:
                logger.warning(f"⚠️ [LogicTutor] Completion failed for {session.session_id}: {e}")
                return SendOutcome(
                    status=SendStatus.FAILED,
                    mentor_status=session.mentor.status,
                    notice=CONNECTION_LOST_NOTICE,
                )

            extraction = extract(result, self.diagram_policy)
            reply = session.history.add(TurnRole.MODEL, extraction.display_text or FILLER_REPLY)

            artifacts = [VisualArtifact(source_text=source) for source in extraction.diagrams]
            session.visual_artifacts.extend(artifacts)

            mentor_changed = session.mentor.receive(extraction.mentor_signal)

            session.interaction_count += 1
            session.last_updated = datetime.now()
            logger.info(
                f"✅ [LogicTutor] Reply delivered ({len(reply.text)} chars, "
                f"{len(artifacts)} diagrams, mentor={session.mentor.status.value})"
            )
            return SendOutcome(
                status=SendStatus.DELIVERED,
                mentor_status=session.mentor.status,
                reply=reply,
                diagrams=artifacts,
                mentor_changed=mentor_changed,
            )
        finally:
            session.is_sending = False

    def _record_user_turn(self, session: SessionState, text: str) -> Turn:
        """
        Append the user turn, reusing a dangling identical one.

        A failed send leaves its user turn without a reply. Resending the same
        text reuses that turn so a manual retry never duplicates it.
        """
        last = session.history.last()
        if last is not None and last.role == TurnRole.USER and last.text == text:
            logger.debug(f"🔄 [LogicTutor] Retrying unanswered turn {last.id}")
            return last
        return session.history.add(TurnRole.USER, text)

    # ==================== Glossary ====================

    async def lookup_term(self, session: SessionState, term: str) -> GlossaryOutcome:
        """
        Define a term into the session's glossary slot.

        The slot shows a pending entry immediately. A lookup that finishes
        after a newer one started is dropped.
        """
        term = (term or "").strip()
        if not term:
            return GlossaryOutcome(entry=session.glossary)

        session.glossary_generation += 1
        generation = session.glossary_generation
        session.glossary = GlossaryEntry(term=term, generation=generation)

        try:
            definition = await self.glossary.define(term)
        except CompletionError as e:
            if session.glossary_generation != generation:
                return GlossaryOutcome(entry=session.glossary, stale=True)
            logger.warning(f"⚠️ [LogicTutor] Glossary lookup failed for '{term}': {e}")
            session.glossary = None
            return GlossaryOutcome(entry=None, notice=GLOSSARY_ERROR_NOTICE)

        if session.glossary_generation != generation:
            logger.debug(f"🔍 [LogicTutor] Dropping stale definition for '{term}'")
            return GlossaryOutcome(entry=session.glossary, stale=True)

        session.glossary = GlossaryEntry(term=term, definition=definition, generation=generation)
        return GlossaryOutcome(entry=session.glossary)

    def close_glossary(self, session: SessionState) -> None:
        """Clear the glossary slot; lookups still in flight are dropped."""
        session.glossary_generation += 1
        session.glossary = None

    # ==================== Templates ====================

    async def synthesize_template(self, query: str) -> TemplateOutcome:
        if not query or not query.strip():
            return TemplateOutcome(template=None)
        try:
            template = await self.template_synthesizer.synthesize(query)
        except CompletionError as e:
            logger.warning(f"⚠️ [LogicTutor] Template request failed: {e}")
            return TemplateOutcome(template=None, notice=CONNECTION_LOST_NOTICE)
        except TemplateError as e:
            logger.warning(f"⚠️ [LogicTutor] Unusable template payload: {e}")
            return TemplateOutcome(template=None, notice=TEMPLATE_ERROR_NOTICE)
        return TemplateOutcome(template=template)
