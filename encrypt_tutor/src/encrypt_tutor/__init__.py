"""Encrypt logic tutor core"""
from .logic_tutor import LogicTutor, SendOutcome, SendStatus
from .session_state import SessionState

__all__ = ["LogicTutor", "SendOutcome", "SendStatus", "SessionState"]
