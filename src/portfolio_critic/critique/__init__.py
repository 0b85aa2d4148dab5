from .session import (
    CritiquePhase,
    CritiqueSession,
    SessionState,
    VALID_TRANSITIONS,
    get_valid_targets,
    is_valid_transition,
)
from .controller import CritiqueController, FAILURE_MESSAGE, FALLBACK_TEXT
from .render import describe_state, render_critique_html

__all__ = [
    "CritiquePhase",
    "CritiqueSession",
    "SessionState",
    "VALID_TRANSITIONS",
    "get_valid_targets",
    "is_valid_transition",
    "CritiqueController",
    "FAILURE_MESSAGE",
    "FALLBACK_TEXT",
    "describe_state",
    "render_critique_html",
]
