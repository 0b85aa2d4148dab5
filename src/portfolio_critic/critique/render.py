"""Light presentation transforms for critique text."""

import html
import re

from portfolio_critic.critique.session import CritiquePhase, SessionState

_HEADING = re.compile(r"^### (.*)$", re.MULTILINE)


def render_critique_html(text: str) -> str:
    """Render critique text as an HTML fragment.

    `### Heading` lines become <h4> elements and remaining newlines become
    <br/>. The text is escaped first since it comes from a remote model.
    """
    escaped = html.escape(text, quote=False)
    with_headings = _HEADING.sub(r"<h4>\1</h4>", escaped)
    return with_headings.replace("\n", "<br/>")


def describe_state(state: SessionState, as_html: bool = False) -> str:
    """One-line or block description of a session for display."""
    if state.phase is CritiquePhase.LOADING:
        return "Generating critique..."
    if state.phase is CritiquePhase.FAILED:
        return state.error or ""
    if state.phase is CritiquePhase.SUCCEEDED:
        return render_critique_html(state.text) if as_html else state.text
    return ""
