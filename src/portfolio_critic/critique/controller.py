"""Critique Request Controller.

Orchestrates one user-triggered critique: builds the payload from the
injected resume content, delegates to the ResilientClient and maps the
outcome onto the CritiqueSession.

A trigger while a request is in flight is ignored, so at most one request
is ever outstanding. Retries belong to the client, never to this layer.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog

from portfolio_critic.content.prompts import SYSTEM_INSTRUCTION, build_user_query
from portfolio_critic.content.resume import DEFAULT_RESUME, ResumeContent, load_resume
from portfolio_critic.core.config import Settings
from portfolio_critic.critique.session import CritiquePhase, CritiqueSession, SessionState
from portfolio_critic.llm.gemini import (
    build_generate_content_url,
    build_payload,
    extract_candidate_text,
)
from portfolio_critic.llm.retry import ResilientClient, RetryPolicy

log = structlog.get_logger()

FALLBACK_TEXT = "Could not generate critique. Please try again."
FAILURE_MESSAGE = "Failed to get critique from AI. Check the console for details."


class CritiqueController:
    """Drives the critique session lifecycle.

    Attributes:
        session: The session this controller owns and writes.
    """

    def __init__(
        self,
        client: ResilientClient,
        endpoint_url: str,
        resume: ResumeContent = DEFAULT_RESUME,
        system_instruction: str = SYSTEM_INSTRUCTION,
        policy: Optional[RetryPolicy] = None,
        session: Optional[CritiqueSession] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            client: Resilient client used for the outbound call.
            endpoint_url: Fully templated generateContent URL.
            resume: Resume content serialized into the request.
            system_instruction: Fixed instruction for the model.
            policy: Retry policy. Defaults to 3 attempts, 1s base delay.
            session: Session to drive. A fresh one is created if omitted.
        """
        self._client = client
        self._owns_client = False
        self._endpoint_url = endpoint_url
        self._resume = resume
        self._system_instruction = system_instruction
        self._policy = policy or RetryPolicy(max_attempts=3, base_delay=1.0)
        self.session = session or CritiqueSession()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: Optional[ResilientClient] = None,
        resume: Optional[ResumeContent] = None,
    ) -> "CritiqueController":
        """Build a controller from a Settings instance.

        The resume falls back to settings.resume_path, then DEFAULT_RESUME.

        Raises:
            ConfigurationError: If resume_path is set but unreadable.
        """
        if resume is None:
            resume = load_resume(settings.resume_path) if settings.resume_path else DEFAULT_RESUME

        gemini = settings.gemini
        url = build_generate_content_url(
            api_key=gemini.api_key.get_secret_value(),
            model=gemini.model,
            base_url=gemini.base_url,
        )
        controller = cls(
            client=client or ResilientClient(timeout=gemini.timeout),
            endpoint_url=url,
            resume=resume,
            policy=settings.retry.to_policy(),
        )
        controller._owns_client = client is None
        return controller

    async def __aenter__(self) -> "CritiqueController":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the request client if this controller created it."""
        if self._owns_client:
            await self._client.aclose()

    @property
    def state(self) -> SessionState:
        """Current session snapshot for the presentation surface."""
        return self.session.state

    def build_payload(self) -> Dict[str, Any]:
        """Assemble a fresh request body from the fixed content."""
        return build_payload(
            user_query=build_user_query(self._resume),
            system_instruction=self._system_instruction,
        )

    async def trigger_critique(self) -> None:
        """Run one critique request and settle the session.

        No-op while LOADING. Never raises for request failures.
        """
        if self.session.phase is CritiquePhase.LOADING:
            log.info("critique_trigger_ignored", session_id=self.session.session_id)
            return

        # Enter LOADING before the first await so re-entrant triggers see it
        self.session.begin()

        try:
            outcome = await self._client.send(
                self._endpoint_url,
                method="POST",
                headers={"Content-Type": "application/json"},
                body=self.build_payload(),
                policy=self._policy,
            )
        except Exception as e:
            log.error(
                "critique_request_crashed",
                session_id=self.session.session_id,
                error=f"{type(e).__name__}: {e}",
            )
            self.session.fail(FAILURE_MESSAGE)
            return

        if not outcome.ok:
            log.error(
                "critique_request_failed",
                session_id=self.session.session_id,
                error=str(outcome.error),
                **outcome.error.context,
            )
            self.session.fail(FAILURE_MESSAGE)
            return

        text = extract_candidate_text(outcome.body)
        if text is None:
            log.warning(
                "critique_no_content",
                session_id=self.session.session_id,
                attempts=outcome.attempts,
            )
            text = FALLBACK_TEXT

        self.session.succeed(text)
