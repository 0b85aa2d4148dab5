"""Gemini generateContent wire helpers.

Builds the endpoint URL and request payload, and pulls the critique text
out of the response structure:

    candidates[0].content.parts[0].text
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"

# Enables Google Search grounding for the request.
SEARCH_TOOL = "google_search"


def build_generate_content_url(
    api_key: str,
    model: str = DEFAULT_MODEL,
    base_url: str = DEFAULT_BASE_URL,
) -> str:
    """Return the generateContent URL with the credential as a query param.

    An empty key still produces a well-formed URL; the endpoint rejects it.
    """
    return f"{base_url.rstrip('/')}/models/{model}:generateContent?key={quote(api_key, safe='')}"


def build_payload(
    user_query: str,
    system_instruction: str,
    use_search: bool = True,
) -> Dict[str, Any]:
    """Assemble a fresh generateContent request body."""
    payload: Dict[str, Any] = {
        "contents": [{"parts": [{"text": user_query}]}],
        "systemInstruction": {"parts": [{"text": system_instruction}]},
    }
    if use_search:
        payload["tools"] = [{SEARCH_TOOL: {}}]
    return payload


def extract_candidate_text(body: Any) -> Optional[str]:
    """Return the first candidate's text, or None when the path is absent.

    Any shape mismatch along the way (missing key, empty list, wrong type)
    counts as absent.
    """
    node: Any = body
    for key in ("candidates", 0, "content", "parts", 0, "text"):
        if isinstance(key, int):
            if not isinstance(node, list) or len(node) <= key:
                return None
        elif not isinstance(node, dict) or key not in node:
            return None
        node = node[key]

    if not isinstance(node, str) or not node:
        return None
    return node
