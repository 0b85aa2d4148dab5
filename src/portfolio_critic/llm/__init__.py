from .retry import (
    Failure,
    RequestOutcome,
    ResilientClient,
    RetryPolicy,
    Success,
)
from .gemini import (
    build_generate_content_url,
    build_payload,
    extract_candidate_text,
)

__all__ = [
    "Failure",
    "RequestOutcome",
    "ResilientClient",
    "RetryPolicy",
    "Success",
    "build_generate_content_url",
    "build_payload",
    "extract_candidate_text",
]
