"""
Portfolio Critic - AI critique for a static resume portfolio

Sends the compiled-in resume to Gemini with retry/backoff and exposes the
result through an observable session state.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
