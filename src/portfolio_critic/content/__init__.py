from .resume import DEFAULT_RESUME, ResumeContent, load_resume, skill_label
from .prompts import SYSTEM_INSTRUCTION, build_user_query

__all__ = [
    "DEFAULT_RESUME",
    "ResumeContent",
    "load_resume",
    "skill_label",
    "SYSTEM_INSTRUCTION",
    "build_user_query",
]
