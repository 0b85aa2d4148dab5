"""Static resume content.

The resume is an immutable value injected into the critique controller.
DEFAULT_RESUME holds the compiled-in portfolio; `load_resume` reads a
replacement from YAML with the same keys:

    summary: "..."
    experience_heading: "EXPERIENCE HIGHLIGHTS (Acme)"
    experience: ["...", "..."]
    projects_heading: "PROJECTS (Side work)"
    projects: ["..."]
    skills: {programming: "Python, SQL", dataEngineering: "PySpark"}
    skill_tags: ["Python", "SQL"]
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

import structlog
import yaml

from portfolio_critic.core.exceptions import ConfigurationError

log = structlog.get_logger()


def skill_label(key: str) -> str:
    """Turn a skill category key into a display label.

    >>> skill_label("dataEngineering")
    'Data Engineering'
    >>> skill_label("core_concepts")
    'Core Concepts'
    """
    spaced = re.sub(r"([A-Z])", r" \1", key.replace("_", " "))
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split())


@dataclass(frozen=True)
class ResumeContent:
    """Portfolio content serialized into the critique request.

    Attributes:
        summary: Professional summary paragraph.
        experience: Experience highlight bullets.
        projects: Project bullets.
        skills: Ordered (category key, comma separated skills) pairs.
        skill_tags: Flat skill list shown as tags. Not part of the prompt.
        experience_heading: Section heading for experience bullets.
        projects_heading: Section heading for project bullets.
    """

    summary: str
    experience: Tuple[str, ...] = ()
    projects: Tuple[str, ...] = ()
    skills: Tuple[Tuple[str, str], ...] = ()
    skill_tags: Tuple[str, ...] = ()
    experience_heading: str = "EXPERIENCE HIGHLIGHTS"
    projects_heading: str = "PROJECTS"

    def __post_init__(self) -> None:
        if not self.summary or not self.summary.strip():
            raise ValueError("summary cannot be empty")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ResumeContent":
        """Build from a plain mapping such as parsed YAML.

        Raises:
            ValueError: If a field has the wrong shape.
        """
        skills = data.get("skills") or {}
        if not isinstance(skills, Mapping):
            raise ValueError("skills must be a mapping of category to skills")

        kwargs: Dict[str, Any] = {
            "summary": str(data.get("summary") or ""),
            "experience": _string_tuple(data.get("experience"), "experience"),
            "projects": _string_tuple(data.get("projects"), "projects"),
            "skills": tuple((str(k), str(v)) for k, v in skills.items()),
            "skill_tags": _string_tuple(data.get("skill_tags"), "skill_tags"),
        }
        for heading in ("experience_heading", "projects_heading"):
            if data.get(heading):
                kwargs[heading] = str(data[heading])
        return cls(**kwargs)

    def skills_line(self) -> str:
        """Skills as 'Label: values | Label: values'."""
        return " | ".join(f"{skill_label(key)}: {value}" for key, value in self.skills)

    def tags_line(self) -> str:
        """Skill tags as '[Python] [SQL]', empty when there are none."""
        return " ".join(f"[{tag}]" for tag in self.skill_tags)

    def to_prompt_text(self) -> str:
        """Serialize the resume into the text block sent for critique."""
        sections = [
            f"--- PROFESSIONAL SUMMARY ---\n{self.summary}",
            f"--- {self.experience_heading} ---\n" + _bullets(self.experience),
            f"--- {self.projects_heading} ---\n" + _bullets(self.projects),
            f"--- TECHNICAL SKILLS ---\n{self.skills_line()}",
        ]
        return "\n\n".join(sections)


def _bullets(items: Tuple[str, ...]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _string_tuple(value: Any, field_name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValueError(f"{field_name} must be a list of strings")
    return tuple(str(item) for item in value)


def load_resume(path: Path) -> ResumeContent:
    """Load resume content from a YAML file.

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid.
    """
    path = Path(path).expanduser()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            config_path=str(path),
            message=f"Resume file not found: {path}",
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(
            config_path=str(path),
            message=f"Invalid YAML in {path}: {e}",
        )

    if not isinstance(data, Mapping):
        raise ConfigurationError(
            config_path=str(path),
            message=f"Resume file must contain a mapping: {path}",
        )

    try:
        resume = ResumeContent.from_dict(data)
    except ValueError as e:
        raise ConfigurationError(config_path=str(path), message=f"Invalid resume: {e}") from e

    log.info("resume_loaded", path=str(path), sections=len(resume.skills))
    return resume


DEFAULT_RESUME = ResumeContent(
    summary=(
        "Results-driven Data Engineering Associate at Accenture with over 1 year of "
        "hands-on experience in data management, ETL pipeline development, and "
        "cloud-based analytics. Proficient in Databricks, Informatica, Python, SQL, "
        "and Big Data ecosystems, with a strong ability to design scalable, automated "
        "data workflows that enhance operational performance and decision-making "
        "efficiency. Certified Databricks Data Engineer Professional & Associate, with "
        "a passion for building high-performance data systems that bridge business "
        "strategy and data-driven insights."
    ),
    experience=(
        "Engineered and optimized ETL pipelines using Informatica BDM and Databricks.",
        "Automated workflows, reducing manual intervention by 40% and improving refresh speed by 30%.",
        "Maintained Big Data Lake architecture on Azure and HDFS for scalability and accuracy.",
        "Improved SQL performance via optimization, achieving 25% faster processing.",
    ),
    projects=(
        "Designed ETL workflows to process 1M+ daily transactions.",
        "Leveraged HDFS for distributed storage, reducing query latency by 20%.",
        "Automated reporting pipelines using Python, increasing insight speed by 35%.",
    ),
    skills=(
        ("programming", "Python, C++, SQL"),
        ("dataEngineering", "Databricks, Informatica BDM, Hadoop, PySpark"),
        ("cloud", "Azure (ADF, ADLS), AWS (S3, EC2)"),
        ("devops", "Docker, Git, Power BI, Tableau"),
        ("coreConcepts", "ETL, Data Modeling, Data Governance, Big Data Analytics"),
    ),
    skill_tags=(
        "Python", "SQL", "PySpark", "Databricks", "Informatica", "Azure",
        "Hadoop", "C++", "Docker", "Git", "Power BI",
    ),
    experience_heading="EXPERIENCE HIGHLIGHTS (Accenture)",
    projects_heading="PROJECTS (Bank of Baroda)",
)
