"""
Resume Data Structures

Structured resume record as edited in the form UI and stored remotely.
Records arrive as dicts (YAML/JSON files, database rows) with either camelCase
keys (frontend JSON) or snake_case keys (database columns); both are accepted.
"""

import re
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


def _camel_to_snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _snake_to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def _normalize_keys(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Shallow copy of data with every key converted to snake_case."""
    return {_camel_to_snake(key): value for key, value in (data or {}).items()}


def _to_camel(value: Any) -> Any:
    """Recursively convert dict keys to camelCase."""
    if isinstance(value, dict):
        return {_snake_to_camel(key): _to_camel(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_camel(item) for item in value]
    return value


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class PersonalInfo:
    full_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""
    website: str = ""
    job_title: str = ""
    summary: str = ""


@dataclass
class Experience:
    """
    One work experience entry.

    Attributes:
        description: Responsibilities, one bullet per line
    """

    company: str = ""
    role: str = ""
    start_date: str = ""
    end_date: str = ""
    is_current: bool = False
    description: str = ""
    id: str = field(default_factory=_new_id)

    @property
    def bullets(self) -> List[str]:
        """Non-empty description lines with leading bullet markers removed."""
        lines = (line.strip().lstrip("-•*").strip() for line in self.description.splitlines())
        return [line for line in lines if line]

    @property
    def date_range(self) -> str:
        end = "Present" if self.is_current else self.end_date
        return " - ".join(part for part in (self.start_date, end) if part)


@dataclass
class Education:
    institution: str = ""
    degree: str = ""
    start_date: str = ""
    end_date: str = ""
    is_current: bool = False
    graduation_year: str = ""
    id: str = field(default_factory=_new_id)

    @property
    def date_range(self) -> str:
        if self.graduation_year:
            return self.graduation_year
        end = "Present" if self.is_current else self.end_date
        return " - ".join(part for part in (self.start_date, end) if part)


@dataclass
class Project:
    name: str = ""
    description: str = ""
    link: str = ""
    technologies: List[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)


@dataclass
class Certification:
    name: str = ""
    issuer: str = ""
    year: str = ""
    link: str = ""
    id: str = field(default_factory=_new_id)


@dataclass
class ResumeData:
    """
    Complete resume record.

    Attributes:
        id: Record identifier (also the storage key of the uploaded PDF)
        title: Record title shown in the resume list
        last_updated: Last edit time, epoch milliseconds
        personal_info: Name, contact details, target job title and summary
        experiences: Work history, most recent first
        education: Education entries
        skills: Skill names
        projects: Projects
        certifications: Certifications
        pdf_url: Public URL of the last uploaded PDF
    """

    id: str = field(default_factory=_new_id)
    title: str = "Untitled Resume"
    last_updated: int = field(default_factory=lambda: int(time.time() * 1000))
    personal_info: PersonalInfo = field(default_factory=PersonalInfo)
    experiences: List[Experience] = field(default_factory=list)
    education: List[Education] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    certifications: List[Certification] = field(default_factory=list)
    pdf_url: Optional[str] = None

    @property
    def subject_name(self) -> str:
        return self.personal_info.full_name.strip()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResumeData":
        """
        Build a record from a camelCase or snake_case dict.

        Unknown keys are ignored. Accepts both the flat summary layout
        ({"summary": ...} at top level) and the nested one
        ({"personalInfo": {"summary": ...}}), and a single education object
        as well as a list.

        Args:
            data: Parsed YAML/JSON record or database row

        Returns:
            ResumeData instance
        """
        raw = _normalize_keys(data)

        info = _normalize_keys(raw.get("personal_info"))
        for key in ("full_name", "email", "phone", "location", "linkedin", "summary"):
            if not info.get(key) and raw.get(key):
                info[key] = raw[key]
        personal_info = PersonalInfo(**{k: _text(v) for k, v in info.items() if k in PersonalInfo.__dataclass_fields__})

        experiences = []
        for item in raw.get("experiences") or raw.get("work_experience") or []:
            entry = _normalize_keys(item)
            description = entry.get("description")
            if not description and entry.get("responsibilities"):
                description = "\n".join(_text(r) for r in entry["responsibilities"])
            experiences.append(
                Experience(
                    company=_text(entry.get("company") or entry.get("company_name")),
                    role=_text(entry.get("role") or entry.get("job_title")),
                    start_date=_text(entry.get("start_date") or entry.get("start_year")),
                    end_date=_text(entry.get("end_date") or entry.get("end_year")),
                    is_current=bool(entry.get("is_current", False)),
                    description=_text(description),
                    id=_text(entry.get("id")) or _new_id(),
                )
            )

        education_raw = raw.get("education") or []
        if isinstance(education_raw, dict):
            education_raw = [education_raw]
        education = []
        for item in education_raw:
            entry = _normalize_keys(item)
            if not (entry.get("institution") or entry.get("degree")):
                continue
            education.append(
                Education(
                    institution=_text(entry.get("institution")),
                    degree=_text(entry.get("degree")),
                    start_date=_text(entry.get("start_date")),
                    end_date=_text(entry.get("end_date")),
                    is_current=bool(entry.get("is_current", False)),
                    graduation_year=_text(entry.get("graduation_year")),
                    id=_text(entry.get("id")) or _new_id(),
                )
            )

        projects = [
            Project(
                name=_text(entry.get("name")),
                description=_text(entry.get("description")),
                link=_text(entry.get("link")),
                technologies=[_text(t) for t in entry.get("technologies") or [] if _text(t)],
                id=_text(entry.get("id")) or _new_id(),
            )
            for entry in map(_normalize_keys, raw.get("projects") or [])
        ]

        certifications = [
            Certification(
                name=_text(entry.get("name")),
                issuer=_text(entry.get("issuer")),
                year=_text(entry.get("year")),
                link=_text(entry.get("link")),
                id=_text(entry.get("id")) or _new_id(),
            )
            for entry in map(_normalize_keys, raw.get("certifications") or [])
        ]

        record = cls(
            personal_info=personal_info,
            experiences=experiences,
            education=education,
            skills=[_text(s) for s in raw.get("skills") or [] if _text(s)],
            projects=projects,
            certifications=certifications,
            pdf_url=raw.get("pdf_url") or None,
        )
        if raw.get("id"):
            record.id = _text(raw["id"])
        if raw.get("title"):
            record.title = _text(raw["title"])
        # Database rows carry an ISO timestamp here; only epoch values are kept
        if isinstance(raw.get("last_updated"), (int, float)):
            record.last_updated = int(raw["last_updated"])
        return record

    def to_dict(self) -> Dict[str, Any]:
        """camelCase dict as stored in the record's JSON column."""
        return _to_camel(asdict(self))
