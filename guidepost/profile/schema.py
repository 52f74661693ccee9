"""CandidateProfile model for profile YAML files and stored profiles."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CandidateProfile(BaseModel):
    """Structured profile produced by the resume parser.

    Frozen: the pipeline reads it, never mutates it.
    """

    model_config = ConfigDict(frozen=True)

    summary: str = ""
    job_titles: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    years_of_experience: int = Field(default=0, ge=0)
    education: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)

    @field_validator("job_titles", "skills", "industries")
    @classmethod
    def drop_blank_entries(cls, v: list[str]) -> list[str]:
        return [item.strip() for item in v if item.strip()]

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CandidateProfile":
        """Load a profile from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Profile file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

    def to_yaml(self, path: str | Path) -> None:
        """Write the profile to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump()
        path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))
