import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from guidance.errors import ProfileValidationError


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "education", "interests")


def _unique_values(values: Iterable[Any]) -> List[str]:
    """Trim entries, drop blanks and keep the first occurrence of each value"""
    seen: List[str] = []
    for value in values or []:
        value = str(value).strip()
        if value and value not in seen:
            seen.append(value)
    return seen


def _tag_values(value: Any) -> Tuple[str, ...]:
    """Validate a list of tag strings; a bare string or number is not a list"""
    if value is None:
        return ()
    if not isinstance(value, (list, tuple, set)) or not all(isinstance(v, str) for v in value):
        raise ValueError("must be a list of strings")
    return tuple(_unique_values(value))


class StudentProfile(BaseModel):
    """Validated student intake record"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    education: str
    interests: Tuple[str, ...]
    skills: Tuple[str, ...] = ()
    career_goals: str = Field(default="", alias="careerGoals")

    @field_validator("name", "education", mode="before")
    @classmethod
    def _strip_required(cls, value: Any) -> str:
        value = "" if value is None else str(value).strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("interests", mode="before")
    @classmethod
    def _require_interests(cls, value: Any) -> Tuple[str, ...]:
        interests = _tag_values(value)
        if not interests:
            raise ValueError("at least one interest is required")
        return interests

    @field_validator("skills", mode="before")
    @classmethod
    def _dedupe_skills(cls, value: Any) -> Tuple[str, ...]:
        return _tag_values(value)

    @field_validator("career_goals", mode="before")
    @classmethod
    def _strip_goals(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation (camelCase, tags as lists)"""
        return self.model_dump(mode="json", by_alias=True)


class ProfileDraft:
    """Mutable intake form state before submission"""

    def __init__(
        self,
        name: str = "",
        education: str = "",
        interests: Optional[Iterable[str]] = None,
        skills: Optional[Iterable[str]] = None,
        career_goals: str = "",
    ):
        self.name = name
        self.education = education
        self.interests: List[str] = _unique_values(interests or [])
        self.skills: List[str] = _unique_values(skills or [])
        self.career_goals = career_goals

    @staticmethod
    def _add(values: List[str], value: str) -> bool:
        value = (value or "").strip()
        if not value or value in values:
            return False
        values.append(value)
        return True

    @staticmethod
    def _remove(values: List[str], value: str) -> bool:
        if value not in values:
            return False
        values.remove(value)
        return True

    def add_interest(self, interest: str) -> bool:
        return self._add(self.interests, interest)

    def remove_interest(self, interest: str) -> bool:
        return self._remove(self.interests, interest)

    def add_skill(self, skill: str) -> bool:
        return self._add(self.skills, skill)

    def remove_skill(self, skill: str) -> bool:
        return self._remove(self.skills, skill)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "education": self.education,
            "interests": list(self.interests),
            "skills": list(self.skills),
            "career_goals": self.career_goals,
        }


ProfileInput = Union[StudentProfile, ProfileDraft, Mapping[str, Any]]


def submit(draft: ProfileInput) -> StudentProfile:
    """
    Turn intake form data into a StudentProfile.

    Raises ProfileValidationError listing every missing required field
    (name, education, interests) or any other malformed field.
    """
    if isinstance(draft, StudentProfile):
        return draft

    if isinstance(draft, ProfileDraft):
        data = draft.as_dict()
    elif isinstance(draft, Mapping):
        data = dict(draft)
    else:
        raise ProfileValidationError(list(REQUIRED_FIELDS), "Profile must be an object with name, education and interests")

    try:
        profile = StudentProfile.model_validate(data)
    except ValidationError as e:
        fields = []
        for error in e.errors():
            location = error.get("loc") or ("profile",)
            field_name = str(location[0])
            if field_name == "careerGoals":
                field_name = "career_goals"
            if field_name not in fields:
                fields.append(field_name)
        # Keep the required fields first, in form order
        fields.sort(key=lambda f: REQUIRED_FIELDS.index(f) if f in REQUIRED_FIELDS else len(REQUIRED_FIELDS))
        logger.info(f" Profile rejected, invalid fields: {fields}")
        raise ProfileValidationError(fields) from e

    logger.info(f" Profile accepted for {profile.name} ({len(profile.interests)} interests)")
    return profile
