"""Pydantic models for InsightFlow survey definitions.

This module defines the survey definition graph that respondents traverse:
surveys, questions and options, along with the enums for question types,
target audiences and respondent classes. Stored survey documents use camelCase
field names, the models expose snake_case attributes.
"""

import time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from survey_assist_utils.logging import get_logger

logger = get_logger(__name__, level="INFO")

# Values that mean "no jump" once trimmed
NO_JUMP_VALUES = frozenset({"", "null", "undefined"})


def now_ms() -> int:
    """Return the current time as epoch milliseconds."""
    return int(time.time() * 1000)


def normalize_next_question_id(value: Any) -> Optional[str]:
    """Normalise an option's jump target.

    Empty strings, the literal strings "null" and "undefined" and missing values
    all mean "no jump".

    Args:
        value (Any): The raw jump target read from a survey document or form.

    Returns:
        Optional[str]: The trimmed question id, or None when there is no jump.
    """
    if value is None:
        return None
    trimmed = str(value).strip()
    if trimmed in NO_JUMP_VALUES:
        return None
    return trimmed


class QuestionType(str, Enum):
    """Supported question types."""

    SINGLE_CHOICE = "SINGLE_CHOICE"
    TEXT = "TEXT"
    RATING = "RATING"
    EMAIL = "EMAIL"
    PHONE = "PHONE"


class TargetAudience(str, Enum):
    """Audience a survey is shown to."""

    ALL = "ALL"
    EMPLOYEE = "EMPLOYEE"
    GENERAL = "GENERAL"


class UserType(str, Enum):
    """Respondent class selected on the landing page."""

    EMPLOYEE = "EMPLOYEE"
    GENERAL = "GENERAL"


class DocumentModel(BaseModel):
    """Base model mapping snake_case attributes to camelCase document fields."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Return the model as a JSON-ready document with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class Option(DocumentModel):
    """Model for a choice option.

    Attributes:
        id (str): Option identifier, recorded as the answer when selected.
        text (str): Display text.
        next_question_id (Optional[str]): Question to jump to when selected.
    """

    id: str = Field(..., description="Option identifier")
    text: str = Field("", description="Display text")
    next_question_id: Optional[str] = Field(
        None, description="Question to jump to when this option is selected"
    )

    @field_validator("next_question_id", mode="before")
    @classmethod
    def _normalize_jump(cls, value: Any) -> Optional[str]:
        return normalize_next_question_id(value)


class Question(DocumentModel):
    """Model for a survey question.

    Attributes:
        id (str): Question identifier, unique within a survey.
        text (str): Display text.
        type (QuestionType): The kind of answer expected.
        is_required (bool): Whether a blank answer is rejected.
        options (list[Option]): Ordered options for choice questions.
    """

    id: str = Field(..., description="Question identifier")
    text: str = Field("", description="Display text")
    type: QuestionType = Field(QuestionType.SINGLE_CHOICE, description="Question type")
    is_required: bool = Field(False, description="Whether an answer is required")
    options: list[Option] = Field(default_factory=list, description="Choice options")

    def find_option(self, option_id: str) -> Optional[Option]:
        """Return the option with the given id, or None if not present."""
        return next((opt for opt in self.options if opt.id == option_id), None)


class Survey(DocumentModel):
    """Model for a survey definition.

    Attributes:
        id (str): Survey identifier.
        title (str): Survey title.
        description (str): Survey description, rendered as markdown.
        questions (list[Question]): Ordered questions; order defines the
            default successor of each question.
        is_active (bool): Whether respondents can currently take the survey.
        target_audience (TargetAudience): Who the survey is shown to.
        created_at (int): Creation time in epoch milliseconds.
    """

    id: str = Field(..., description="Survey identifier")
    title: str = Field("", description="Survey title")
    description: str = Field("", description="Survey description")
    questions: list[Question] = Field(default_factory=list, description="Questions")
    is_active: bool = Field(False, description="Active flag")
    target_audience: TargetAudience = Field(
        TargetAudience.ALL, description="Target audience"
    )
    created_at: int = Field(default_factory=now_ms, description="Creation time (ms)")

    def find_question(self, question_id: str) -> Optional[Question]:
        """Return the question with the given id, or None if not present."""
        return next((q for q in self.questions if q.id == question_id), None)

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Survey":
        """Build a survey from a stored document, defaulting missing fields.

        Stored documents may pre-date the current schema, so legacy field names
        (``_id``, ``title``/``required`` on questions, ``value``/``label``/``next``
        on options) are accepted and unknown enum values fall back to defaults.

        Args:
            doc (dict[str, Any]): The raw survey document.

        Returns:
            Survey: The normalised survey.
        """
        survey_id = str(doc.get("id") or doc.get("_id") or "")
        return cls(
            id=survey_id,
            title=str(doc.get("title") or ""),
            description=str(doc.get("description") or ""),
            is_active=bool(doc.get("isActive", False)),
            created_at=_created_at(doc.get("createdAt")),
            target_audience=_coerce_enum(
                TargetAudience,
                doc.get("targetAudience"),
                TargetAudience.ALL,
                survey_id,
            ),
            questions=[
                _question_from_document(q, survey_id)
                for q in _document_list(doc, "questions", survey_id)
                if isinstance(q, dict)
            ],
        )


def _coerce_enum(enum_cls, raw: Any, default, survey_id: str):
    """Return raw as a member of enum_cls, or default when missing or unknown."""
    if raw is None or raw == "":
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        logger.warning(
            f"survey:{survey_id} unknown {enum_cls.__name__} '{raw}', using {default.value}"
        )
        return default


def _document_list(doc: dict[str, Any], field: str, survey_id: str) -> list[Any]:
    """Return the list stored under field, or an empty list when it is not one."""
    raw = doc.get(field)
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning(
            f"survey:{survey_id} '{field}' is {type(raw).__name__}, not a list, ignoring it"
        )
        return []
    return raw


def _created_at(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw <= 0:
        return now_ms()
    return int(raw)


def _question_from_document(doc: dict[str, Any], survey_id: str) -> Question:
    if "isRequired" in doc:
        is_required = bool(doc["isRequired"])
    else:
        is_required = bool(doc.get("required", False))

    return Question(
        id=str(doc.get("id") or ""),
        text=str(doc.get("text") or doc.get("title") or ""),
        type=_coerce_enum(
            QuestionType, doc.get("type"), QuestionType.SINGLE_CHOICE, survey_id
        ),
        is_required=is_required,
        options=[
            Option(
                id=str(opt.get("id") or opt.get("value") or ""),
                text=str(opt.get("text") or opt.get("label") or ""),
                next_question_id=opt.get("nextQuestionId") or opt.get("next"),
            )
            for opt in _document_list(doc, "options", survey_id)
            if isinstance(opt, dict)
        ],
    )


def conditional_question_ids(survey: Survey) -> set[str]:
    """Collect the ids of questions that are reachable only by an explicit jump.

    A question is conditional when some option anywhere in the survey names it
    as its jump target.

    Args:
        survey (Survey): The survey to scan.

    Returns:
        set[str]: The conditional question ids.
    """
    ids: set[str] = set()
    for question in survey.questions:
        for option in question.options:
            target = normalize_next_question_id(option.next_question_id)
            if target is not None:
                ids.add(target)
    return ids


def find_definition_problems(survey: Survey) -> tuple[list[str], list[str]]:
    """Check an authored survey before it is saved.

    Args:
        survey (Survey): The survey being saved from the editor.

    Returns:
        tuple[list[str], list[str]]: Problems that block saving, and warnings
        that are shown but do not block saving.
    """
    problems: list[str] = []
    warnings: list[str] = []

    seen: set[str] = set()
    for position, question in enumerate(survey.questions, start=1):
        if not question.id.strip():
            problems.append(f"Question {position} has no id")
            continue
        if question.id in seen:
            problems.append(f"Question id '{question.id}' is used more than once")
        seen.add(question.id)

    for question in survey.questions:
        for option in question.options:
            target = option.next_question_id
            if target is not None and target not in seen:
                warnings.append(
                    f"Option '{option.id}' on question '{question.id}' jumps to "
                    f"unknown question '{target}' and will be ignored"
                )

    return problems, warnings
