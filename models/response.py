"""Pydantic models for submitted survey responses.

A response is created once per completed traversal and is never modified after
it has been handed to storage.
"""

from typing import Any, Union

from pydantic import ConfigDict, Field

from models.survey import DocumentModel, UserType


class ResponseValue(DocumentModel):
    """Model for a single answer.

    Attributes:
        question_id (str): The question that was answered.
        answer (Union[int, str]): Option id for choice questions, the rating for
            rating questions, or the raw text otherwise.
        question_text (str): Snapshot of the question text at answer time.
    """

    question_id: str = Field(..., description="Question identifier")
    answer: Union[int, str] = Field(..., description="Option id, rating or text")
    question_text: str = Field("", description="Question text when answered")


class SurveyResponse(DocumentModel):
    """Model for a completed survey response.

    Attributes:
        id (str): Unique response identifier.
        survey_id (str): The survey that was answered.
        user_type (UserType): Respondent class.
        answers (list[ResponseValue]): Answers in survey question order.
        submitted_at (int): Submission time in epoch milliseconds.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Response identifier")
    survey_id: str = Field(..., description="Survey identifier")
    user_type: UserType = Field(..., description="Respondent class")
    answers: list[ResponseValue] = Field(..., description="Ordered answers")
    submitted_at: int = Field(..., description="Submission time (ms)")

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "SurveyResponse":
        """Build a response from a stored document, ignoring storage-only keys."""
        return cls.model_validate(
            {key: value for key, value in doc.items() if key != "_id"}
        )
