"""Pydantic models for aggregated survey results.

These models hold the counts and percentages shown on the operator results
page. No statistics beyond counts and percentages are produced.
"""

from pydantic import BaseModel, Field

from models.survey import QuestionType


class OptionCount(BaseModel):
    """Model for the tally of one answer label.

    Attributes:
        label (str): Option text, or the raw answer if it matches no option.
        count (int): Number of answers with this label.
        percentage (int): Share of the question's answers, rounded half up.
    """

    label: str = Field(..., description="Answer label")
    count: int = Field(..., description="Number of answers")
    percentage: int = Field(..., description="Percentage of answers")


class QuestionReport(BaseModel):
    """Model for the results of one question.

    Attributes:
        question_id (str): The question identifier.
        number (int): 1-based position of the question in the survey.
        text (str): The question text.
        type (QuestionType): The question type.
        total (int): Number of non-blank answers recorded for the question.
        skipped (int): Responses that left the question blank.
        counts (list[OptionCount]): Tallies for choice and rating questions.
        text_answers (list[str]): Listed answers for free-text style questions.
        hidden_answers (int): Answers not included in text_answers.
    """

    question_id: str = Field(..., description="Question identifier")
    number: int = Field(..., description="Question number")
    text: str = Field(..., description="Question text")
    type: QuestionType = Field(..., description="Question type")
    total: int = Field(..., description="Answers for this question")
    skipped: int = Field(0, description="Blank answers")
    counts: list[OptionCount] = Field(default_factory=list)
    text_answers: list[str] = Field(default_factory=list)
    hidden_answers: int = Field(0, description="Answers not listed")


class SurveyReport(BaseModel):
    """Model for the aggregated results of a survey."""

    survey_id: str = Field(..., description="Survey identifier")
    title: str = Field(..., description="Survey title")
    total_responses: int = Field(..., description="Number of responses")
    by_user_type: dict[str, int] = Field(..., description="Responses per class")
    question_count: int = Field(..., description="Number of questions")
    questions: list[QuestionReport] = Field(default_factory=list)
