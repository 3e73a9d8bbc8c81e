"""Response traversal engine for InsightFlow surveys.

Given a survey defined as an ordered list of questions with optional per-option
jump targets, the engine decides which question a respondent sees next. An
explicit jump always wins. Otherwise the engine moves forward from the current
question, skipping any question that is the jump target of some option, since
those are reached only by choosing the branching option. When no such question
remains the traversal is complete.

The traversal state lives in the respondent's session and is passed to the
engine on each call. Jump cycles are not detected; authors must not create them.
"""

from typing import Optional, Union

from pydantic import BaseModel, Field
from survey_assist_utils.logging import get_logger

from models.response import ResponseValue
from models.survey import (
    Question,
    Survey,
    UserType,
    conditional_question_ids,
    normalize_next_question_id,
)

logger = get_logger(__name__, level="INFO")

MAX_PROGRESS = 100.0


class TraversalError(Exception):
    """Raised when a traversal cannot continue, e.g. a corrupted survey definition."""


class TraversalState(BaseModel):
    """Per-respondent traversal state.

    Attributes:
        survey_id (str): The survey being answered.
        user_type (UserType): Respondent class.
        current_question_id (str): The question currently shown.
        answers (dict[str, ResponseValue]): At most one answer per question id.
        history (list[str]): Previously visited question ids, newest last.
        complete (bool): Set once no further question remains.
    """

    survey_id: str = Field(..., description="Survey identifier")
    user_type: UserType = Field(..., description="Respondent class")
    current_question_id: str = Field(..., description="Current question id")
    answers: dict[str, ResponseValue] = Field(default_factory=dict)
    history: list[str] = Field(default_factory=list)
    complete: bool = Field(False, description="Traversal finished")


class TraversalEngine:
    """Computes question-to-question transitions for one survey definition.

    The question positions and the conditional question set are computed once
    per engine, so an engine must be rebuilt whenever the survey changes.
    """

    def __init__(self, survey: Survey):
        self.survey = survey
        self._positions: dict[str, int] = {}
        for index, question in enumerate(survey.questions):
            # First occurrence wins for duplicated ids
            self._positions.setdefault(question.id, index)
        self.conditional_ids = conditional_question_ids(survey)

    @property
    def question_count(self) -> int:
        """Number of questions in the survey."""
        return len(self.survey.questions)

    def start(self, user_type: UserType) -> TraversalState:
        """Create the initial state positioned on the first question.

        Args:
            user_type (UserType): The respondent class.

        Returns:
            TraversalState: A fresh state with no answers and empty history.

        Raises:
            TraversalError: If the survey has no questions.
        """
        if not self.survey.questions:
            raise TraversalError(f"Survey '{self.survey.id}' has no questions")

        return TraversalState(
            survey_id=self.survey.id,
            user_type=user_type,
            current_question_id=self.survey.questions[0].id,
        )

    def current_question(self, state: TraversalState) -> Question:
        """Return the question the state is positioned on.

        Raises:
            TraversalError: If the current question id is not in the survey.
        """
        position = self._positions.get(state.current_question_id)
        if position is None:
            raise TraversalError(
                f"Question '{state.current_question_id}' not found in survey "
                f"'{self.survey.id}'"
            )
        return self.survey.questions[position]

    def has_question(self, question_id: Optional[str]) -> bool:
        """Return True if question_id names a question in the survey."""
        return question_id is not None and question_id in self._positions

    def next_sequential_id(self, from_question_id: str) -> Optional[str]:
        """Forward-skip search.

        Scans the questions after from_question_id and returns the first one that
        is not a conditional question.

        Args:
            from_question_id (str): The question to search forward from.

        Returns:
            Optional[str]: The next question id, or None at the end of the survey.
        """
        start = self._positions[from_question_id] + 1
        for question in self.survey.questions[start:]:
            if question.id not in self.conditional_ids:
                return question.id
        return None

    def submit_answer(
        self,
        state: TraversalState,
        value: Union[int, str],
        explicit_next_id: Optional[str] = None,
    ) -> Optional[str]:
        """Record an answer for the current question and move to the next one.

        Args:
            state (TraversalState): The respondent's state, updated in place.
            value (Union[int, str]): The answer for the current question.
            explicit_next_id (Optional[str]): Jump target of the chosen option.

        Returns:
            Optional[str]: The new current question id, or None if the traversal
            is now complete.

        Raises:
            TraversalError: If the state is already complete or positioned on an
                unknown question.
        """
        if state.complete:
            raise TraversalError(f"Survey '{self.survey.id}' is already complete")

        question = self.current_question(state)

        state.answers[question.id] = ResponseValue(
            question_id=question.id,
            answer=value,
            question_text=question.text,
        )
        state.history.append(question.id)

        jump_id = normalize_next_question_id(explicit_next_id)
        if self.has_question(jump_id):
            state.current_question_id = jump_id
            return jump_id

        if jump_id is not None:
            logger.warning(
                f"survey:{self.survey.id} question:{question.id} "
                f"jump to unknown question '{jump_id}' ignored"
            )

        next_id = self.next_sequential_id(question.id)
        if next_id is None:
            state.complete = True
            logger.info(
                f"survey:{self.survey.id} traversal complete after "
                f"{len(state.history)} steps"
            )
            return None

        state.current_question_id = next_id
        return next_id

    def answer_option(self, state: TraversalState, option_id: str) -> Optional[str]:
        """Answer the current choice question with one of its options.

        Args:
            state (TraversalState): The respondent's state, updated in place.
            option_id (str): The selected option id.

        Returns:
            Optional[str]: As for submit_answer.

        Raises:
            TraversalError: If the option does not belong to the current question.
        """
        question = self.current_question(state)
        option = question.find_option(option_id)
        if option is None:
            raise TraversalError(
                f"Option '{option_id}' not found on question '{question.id}'"
            )
        return self.submit_answer(state, option.id, option.next_question_id)

    def go_back(self, state: TraversalState) -> bool:
        """Step back to the previously visited question.

        Answers already given are kept; answering again replaces them. Stepping
        back from a completed traversal reopens it.

        Args:
            state (TraversalState): The respondent's state, updated in place.

        Returns:
            bool: False if there is no history, meaning the respondent should
            leave the survey, otherwise True.
        """
        if not state.history:
            return False
        state.current_question_id = state.history.pop()
        state.complete = False
        return True

    def progress(self, state: TraversalState) -> float:
        """Approximate completion percentage, clamped to 100.

        This counts visited questions against the total and does not account for
        branches that shorten or lengthen the path.
        """
        if not self.question_count:
            return 0.0
        return min(MAX_PROGRESS, len(state.history) / self.question_count * 100)
