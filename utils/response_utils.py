"""Response accumulation and submission.

Turns the answers gathered during a completed traversal into a SurveyResponse
and hands it to storage.
"""

import uuid

from survey_assist_utils.logging import get_logger

from models.response import ResponseValue, SurveyResponse
from models.survey import Survey, now_ms
from utils.store_utils import SurveyStore
from utils.traversal_utils import TraversalError, TraversalState

logger = get_logger(__name__, level="INFO")


def order_answers(
    survey: Survey, answers: dict[str, ResponseValue]
) -> list[ResponseValue]:
    """Order answers by the survey's question order rather than answer order.

    Answers for questions no longer in the survey are kept at the end.

    Args:
        survey (Survey): The survey that was answered.
        answers (dict[str, ResponseValue]): Answers keyed by question id.

    Returns:
        list[ResponseValue]: The ordered answers.
    """
    positions: dict[str, int] = {}
    for index, question in enumerate(survey.questions):
        positions.setdefault(question.id, index)
    end = len(positions)
    # sorted() is stable, so unknown ids keep their relative order
    return sorted(answers.values(), key=lambda a: positions.get(a.question_id, end))


def build_survey_response(survey: Survey, state: TraversalState) -> SurveyResponse:
    """Create the response record for a traversal.

    Args:
        survey (Survey): The survey that was answered.
        state (TraversalState): The respondent's traversal state.

    Returns:
        SurveyResponse: A new response with a fresh id and the current time.
    """
    return SurveyResponse(
        id=str(uuid.uuid4()),
        survey_id=survey.id,
        user_type=state.user_type,
        answers=order_answers(survey, state.answers),
        submitted_at=now_ms(),
    )


def submit_response(
    store: SurveyStore, survey: Survey, state: TraversalState
) -> SurveyResponse:
    """Build the response for a completed traversal and insert it into storage.

    Args:
        store (SurveyStore): The storage collaborator.
        survey (Survey): The survey that was answered.
        state (TraversalState): The completed traversal state.

    Returns:
        SurveyResponse: The stored response.

    Raises:
        TraversalError: If the traversal is not complete.
        StorageError: If storage rejects the response. The error is not retried.
    """
    if not state.complete:
        raise TraversalError(
            f"Survey '{survey.id}' cannot be submitted before it is complete"
        )

    response = build_survey_response(survey, state)
    store.insert_response(response)

    logger.info(
        f"survey:{survey.id} response:{response.id} submitted "
        f"user_type:{response.user_type.value} answers:{len(response.answers)}"
    )
    return response
