"""Exclusive survey activation.

At most one survey may be active for any effective audience. Activating a
survey therefore deactivates every other survey whose audience overlaps the
new one. ALL overlaps every audience, EMPLOYEE and GENERAL overlap themselves
and ALL.

The updates for one activation are computed from a single read of all surveys
and written one by one. There is no transaction across the batch: a failing
write leaves the earlier writes applied, and two operators activating
overlapping surveys at the same time can both succeed.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field
from survey_assist_utils.logging import get_logger

from models.survey import Survey, TargetAudience, UserType
from utils.store_utils import SurveyStore

logger = get_logger(__name__, level="INFO")


class SurveyUpdate(BaseModel):
    """A partial update to apply to one stored survey.

    Attributes:
        survey_id (str): The survey to update.
        fields (dict[str, Any]): Document fields to set.
    """

    survey_id: str = Field(..., description="Survey identifier")
    fields: dict[str, Any] = Field(..., description="Document fields to set")


def audiences_overlap(first: TargetAudience, second: TargetAudience) -> bool:
    """Return True if two audiences can include the same respondent."""
    return TargetAudience.ALL in (first, second) or first == second


def resolve_activation(
    target_id: str,
    desired_active: bool,
    desired_audience: TargetAudience,
    all_surveys: list[Survey],
) -> list[SurveyUpdate]:
    """Compute the updates needed to set a survey's active state and audience.

    Args:
        target_id (str): The survey being toggled.
        desired_active (bool): The requested active state.
        desired_audience (TargetAudience): The requested audience.
        all_surveys (list[Survey]): Every stored survey.

    Returns:
        list[SurveyUpdate]: The target's update first, followed by a
        deactivation for every other survey with an overlapping audience.
    """
    target_update = SurveyUpdate(
        survey_id=target_id,
        fields={"isActive": desired_active, "targetAudience": desired_audience.value},
    )
    if not desired_active:
        return [target_update]

    updates = [target_update]
    for survey in all_surveys:
        if survey.id == target_id:
            continue
        if audiences_overlap(desired_audience, survey.target_audience):
            updates.append(
                SurveyUpdate(survey_id=survey.id, fields={"isActive": False})
            )
    return updates


def apply_activation(
    store: SurveyStore,
    target_id: str,
    desired_active: bool,
    desired_audience: TargetAudience,
) -> list[SurveyUpdate]:
    """Resolve an activation against storage and write the resulting updates.

    Args:
        store (SurveyStore): The storage collaborator.
        target_id (str): The survey being toggled.
        desired_active (bool): The requested active state.
        desired_audience (TargetAudience): The requested audience.

    Returns:
        list[SurveyUpdate]: The updates that were written.

    Raises:
        StorageError: If reading or any write fails. Earlier writes in the
            batch are not rolled back.
    """
    surveys = store.fetch_all_surveys() if desired_active else []
    updates = resolve_activation(target_id, desired_active, desired_audience, surveys)

    for update in updates:
        store.update_survey_fields(update.survey_id, update.fields)

    logger.info(
        f"survey:{target_id} active:{desired_active} "
        f"audience:{desired_audience.value} deactivated:{len(updates) - 1}"
    )
    return updates


def select_survey_for(surveys: list[Survey], user_type: UserType) -> Optional[Survey]:
    """Pick the survey to show a respondent class.

    Args:
        surveys (list[Survey]): All surveys, newest first.
        user_type (UserType): The respondent class.

    Returns:
        Optional[Survey]: The first active survey for the class, or None when no
        survey is currently available.
    """
    audience = TargetAudience(user_type.value)
    return next(
        (
            survey
            for survey in surveys
            if survey.is_active
            and survey.target_audience in (TargetAudience.ALL, audience)
        ),
        None,
    )
