"""Input cleaning and answer parsing utilities.

This module cleans free text entered by respondents and turns the submitted
question form into an answer value for the traversal engine.

Typical usage example:
    text_filter = SafeInputFilter()
    safe_text = text_filter.sanitize_input(user_text)
    answer = parse_answer(question, request.form)
"""

import re
from typing import Optional, Union

from survey_assist_utils.logging import get_logger
from werkzeug.datastructures import MultiDict

from models.survey import Question, QuestionType

logger = get_logger(__name__, level="INFO")

MIN_RATING = 1
MAX_RATING = 5
MAX_TEXT_LEN = 1000
PHONE_GROUPS = (3, 4, 4)
CUSTOM_DOMAIN = "custom"
EMAIL_DOMAINS = ["naver.com", "gmail.com", "daum.net", "kakao.com", "nate.com"]


class AnswerError(ValueError):
    """Raised when a submitted answer cannot be read for its question type."""


class SafeInputFilter:
    """Normalise free text entered by respondents.

    Collapses whitespace, squashes excessive character repeats, replaces smart
    quotes and removes control and invisible characters. Content is otherwise
    accepted as entered.
    """

    # ruff: noqa: RUF001
    SMART_QUOTE_MAP = str.maketrans(
        {
            "’": "'",
            "‘": "'",
            "“": '"',
            "”": '"',
        }
    )

    # ruff: enable: RUF001
    def sanitize_input(self, text: str | None, *, max_len: int = MAX_TEXT_LEN) -> str:
        """Return text cleaned for storage, trimmed and capped at max_len."""
        if text is None:
            return ""
        original_text = text

        # Remove control/invisible characters
        text = re.sub(r"[\x00-\x08\x0B-\x1F\x7F-\x9F\u200B-\u200D\uFEFF]", "", text)

        # Normalize spaces and repetition
        text = re.sub(r"\s+", " ", text).strip()
        text = re.sub(r"(.)\1{3,}", r"\1\1\1", text)

        # Replace smart quotes with standard quotes
        text = text.translate(self.SMART_QUOTE_MAP)

        if text != original_text.strip():
            logger.debug("Input sanitized by SafeInputFilter.")

        # Cap length
        return text[:max_len]


text_filter = SafeInputFilter()


def format_phone_number(raw: str | None) -> str:
    """Format a phone number as 000-0000-0000.

    Non-digits are dropped and at most 11 digits are kept. Shorter numbers are
    grouped as far as they go, so partial input stays readable.

    Args:
        raw (str | None): The phone number as entered.

    Returns:
        str: The formatted number, or "" if it has no digits.
    """
    digits = re.sub(r"\D", "", raw or "")[: sum(PHONE_GROUPS)]
    groups = []
    start = 0
    for size in PHONE_GROUPS:
        if start >= len(digits):
            break
        groups.append(digits[start : start + size])
        start += size
    return "-".join(groups)


def compose_email(
    local_part: str | None, domain: str | None, custom_domain: str | None = None
) -> str:
    """Assemble an email address from its local part and a domain picker.

    Args:
        local_part (str | None): Text before the @.
        domain (str | None): A domain from EMAIL_DOMAINS, or CUSTOM_DOMAIN.
        custom_domain (str | None): The domain typed in when CUSTOM_DOMAIN is picked.

    Returns:
        str: The address, or "" if the local part or domain is missing.
    """
    local_part = (local_part or "").strip()
    domain = (domain or "").strip()
    if domain == CUSTOM_DOMAIN:
        domain = (custom_domain or "").strip()
    domain = domain.lstrip("@")

    if not local_part or not domain:
        return ""
    return f"{local_part}@{domain}"


def parse_answer(
    question: Question, form: MultiDict
) -> tuple[Union[int, str], Optional[str]]:
    """Read the answer to a question from the submitted form.

    The answer field is named "answer" for every question type; email questions
    also send "email_domain" and "email_custom_domain".

    Args:
        question (Question): The question being answered.
        form (MultiDict): The submitted form data.

    Returns:
        tuple[Union[int, str], Optional[str]]: The answer value, and for choice
        questions the selected option id. A blank answer is returned as "".

    Raises:
        AnswerError: If the answer is not valid for the question type.
    """
    raw = form.get("answer", "")

    if question.type == QuestionType.SINGLE_CHOICE:
        option_id = raw.strip()
        if not option_id:
            return "", None
        if question.find_option(option_id) is None:
            raise AnswerError("Select one of the options shown")
        return option_id, option_id

    if question.type == QuestionType.RATING:
        if not raw.strip():
            return "", None
        try:
            rating = int(raw)
        except ValueError as err:
            raise AnswerError("Select a rating") from err
        if not MIN_RATING <= rating <= MAX_RATING:
            raise AnswerError(f"Select a rating from {MIN_RATING} to {MAX_RATING}")
        return rating, None

    if question.type == QuestionType.EMAIL:
        email = compose_email(
            raw, form.get("email_domain"), form.get("email_custom_domain")
        )
        return email, None

    if question.type == QuestionType.PHONE:
        return format_phone_number(raw), None

    return text_filter.sanitize_input(raw), None
