"""Aggregation of survey responses for the operator results page and CSV export."""

import csv
import io
from collections import Counter
from datetime import datetime, timezone

from models.report import OptionCount, QuestionReport, SurveyReport
from models.response import SurveyResponse
from models.survey import Question, QuestionType, Survey, UserType

TEXT_ANSWER_LIMIT = 10
CONTACT_ANSWER_LIMIT = 100
CSV_BOM = "\ufeff"

TALLIED_TYPES = (QuestionType.SINGLE_CHOICE, QuestionType.RATING)
LISTED_LIMITS = {
    QuestionType.TEXT: TEXT_ANSWER_LIMIT,
    QuestionType.EMAIL: CONTACT_ANSWER_LIMIT,
    QuestionType.PHONE: CONTACT_ANSWER_LIMIT,
}


def percentage(count: int, total: int) -> int:
    """Return count as a whole percentage of total, rounding halves up."""
    if total <= 0:
        return 0
    return (count * 200 + total) // (total * 2)


def answer_label(question: Question, answer: int | str) -> str:
    """Return the option text for an option id, or the raw answer otherwise."""
    value = str(answer)
    option = question.find_option(value)
    return option.text if option else value


def tally_answers(question: Question, answers: list[int | str]) -> list[OptionCount]:
    """Count answers per label, most frequent first, then unused options.

    Args:
        question (Question): The choice or rating question.
        answers (list[int | str]): Every answer recorded for the question.

    Returns:
        list[OptionCount]: Tallies with percentages of the non-blank answers.
        Blank answers are not counted.
    """
    answers = [answer for answer in answers if answer != ""]
    total = len(answers)
    counts = Counter(answer_label(question, answer) for answer in answers)

    # Counter.most_common keeps first-seen order for ties
    tallies = [
        OptionCount(label=label, count=count, percentage=percentage(count, total))
        for label, count in counts.most_common()
    ]
    for option in question.options:
        if option.text not in counts:
            tallies.append(OptionCount(label=option.text, count=0, percentage=0))
    return tallies


def build_survey_report(
    survey: Survey, responses: list[SurveyResponse]
) -> SurveyReport:
    """Aggregate the responses to a survey.

    Args:
        survey (Survey): The survey definition.
        responses (list[SurveyResponse]): The responses to aggregate.

    Returns:
        SurveyReport: Totals and per-question results. Questions with no
        answers are left out.
    """
    by_user_type = {user_type.value: 0 for user_type in UserType}
    for response in responses:
        by_user_type[response.user_type.value] += 1

    question_reports: list[QuestionReport] = []
    for number, question in enumerate(survey.questions, start=1):
        answers = [
            value.answer
            for response in responses
            for value in response.answers
            if value.question_id == question.id
        ]
        if not answers:
            continue
        answered = [answer for answer in answers if answer != ""]

        report = QuestionReport(
            question_id=question.id,
            number=number,
            text=question.text,
            type=question.type,
            total=len(answered),
            skipped=len(answers) - len(answered),
        )
        if question.type in TALLIED_TYPES:
            report.counts = tally_answers(question, answered)
        else:
            limit = LISTED_LIMITS[question.type]
            report.text_answers = [str(answer) for answer in answered[:limit]]
            report.hidden_answers = max(0, len(answered) - limit)
        question_reports.append(report)

    return SurveyReport(
        survey_id=survey.id,
        title=survey.title,
        total_responses=len(responses),
        by_user_type=by_user_type,
        question_count=len(survey.questions),
        questions=question_reports,
    )


def format_submitted_at(submitted_at: int) -> str:
    """Format an epoch millisecond timestamp for export."""
    moment = datetime.fromtimestamp(submitted_at / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def responses_to_csv(survey: Survey, responses: list[SurveyResponse]) -> str:
    """Render responses as CSV, one row per response and one column per question.

    The output starts with a UTF-8 byte order mark so spreadsheet tools detect
    the encoding.

    Args:
        survey (Survey): The survey definition.
        responses (list[SurveyResponse]): The responses to export.

    Returns:
        str: The CSV document.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(
        ["Response ID", "Submitted at", *(f"Q: {q.text}" for q in survey.questions)]
    )

    for response in responses:
        answers = {value.question_id: value.answer for value in response.answers}
        cells = []
        for question in survey.questions:
            if question.id not in answers:
                cells.append("")
            elif question.options:
                cells.append(answer_label(question, answers[question.id]))
            else:
                cells.append(str(answers[question.id]))
        writer.writerow(
            [response.id, format_submitted_at(response.submitted_at), *cells]
        )

    return CSV_BOM + buffer.getvalue()
