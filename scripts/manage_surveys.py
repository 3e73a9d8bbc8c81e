#!/usr/bin/env python3
"""Script for managing InsightFlow surveys through the survey document API.

This script provides command-line utilities for operators: listing surveys,
exporting and importing survey definitions, switching surveys on and off and
printing aggregated results.

Example usage:
    poetry run python -m scripts.manage_surveys --action list
    poetry run python -m scripts.manage_surveys --action activate \
        --survey-id survey_123 --audience EMPLOYEE
"""

import argparse
import json
import os
from pathlib import Path
from typing import Optional

from survey_assist_utils.logging import get_logger

from models.survey import Survey, TargetAudience, find_definition_problems
from utils.activation_utils import apply_activation
from utils.api_utils import APIClient, SurveyStoreService
from utils.report_utils import build_survey_report
from utils.store_utils import StorageError, SurveyStore

logger = get_logger(__name__, "INFO")

ACTIONS = ["list", "export", "import", "activate", "deactivate", "report"]


def init_survey_store() -> SurveyStore:
    """Initialises and returns a survey store using environment variables.

    Returns:
        SurveyStore: Store backed by the survey document API.
    """
    api_base = os.getenv("BACKEND_API_URL", "http://127.0.0.1:5000")
    api_version = os.getenv("BACKEND_API_VERSION", "/api")

    return SurveyStoreService(
        APIClient(
            base_url=f"{api_base}{api_version}",
            token=os.getenv("BACKEND_API_TOKEN", ""),
            logger_handle=logger,
        )
    )


def list_surveys(store: SurveyStore) -> list[str]:
    """Return one summary line per survey, newest first."""
    lines = []
    for survey in store.fetch_all_surveys():
        status = "active" if survey.is_active else "stopped"
        lines.append(
            f"{survey.id}\t{status}\t{survey.target_audience.value}\t"
            f"{len(survey.questions)} questions\t{survey.title}"
        )
    return lines


def export_surveys(store: SurveyStore, file_path: Path) -> int:
    """Write every survey to a JSON file.

    Args:
        store (SurveyStore): The store to read from.
        file_path (Path): Destination file.

    Returns:
        int: The number of surveys written.
    """
    documents = [survey.to_document() for survey in store.fetch_all_surveys()]
    with file_path.open("w", encoding="utf-8") as file:
        json.dump(documents, file, indent=2, ensure_ascii=False)
    logger.info(f"Exported {len(documents)} surveys to {file_path}")
    return len(documents)


def import_surveys(store: SurveyStore, file_path: Path) -> int:
    """Create or replace surveys from a JSON file of survey documents.

    Documents are normalised before they are stored, so exports from older
    versions can be imported. Surveys with definition problems are skipped.

    Args:
        store (SurveyStore): The store to write to.
        file_path (Path): JSON file holding a survey document or a list of them.

    Returns:
        int: The number of surveys stored.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Survey file not found: {file_path}")

    with file_path.open(encoding="utf-8") as file:
        documents = json.load(file)
    if isinstance(documents, dict):
        documents = [documents]

    imported = 0
    for doc in documents:
        survey = Survey.from_document(doc)
        problems, warnings = find_definition_problems(survey)
        for warning in warnings:
            logger.warning(f"survey:{survey.id} {warning}")
        if not survey.id or problems:
            logger.error(f"survey:{survey.id} skipped: {problems or ['missing id']}")
            continue
        store.upsert_survey(survey)
        imported += 1

    logger.info(f"Imported {imported} of {len(documents)} surveys from {file_path}")
    return imported


def set_survey_status(
    store: SurveyStore,
    survey_id: str,
    active: bool,
    audience: Optional[TargetAudience] = None,
) -> int:
    """Switch a survey on or off, keeping its audience unless one is given.

    Returns:
        int: The number of other surveys that were switched off.

    Raises:
        StorageError: If the survey does not exist or storage fails.
    """
    survey = store.fetch_survey_by_id(survey_id)
    if survey is None:
        raise StorageError(f"Survey '{survey_id}' not found", 404)

    updates = apply_activation(
        store, survey_id, active, audience or survey.target_audience
    )
    return len(updates) - 1


def survey_report(store: SurveyStore, survey_id: str) -> str:
    """Return the aggregated results of a survey as indented JSON.

    Raises:
        StorageError: If the survey does not exist or storage fails.
    """
    survey = store.fetch_survey_by_id(survey_id)
    if survey is None:
        raise StorageError(f"Survey '{survey_id}' not found", 404)
    report = build_survey_report(survey, store.fetch_responses(survey_id))
    return report.model_dump_json(indent=2)


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(description="Manage InsightFlow surveys.")
    parser.add_argument("--action", choices=ACTIONS, required=True)
    parser.add_argument("--survey-id", help="Survey to activate, deactivate or report")
    parser.add_argument(
        "--audience",
        choices=[audience.value for audience in TargetAudience],
        help="Audience to set when activating (defaults to the current one)",
    )
    parser.add_argument(
        "--file", type=Path, help="JSON file to export to or import from"
    )
    return parser


# pylint: disable=too-many-return-statements
def main(argv: Optional[list[str]] = None, store: Optional[SurveyStore] = None) -> int:
    """Main entry point for managing surveys from the command line.

    Args:
        argv (Optional[list[str]]): Arguments to parse instead of sys.argv.
        store (Optional[SurveyStore]): Store to use instead of the document API.

    Returns:
        int: Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.action in ("activate", "deactivate", "report") and not args.survey_id:
        parser.error(f"--survey-id is required when --action {args.action}")
    if args.action in ("export", "import") and not args.file:
        parser.error(f"--file is required when --action {args.action}")

    if store is None:
        store = init_survey_store()

    try:
        if args.action == "list":
            for line in list_surveys(store):
                print(line)
            return 0

        if args.action == "export":
            export_surveys(store, args.file)
            return 0

        if args.action == "import":
            import_surveys(store, args.file)
            return 0

        if args.action == "report":
            print(survey_report(store, args.survey_id))
            return 0

        audience = TargetAudience(args.audience) if args.audience else None
        switched_off = set_survey_status(
            store, args.survey_id, args.action == "activate", audience
        )
        logger.info(
            f"survey:{args.survey_id} {args.action}d, "
            f"{switched_off} other surveys switched off"
        )
        return 0
    except (StorageError, OSError, ValueError) as err:
        logger.error(f"{args.action} failed: {err}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
