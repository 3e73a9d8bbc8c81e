"""Tests for the survey management command line script."""

import json

import pytest

from scripts import manage_surveys
from scripts.manage_surveys import main
from utils.store_utils import InMemorySurveyStore

# pylint cannot differentiate the use of fixtures in the test functions
# pylint: disable=unused-argument, disable=redefined-outer-name


@pytest.mark.utils
def test_list(store, capsys) -> None:
    """Each survey is printed on its own line, newest first."""
    assert main(["--action", "list"], store=store) == 0

    lines = capsys.readouterr().out.splitlines()
    assert [line.split("\t")[0] for line in lines] == [
        "survey_typed",
        "survey_branching",
        "survey_linear",
    ]
    assert lines[1].split("\t")[1:3] == ["active", "GENERAL"]


@pytest.mark.utils
def test_export_then_import(store, tmp_path) -> None:
    """Exported surveys can be imported into another store."""
    export_file = tmp_path / "surveys.json"
    assert main(["--action", "export", "--file", str(export_file)], store=store) == 0

    documents = json.loads(export_file.read_text(encoding="utf-8"))
    assert len(documents) == 3  # noqa: PLR2004

    target = InMemorySurveyStore()
    assert main(["--action", "import", "--file", str(export_file)], store=target) == 0
    assert target.fetch_all_surveys() == store.fetch_all_surveys()


@pytest.mark.utils
def test_import_skips_broken_surveys(tmp_path, patch_module_logger, log_capture):
    """Surveys with duplicate question ids are not imported."""
    patch_module_logger(manage_surveys, log_capture)
    import_file = tmp_path / "surveys.json"
    import_file.write_text(
        json.dumps(
            [
                {"id": "ok", "questions": [{"id": "a", "text": "A"}]},
                {"id": "broken", "questions": [{"id": "a"}, {"id": "a"}]},
            ]
        ),
        encoding="utf-8",
    )
    target = InMemorySurveyStore()

    assert manage_surveys.import_surveys(target, import_file) == 1
    assert [s.id for s in target.fetch_all_surveys()] == ["ok"]
    assert any("broken" in message for message in log_capture.errors)


@pytest.mark.utils
def test_import_missing_file(store, tmp_path) -> None:
    """A missing import file fails with exit code 1."""
    missing = tmp_path / "missing.json"

    assert main(["--action", "import", "--file", str(missing)], store=store) == 1


@pytest.mark.utils
def test_activate_switches_off_overlapping(store) -> None:
    """Activating for ALL switches every other survey off."""
    assert (
        main(
            ["--action", "activate", "--survey-id", "survey_linear", "--audience", "ALL"],
            store=store,
        )
        == 0
    )

    active = [s.id for s in store.fetch_all_surveys() if s.is_active]
    assert active == ["survey_linear"]


@pytest.mark.utils
def test_deactivate_keeps_audience(store) -> None:
    """Deactivating without an audience keeps the current one."""
    assert (
        main(["--action", "deactivate", "--survey-id", "survey_typed"], store=store)
        == 0
    )

    survey = store.fetch_survey_by_id("survey_typed")
    assert survey.is_active is False
    assert survey.target_audience.value == "EMPLOYEE"


@pytest.mark.utils
def test_unknown_survey(store) -> None:
    """Acting on an unknown survey fails with exit code 1."""
    assert main(["--action", "activate", "--survey-id", "missing"], store=store) == 1


@pytest.mark.utils
def test_report(store, survey_responses, capsys) -> None:
    """The report is printed as JSON."""
    for survey_response in survey_responses:
        store.insert_response(survey_response)

    assert (
        main(["--action", "report", "--survey-id", "survey_branching"], store=store)
        == 0
    )

    report = json.loads(capsys.readouterr().out)
    assert report["total_responses"] == 3  # noqa: PLR2004


@pytest.mark.utils
def test_survey_id_required(store) -> None:
    """Actions on one survey need --survey-id."""
    with pytest.raises(SystemExit):
        main(["--action", "report"], store=store)
