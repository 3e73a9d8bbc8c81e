"""Unit tests for the response traversal engine."""

import pytest

from models.survey import Survey, UserType
from utils import traversal_utils
from utils.traversal_utils import TraversalEngine, TraversalError

# pylint cannot differentiate the use of fixtures in the test functions
# pylint: disable=unused-argument, disable=redefined-outer-name


def walk_all_paths(survey: Survey) -> list[list[str]]:
    """Return every question path through a survey, trying each option in turn."""
    engine = TraversalEngine(survey)
    paths = []

    def _walk(state) -> None:
        question = engine.current_question(state)
        choices = [opt.id for opt in question.options] or [None]
        for option_id in choices:
            branch = state.model_copy(deep=True)
            if option_id is None:
                engine.submit_answer(branch, "answer")
            else:
                engine.answer_option(branch, option_id)
            if branch.complete:
                paths.append(branch.history)
            else:
                _walk(branch)

    _walk(engine.start(UserType.GENERAL))
    return paths


@pytest.mark.utils
class TestStart:
    """Unit tests for TraversalEngine.start."""

    def test_starts_on_first_question(self, branching_survey) -> None:
        """The initial state is the first question with nothing recorded."""
        state = TraversalEngine(branching_survey).start(UserType.EMPLOYEE)

        assert state.survey_id == branching_survey.id
        assert state.user_type == UserType.EMPLOYEE
        assert state.current_question_id == "Q1"
        assert state.answers == {}
        assert state.history == []
        assert state.complete is False

    def test_empty_survey_cannot_start(self) -> None:
        """A survey with no questions raises TraversalError."""
        with pytest.raises(TraversalError):
            TraversalEngine(Survey(id="empty")).start(UserType.GENERAL)


@pytest.mark.utils
class TestBranchingScenario:
    """Q1 (optA jumps to Q3, optB has no jump), Q2, Q3."""

    def test_option_without_jump_falls_through_to_q2(self, branching_survey) -> None:
        """optB has no jump, and Q2 is not a jump target, so Q2 is next."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)

        assert engine.answer_option(state, "optB") == "Q2"
        assert state.current_question_id == "Q2"

    def test_option_with_jump_goes_to_q3(self, branching_survey) -> None:
        """optA jumps directly to Q3."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)

        assert engine.answer_option(state, "optA") == "Q3"
        assert state.current_question_id == "Q3"

    def test_q2_path_skips_conditional_q3(self, branching_survey) -> None:
        """After Q2 the only remaining question is conditional, so the traversal ends."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)
        engine.answer_option(state, "optB")

        assert engine.submit_answer(state, "because") is None
        assert state.complete is True
        assert state.history == ["Q1", "Q2"]
        assert set(state.answers) == {"Q1", "Q2"}

    def test_q3_path_completes(self, branching_survey) -> None:
        """Answering the jump target at the end completes the traversal."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)
        engine.answer_option(state, "optA")

        assert engine.submit_answer(state, 4) is None
        assert state.complete is True
        assert state.current_question_id == "Q3"
        assert state.answers["Q3"].answer == 4  # noqa: PLR2004


@pytest.mark.utils
class TestSubmitAnswer:
    """Unit tests for TraversalEngine.submit_answer."""

    def test_records_answer_with_question_text(self, branching_survey) -> None:
        """The answer keeps a snapshot of the question text."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)
        engine.answer_option(state, "optB")

        answer = state.answers["Q1"]
        assert answer.answer == "optB"
        assert answer.question_text == "Pick one"

    def test_answering_again_replaces_answer(self, branching_survey) -> None:
        """A question has at most one answer."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)
        engine.answer_option(state, "optB")
        engine.go_back(state)
        engine.answer_option(state, "optA")

        assert len(state.answers) == 1
        assert state.answers["Q1"].answer == "optA"

    def test_linear_survey_completes_after_n_answers(self, linear_survey) -> None:
        """N questions without jumps complete after exactly N answers."""
        engine = TraversalEngine(linear_survey)
        state = engine.start(UserType.GENERAL)
        count = len(linear_survey.questions)

        for step in range(count):
            assert state.complete is False
            engine.submit_answer(state, f"answer {step}")

        assert state.complete is True
        assert len(state.history) == count

    def test_backward_jump(self) -> None:
        """An explicit jump wins even when it points earlier in the survey."""
        survey = Survey.from_document(
            {
                "id": "loop",
                "questions": [
                    {"id": "a", "type": "TEXT"},
                    {
                        "id": "b",
                        "options": [
                            {"id": "again", "nextQuestionId": "a"},
                            {"id": "done"},
                        ],
                    },
                    {"id": "c", "type": "TEXT"},
                ],
            }
        )
        engine = TraversalEngine(survey)
        state = engine.start(UserType.GENERAL)
        state.current_question_id = "b"

        assert engine.answer_option(state, "again") == "a"

    def test_forward_search_resumes_from_jump_target(self) -> None:
        """After a jump, the next default question follows the jump target."""
        survey = Survey.from_document(
            {
                "id": "resume",
                "questions": [
                    {"id": "q1", "options": [{"id": "go", "nextQuestionId": "q3"}]},
                    {"id": "q2", "type": "TEXT"},
                    {"id": "q3", "type": "TEXT"},
                    {"id": "q4", "type": "TEXT"},
                ],
            }
        )
        engine = TraversalEngine(survey)
        state = engine.start(UserType.GENERAL)

        engine.answer_option(state, "go")
        assert engine.submit_answer(state, "x") == "q4"

    def test_unknown_jump_target_is_ignored(
        self, branching_survey, patch_module_logger, log_capture
    ) -> None:
        """A jump to a missing question falls back to the forward search."""
        patch_module_logger(traversal_utils, log_capture)
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)

        assert engine.submit_answer(state, "optB", "Q99") == "Q2"
        assert log_capture.warnings

    @pytest.mark.parametrize("no_jump", ["", "null", "undefined", None, "  "])
    def test_no_jump_values_use_forward_search(self, branching_survey, no_jump) -> None:
        """Every spelling of "no jump" behaves the same."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)

        assert engine.submit_answer(state, "optB", no_jump) == "Q2"

    def test_submit_after_completion_raises(self, linear_survey) -> None:
        """A completed traversal accepts no more answers."""
        engine = TraversalEngine(linear_survey)
        state = engine.start(UserType.GENERAL)
        for _ in linear_survey.questions:
            engine.submit_answer(state, "x")

        with pytest.raises(TraversalError):
            engine.submit_answer(state, "x")

    def test_unknown_current_question_raises(self, branching_survey) -> None:
        """A state positioned on a missing question cannot continue."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)
        state.current_question_id = "gone"

        with pytest.raises(TraversalError):
            engine.submit_answer(state, "x")

    def test_unknown_option_raises(self, branching_survey) -> None:
        """Only options on the current question can be chosen."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)

        with pytest.raises(TraversalError):
            engine.answer_option(state, "optZ")


@pytest.mark.utils
class TestNoReEntry:
    """The forward search never lands on a conditional question."""

    def test_default_moves_never_enter_conditional_questions(self) -> None:
        """On every path, conditional questions are reached only by their jump."""
        survey = Survey.from_document(
            {
                "id": "nested",
                "questions": [
                    {
                        "id": "q1",
                        "options": [
                            {"id": "a", "nextQuestionId": "q1a"},
                            {"id": "b"},
                        ],
                    },
                    {"id": "q1a", "type": "TEXT"},
                    {
                        "id": "q2",
                        "options": [
                            {"id": "c", "nextQuestionId": "q2c"},
                            {"id": "d", "nextQuestionId": "q3"},
                            {"id": "e"},
                        ],
                    },
                    {"id": "q2c", "type": "TEXT"},
                    {"id": "q3", "type": "TEXT"},
                    {"id": "q4", "type": "TEXT"},
                ],
            }
        )
        engine = TraversalEngine(survey)
        jumps = {
            (question.id, option.next_question_id)
            for question in survey.questions
            for option in question.options
            if option.next_question_id
        }

        for path in walk_all_paths(survey):
            for previous, current in zip(path, path[1:]):
                if current in engine.conditional_ids:
                    assert (previous, current) in jumps, path

    def test_next_sequential_id_skips_conditional(self, branching_survey) -> None:
        """The forward search from Q2 finds nothing because Q3 is conditional."""
        engine = TraversalEngine(branching_survey)

        assert engine.next_sequential_id("Q1") == "Q2"
        assert engine.next_sequential_id("Q2") is None


@pytest.mark.utils
class TestGoBack:
    """Unit tests for TraversalEngine.go_back."""

    def test_empty_history_exits(self, branching_survey) -> None:
        """Going back from the first question signals leaving the survey."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)

        assert engine.go_back(state) is False
        assert state.current_question_id == "Q1"

    def test_restores_previous_question_and_keeps_answers(self, linear_survey) -> None:
        """Back pops one history entry and leaves recorded answers alone."""
        engine = TraversalEngine(linear_survey)
        state = engine.start(UserType.GENERAL)
        engine.submit_answer(state, "one")
        engine.submit_answer(state, "two")
        before = state.current_question_id

        assert engine.go_back(state) is True
        assert state.current_question_id == "L2"
        assert before == "L3"
        assert state.history == ["L1"]
        assert set(state.answers) == {"L1", "L2"}

    def test_back_from_completed_traversal_reopens_it(self, linear_survey) -> None:
        """Stepping back after completion returns to the last question."""
        engine = TraversalEngine(linear_survey)
        state = engine.start(UserType.GENERAL)
        for _ in linear_survey.questions:
            engine.submit_answer(state, "x")

        assert engine.go_back(state) is True
        assert state.complete is False
        assert state.current_question_id == "L4"


@pytest.mark.utils
class TestProgress:
    """Unit tests for TraversalEngine.progress."""

    def test_counts_history_against_question_count(self, linear_survey) -> None:
        """Progress is visited questions over total questions."""
        engine = TraversalEngine(linear_survey)
        state = engine.start(UserType.GENERAL)
        assert engine.progress(state) == 0

        engine.submit_answer(state, "x")
        assert engine.progress(state) == 25  # noqa: PLR2004

    def test_is_clamped_to_100(self, branching_survey) -> None:
        """Revisiting questions can make history longer than the survey."""
        engine = TraversalEngine(branching_survey)
        state = engine.start(UserType.GENERAL)
        state.history = ["Q1", "Q2", "Q1", "Q2", "Q1"]

        assert engine.progress(state) == 100  # noqa: PLR2004

    def test_empty_survey(self) -> None:
        """An empty survey reports no progress."""
        engine = TraversalEngine(Survey(id="empty"))
        state = traversal_utils.TraversalState(
            survey_id="empty", user_type=UserType.GENERAL, current_question_id=""
        )
        assert engine.progress(state) == 0
