# tests/test_validate.py
"""
Tests for validate.py - structural question rules
"""
import pytest

from medici.errors import RULE_CORRECT_COUNT, RULE_OPTION_COUNT, ValidationError
from medici.validate import validate_course, validate_question


class TestValidateQuestion:

    def test_valid_question(self, make_question):
        validate_question(make_question(1))

    @pytest.mark.parametrize("count", [0, 1, 6])
    def test_option_count_out_of_range(self, make_question, make_option, count):
        options = [make_option(i, f"opt {i}", correct=(i == 0)) for i in range(count)]

        with pytest.raises(ValidationError) as exc_info:
            validate_question(make_question(1, options=options))

        assert exc_info.value.rule == RULE_OPTION_COUNT
        assert exc_info.value.question_id == make_question(1).id

    @pytest.mark.parametrize("count", [2, 5])
    def test_option_count_bounds_accepted(self, make_question, make_option, count):
        options = [make_option(i, f"opt {i}", correct=(i == 0)) for i in range(count)]
        validate_question(make_question(1, options=options))

    def test_no_correct_option(self, make_question, make_option):
        options = [make_option(1, "a"), make_option(2, "b")]

        with pytest.raises(ValidationError) as exc_info:
            validate_question(make_question(1, options=options))

        assert exc_info.value.rule == RULE_CORRECT_COUNT

    def test_two_correct_options(self, make_question, make_option):
        options = [make_option(1, "a", correct=True), make_option(2, "b", correct=True)]

        with pytest.raises(ValidationError) as exc_info:
            validate_question(make_question(1, options=options))

        assert exc_info.value.rule == RULE_CORRECT_COUNT
        assert "2 correct options" in exc_info.value.message


class TestValidateCourse:

    def test_first_failure_reported_with_course(self, make_course, make_question, make_option):
        bad = make_question(2, options=[make_option(1, "a", correct=True)])
        course = make_course("c1", questions=[make_question(1), bad])

        with pytest.raises(ValidationError) as exc_info:
            validate_course(course)

        assert exc_info.value.question_id == bad.id
        assert exc_info.value.context["course"] == "c1"
