import pyperclip
import pytest

from cliforms.questions import (
    INT64_MAX,
    INT64_MIN,
    BooleanQuestion,
    CheckboxesQuestion,
    IntegerQuestion,
    MultipleChoiceQuestion,
    QuestionError,
    Requirement,
    TextQuestion,
)
from cliforms.results import CheckboxesResult, IntegerResult, TextResult

from conftest import BACKSPACE, DOWN, ENTER, SPACE, UP, codes


def _feed(question, *items):
    for code in codes(*items):
        question.handle_key(code)


def test_invalid_question_id_rejected():
    with pytest.raises(QuestionError) as excinfo:
        TextQuestion("Not Valid", "Title", character_limit=5)
    assert str(excinfo.value).startswith("TextQuestion: ")
    assert excinfo.value.question_id == "Not Valid"


def test_set_requirement_is_fluent():
    question = BooleanQuestion("q", "Q")
    assert question.set_requirement("other", True) is question
    assert question.requirement == Requirement("other", True)


# --- text ---------------------------------------------------------------


def test_text_typing_respects_limit_and_backspace():
    question = TextQuestion("name", "Name", character_limit=5)
    _feed(question, "hello world")
    assert question.get_input() == "hello"
    _feed(question, BACKSPACE, BACKSPACE)
    assert question.get_input() == "hel"
    _feed(question, 0x20AC, 7)
    assert question.get_input() == "hel"


def test_text_enter_on_blank_input_does_nothing():
    question = TextQuestion("name", "Name", character_limit=5)
    _feed(question, "  ", ENTER)
    assert not question.is_submitted()
    _feed(question, "x", ENTER)
    assert question.is_submitted()
    assert question.to_result() == TextResult("name", "  x")


def test_text_submit_validation():
    question = TextQuestion("name", "Name", character_limit=3)
    with pytest.raises(QuestionError, match="empty or blank"):
        question.submit("   ")
    with pytest.raises(QuestionError, match="character limit"):
        question.set_input("toolong")
    question.submit("abc")
    with pytest.raises(QuestionError, match="already submitted"):
        question.set_input("x")
    with pytest.raises(QuestionError, match="already submitted"):
        question.submit()


def test_text_default_limit_comes_from_settings(isolated_env, monkeypatch):
    from cliforms.config import get_settings

    monkeypatch.setenv("CLIFORMS_TEXT_LIMIT", "7")
    get_settings.cache_clear()
    assert TextQuestion("t", "T").character_limit == 7


def test_text_limit_must_be_positive():
    with pytest.raises(QuestionError):
        TextQuestion("t", "T", character_limit=0)


def test_text_paste_truncates_to_limit(monkeypatch):
    monkeypatch.setattr(pyperclip, "paste", lambda: "world!!!")
    question = TextQuestion("t", "T", character_limit=8)
    _feed(question, "hi", 22)
    assert question.get_input() == "hiworld!"


def test_text_paste_without_clipboard_is_ignored(monkeypatch):
    def broken():
        raise pyperclip.PyperclipException("no clipboard")

    monkeypatch.setattr(pyperclip, "paste", broken)
    question = TextQuestion("t", "T", character_limit=8)
    _feed(question, "hi", 22)
    assert question.get_input() == "hi"


def test_to_result_requires_submit():
    question = TextQuestion("t", "T", character_limit=8)
    with pytest.raises(QuestionError, match="not submitted"):
        question.to_result()


def test_reset_state():
    question = TextQuestion("t", "T", character_limit=8)
    question.set_input("abc")
    question.reset_state()
    assert question.get_input() == ""
    assert question.character_limit == 8
    question.submit("x")
    with pytest.raises(QuestionError):
        question.reset_state()


# --- integer ------------------------------------------------------------


def test_integer_typing_and_bounds():
    question = IntegerQuestion.up_to("n", "N", "", 100)
    assert (question.min_value, question.max_value) == (0, 100)
    _feed(question, "123", ENTER)
    assert not question.is_submitted()
    _feed(question, BACKSPACE, ENTER)
    assert question.is_submitted()
    assert question.to_result() == IntegerResult("n", 12)


def test_integer_minus_only_before_digits():
    question = IntegerQuestion("n", "N")
    _feed(question, "-5")
    assert question.get_input() == -5
    question.reset_state()
    _feed(question, "5-")
    assert question.get_input() == 5


def test_integer_backspace_clears_sign_at_zero():
    question = IntegerQuestion("n", "N")
    _feed(question, "-7", BACKSPACE)
    assert question.get_input() == 0
    _feed(question, BACKSPACE, "3")
    assert question.get_input() == 3


def test_integer_saturates_at_max():
    question = IntegerQuestion("n", "N")
    _feed(question, "9" * 25)
    assert question.get_input() == INT64_MAX
    question.reset_state()
    _feed(question, "-", "9" * 25)
    assert question.get_input() == -INT64_MAX


def test_integer_invalid_bounds():
    with pytest.raises(QuestionError, match="Invalid bounds"):
        IntegerQuestion("n", "N", "", 10, 5)
    with pytest.raises(QuestionError):
        IntegerQuestion("n", "N", "", INT64_MIN - 1, 0)


def test_integer_programmatic_submit():
    question = IntegerQuestion("n", "N", "", -5, 5)
    with pytest.raises(QuestionError, match="not in set bounds"):
        question.set_input(6)
    question.submit(-5)
    assert question.to_result().value == -5


def test_integer_default_zero_out_of_bounds_cannot_submit():
    question = IntegerQuestion("n", "N", "", 10, 20)
    with pytest.raises(QuestionError):
        question.submit()
    _feed(question, ENTER)
    assert not question.is_submitted()


# --- boolean ------------------------------------------------------------


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("", True),
        ("   ", True),
        ("Yes", True),
        ("ja", True),
        ("si", True),
        ("k", True),
        ("t", True),
        ("No", False),
        ("f", False),
        ("maybe", None),
        ("1", None),
    ],
)
def test_boolean_interpret(line, expected):
    assert BooleanQuestion("b", "B").interpret(line) is expected


def test_boolean_handle_line():
    question = BooleanQuestion("b", "B", default=False)
    assert question.handle_line("what") is False
    assert not question.is_submitted()
    assert question.handle_line("") is True
    assert question.to_result().value is False
    assert question.handle_line("y") is False


def test_boolean_handle_key():
    question = BooleanQuestion("b", "B", default=True)
    question.handle_key(ord("n"))
    assert question.is_submitted()
    assert question.get_input() is False

    other = BooleanQuestion("c", "C")
    other.handle_key(ENTER)
    assert other.get_input() is True


# --- multiple choice ----------------------------------------------------


def test_multiple_choice_cursor_clamps():
    question = MultipleChoiceQuestion("mc", "MC", "", ["a", "b", "c"])
    _feed(question, UP)
    assert question.cursor == 0
    _feed(question, DOWN, DOWN, DOWN, DOWN)
    assert question.cursor == 2
    _feed(question, UP, ENTER)
    assert question.to_result().value == "b"


def test_multiple_choice_select():
    question = MultipleChoiceQuestion("mc", "MC", "", ["a", "b", "c"])
    with pytest.raises(QuestionError, match="choice is not set"):
        question.get_input()
    question.select("c")
    assert (question.cursor, question.get_input()) == (2, "c")
    question.select(0)
    assert question.get_input() == "a"
    with pytest.raises(QuestionError, match="out of range"):
        question.select(3)
    with pytest.raises(QuestionError, match="don't contain"):
        question.select("z")
    with pytest.raises(QuestionError):
        question.select(True)


def test_multiple_choice_submit_requires_choice():
    question = MultipleChoiceQuestion("mc", "MC", "", ["a"])
    with pytest.raises(QuestionError, match="Cannot submit, choice is not set!"):
        question.submit()
    question.submit("a")
    with pytest.raises(QuestionError, match="already submitted"):
        question.down()


@pytest.mark.parametrize("choices", [[], ["a", "a"]])
def test_choice_lists_validated(choices):
    with pytest.raises(QuestionError):
        MultipleChoiceQuestion("mc", "MC", "", choices)
    with pytest.raises(QuestionError):
        CheckboxesQuestion("cb", "CB", "", choices)


# --- checkboxes ---------------------------------------------------------


def test_checkboxes_keys():
    question = CheckboxesQuestion("cb", "CB", "", ["a", "b", "c"])
    _feed(question, DOWN, SPACE, DOWN, SPACE, UP, SPACE, ENTER)
    assert question.to_result() == CheckboxesResult("cb", ("c",))


def test_checkboxes_keep_configuration_order():
    question = CheckboxesQuestion("cb", "CB", "", ["a", "b", "c"])
    question.toggle("c")
    question.toggle("a")
    assert question.get_input() == ["a", "c"]
    assert question.is_toggled("a")
    assert not question.is_toggled("missing")
    with pytest.raises(QuestionError, match="don't contain"):
        question.toggle("z")


def test_checkboxes_set_input_and_empty_submit():
    question = CheckboxesQuestion("cb", "CB", "", ["a", "b"])
    question.set_input(["b"])
    assert question.get_input() == ["b"]
    with pytest.raises(QuestionError, match="unknown choices"):
        question.set_input(["x"])
    question.submit([])
    assert question.to_result().value == []


# --- shared properties --------------------------------------------------


def test_integer_default_bounds_cover_int64():
    question = IntegerQuestion("n", "N")
    assert (question.min_value, question.max_value) == (INT64_MIN, INT64_MAX)
    question.submit(0)
    assert question.to_result().value == 0


def test_checkbox_double_toggle_restores_state():
    question = CheckboxesQuestion("cb", "CB", "", ["a", "b"])
    question.toggle("b")
    question.toggle("b")
    assert question.get_input() == []


@pytest.mark.parametrize(
    ("question", "answer"),
    [
        (TextQuestion("t", "T", character_limit=5), "abc"),
        (IntegerQuestion("n", "N"), 3),
        (BooleanQuestion("b", "B"), False),
        (MultipleChoiceQuestion("mc", "MC", "", ["a", "b"]), "b"),
        (CheckboxesQuestion("cb", "CB", "", ["a", "b"]), ["a"]),
    ],
)
def test_double_submit_fails_without_mutation(question, answer):
    question.submit(answer)
    before = question.to_result()
    with pytest.raises(QuestionError, match="already submitted"):
        question.submit()
    with pytest.raises(QuestionError, match="already submitted"):
        question.submit(answer)
    assert question.to_result() == before


def test_checkboxes_accept_single_label_string():
    question = CheckboxesQuestion("fruit", "Fruit", "", ["Apple", "Pear"])
    question.submit("Apple")
    assert question.to_result().value == ["Apple"]
    other = CheckboxesQuestion("fruit", "Fruit", "", ["Apple", "Pear"])
    with pytest.raises(QuestionError, match="unknown choices: \\['Plum'\\]"):
        other.set_input("Plum")
