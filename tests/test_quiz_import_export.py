import pytest

from quiz_portal.core.models import Question
from quiz_portal.core.quiz_exporter import serialize_questions
from quiz_portal.core.quiz_importer import QuizImportError, parse_quiz_text

SAMPLE = """
Q: What is 2 + 2?
A: 3
B: 4
C: 5
D: 6
CORRECT: b

---

Q: Is the sky blue?
It usually is.
A: Yes
B: No
CORRECT: A
"""


def test_parse_quiz_text():
    imported = parse_quiz_text(SAMPLE)

    first, second = imported.questions
    assert first.text == "What is 2 + 2?"
    assert first.options == ["3", "4", "5", "6"]
    assert first.correct_answer == 1
    assert second.text == "Is the sky blue?\nIt usually is."
    assert second.options == ["Yes", "No"]
    assert second.correct_answer == 0
    assert [first.id, second.id] == ["q1", "q2"]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "A: 1\nB: 2\nCORRECT: A",
        "Q: Only one option\nA: 1\nCORRECT: A",
        "Q: Gap\nA: 1\nC: 3\nCORRECT: A",
        "Q: No key\nA: 1\nB: 2",
        "Q: Bad key\nA: 1\nB: 2\nCORRECT: C",
        "stray text\nQ: x\nA: 1\nB: 2\nCORRECT: A",
        "Q: First\nA: 1\nB: 2\nCORRECT: A\nQ: Second\nA: 1\nB: 2\nCORRECT: B",
        "Q: Twice\nA: 1\nB: 2\nA: 3\nCORRECT: A",
    ],
)
def test_parse_errors(text):
    with pytest.raises(QuizImportError):
        parse_quiz_text(text)


def test_export_then_import_preserves_questions():
    questions = [
        Question(id="q1", text="Pick one", options=["red", "green", "blue"], correct_answer=2),
        Question(id="q2", text="Two lines\nof text", options=["a", "b\nsecond line"], correct_answer=0),
    ]
    assert parse_quiz_text(serialize_questions(questions)).questions == questions


def test_export_eight_options():
    question = Question(id="q1", text="Letters", options=list("12345678"), correct_answer=7)
    exported = serialize_questions([question])

    assert "H: 8\nCORRECT: H" in exported
    assert parse_quiz_text(exported).questions == [question]


def test_export_more_than_eight_options_fails():
    question = Question(id="q1", text="Too many", options=[str(n) for n in range(9)], correct_answer=0)
    with pytest.raises(QuizImportError):
        serialize_questions([question])


@pytest.mark.parametrize(
    "question",
    [
        Question(id="q1", text="Para one\n\nPara two", options=["a", "b"], correct_answer=0),
        Question(id="q1", text="Which is right?\nB: trick", options=["a", "b"], correct_answer=0),
        Question(id="q1", text="Read this\nCORRECT: A", options=["a", "b"], correct_answer=0),
        Question(id="q1", text="Split\n---\nhere", options=["a", "b"], correct_answer=0),
        Question(id="q1", text="Fine", options=["a\n\nb", "c"], correct_answer=0),
        Question(id="q1", text="Fine", options=["a\nq: again", "c"], correct_answer=0),
    ],
)
def test_export_rejects_text_that_would_read_back_differently(question):
    with pytest.raises(QuizImportError):
        serialize_questions([question])


def test_export_empty_quiz_fails():
    with pytest.raises(QuizImportError):
        serialize_questions([])
