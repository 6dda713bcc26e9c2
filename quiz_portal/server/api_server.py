"""FastAPI server that exposes teacher and student endpoints."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict
import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Response
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
import uvicorn

from quiz_portal.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quiz_portal.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    KEEP_ALIVE_TIMEOUT_SECONDS,
    USER_CLASS_HEADER,
    USER_EMAIL_HEADER,
    USER_ID_HEADER,
    USER_NAME_HEADER,
    USER_ROLE_HEADER,
    USER_ROLL_NUMBER_HEADER,
    USER_SECTION_HEADER,
    USER_TEACHER_ID_HEADER,
)
from quiz_portal.core.errors import (
    AuthorizationError,
    CollisionError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from quiz_portal.core.markdown_renderer import renderer
from quiz_portal.core.models import (
    Attempt,
    AttemptAnswer,
    Question,
    Quiz,
    QuizDraft,
    StudentProfile,
    TeacherProfile,
    UserIdentity,
    UserRole,
)
from quiz_portal.core.quiz_manager import QuizManager
from quiz_portal.core.services import quiz_analytics

logger = logging.getLogger(__name__)


class QuestionPayload(BaseModel):
    """Question content as authored by a teacher."""

    id: str | None = None
    text: str
    options: list[str]
    correct_answer: int


class QuizCreatePayload(BaseModel):
    title: str
    description: str = ""
    is_published: bool = False
    questions: list[QuestionPayload]


class QuizUpdatePayload(BaseModel):
    """Partial update; only fields that are sent are applied."""

    title: str | None = None
    description: str | None = None
    code: str | None = None
    is_published: bool | None = None
    questions: list[QuestionPayload] | None = None


class QuizImportPayload(BaseModel):
    title: str
    description: str = ""
    is_published: bool = False
    text: str


class StartAttemptPayload(BaseModel):
    resume: bool = False


class AnswerPayload(BaseModel):
    """Payload schema for a single recorded answer."""

    selected_option: int


class SubmittedAnswerPayload(BaseModel):
    question_id: str
    selected_option: int


class SubmitPayload(BaseModel):
    """Final submission; when ``answers`` is omitted the recorded answers are scored."""

    answers: list[SubmittedAnswerPayload] | None = None


def get_current_user(
    user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    role: str | None = Header(default=None, alias=USER_ROLE_HEADER),
    name: str | None = Header(default=None, alias=USER_NAME_HEADER),
    email: str | None = Header(default=None, alias=USER_EMAIL_HEADER),
    teacher_id: str | None = Header(default=None, alias=USER_TEACHER_ID_HEADER),
    roll_number: str | None = Header(default=None, alias=USER_ROLL_NUMBER_HEADER),
    class_name: str | None = Header(default=None, alias=USER_CLASS_HEADER),
    section: str | None = Header(default=None, alias=USER_SECTION_HEADER),
) -> UserIdentity:
    """Identity forwarded by the upstream identity provider."""
    if not user_id or not role:
        raise HTTPException(status_code=401, detail="Missing user identity.")
    try:
        user_role = UserRole(role.strip().lower())
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=f"Unknown role '{role}'.") from exc
    profile: TeacherProfile | StudentProfile
    if user_role is UserRole.TEACHER:
        profile = TeacherProfile(teacher_id=teacher_id or "")
    else:
        profile = StudentProfile(
            roll_number=roll_number or "",
            class_name=class_name or "",
            section=section or "",
        )
    return UserIdentity(id=user_id, email=email or "", name=name or user_id, profile=profile)


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except (CollisionError, InvalidStateError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AuthorizationError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except PersistenceError as exc:
        logger.error("Store failure: %s", exc)
        raise HTTPException(status_code=503, detail="The quiz store is unavailable, try again.") from exc


def _to_question(payload: QuestionPayload) -> Question:
    return Question(
        id=payload.id or "",
        text=payload.text,
        options=list(payload.options),
        correct_answer=payload.correct_answer,
    )


def _serialize_quiz(quiz: Quiz, include_answers: bool) -> dict[str, object]:
    questions = []
    for number, question in enumerate(quiz.questions, start=1):
        item: dict[str, object] = {
            "id": question.id,
            "number": number,
            "text": question.text,
            "text_html": renderer.render_fragment(question.text),
            "options": list(question.options),
            "options_html": [renderer.render_inline(option) for option in question.options],
        }
        if include_answers:
            item["correct_answer"] = question.correct_answer
        questions.append(item)
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "created_by": quiz.created_by,
        "created_at": quiz.created_at.isoformat(),
        "code": quiz.code,
        "is_published": quiz.is_published,
        "question_count": len(quiz.questions),
        "questions": questions,
    }


def _serialize_attempt(attempt: Attempt, quiz: Quiz | None = None) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": attempt.id,
        "quiz_id": attempt.quiz_id,
        "student_id": attempt.student_id,
        "student_name": attempt.student_name,
        "started_at": attempt.started_at.isoformat(),
        "completed_at": attempt.completed_at.isoformat() if attempt.completed_at else None,
        "answers": [asdict(answer) for answer in attempt.answers],
        "score": attempt.score,
    }
    if quiz is not None:
        payload["progress_percent"] = quiz_analytics.progress_percent(attempt, quiz)
        payload["unanswered_question_ids"] = quiz_analytics.unanswered_question_ids(attempt, quiz)
        if attempt.score is not None:
            payload["performance"] = quiz_analytics.performance_label(attempt.score)
    return payload


def _get_quiz_manager_dependency(quiz_manager: QuizManager) -> Callable[[], QuizManager]:
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/me")
    def who_am_i(user: UserIdentity = Depends(get_current_user)) -> dict[str, object]:
        return {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "role": user.role.value,
            "profile": asdict(user.profile),
        }

    # --- Teacher endpoints ---

    @app.post("/quizzes", status_code=201)
    def create_quiz(
        payload: QuizCreatePayload,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        draft = QuizDraft(
            title=payload.title,
            description=payload.description,
            is_published=payload.is_published,
            questions=[_to_question(question) for question in payload.questions],
        )
        with _translate_errors():
            quiz = manager.create_quiz(user, draft)
        return _serialize_quiz(quiz, include_answers=True)

    @app.post("/quizzes/import", status_code=201)
    def import_quiz(
        payload: QuizImportPayload,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            quiz = manager.import_quiz(
                user,
                title=payload.title,
                text=payload.text,
                description=payload.description,
                is_published=payload.is_published,
            )
        return _serialize_quiz(quiz, include_answers=True)

    @app.get("/quizzes/mine")
    def list_my_quizzes(
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        with _translate_errors():
            quizzes = manager.list_my_quizzes(user)
        return [_serialize_quiz(quiz, include_answers=True) for quiz in quizzes]

    @app.get("/quizzes/analytics")
    def quiz_analytics_overview(
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        with _translate_errors():
            summaries = manager.owner_summaries(user)
        return [asdict(summary) for summary in summaries]

    @app.get("/quizzes/published")
    def list_published_quizzes(
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [
            _serialize_quiz(quiz, include_answers=quiz.created_by == user.id)
            for quiz in manager.list_published_quizzes()
        ]

    @app.get("/quizzes/code/{code}")
    def find_quiz_by_code(
        code: str,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        quiz = manager.find_quiz_by_code(code)
        if quiz is None:
            raise HTTPException(status_code=404, detail="No active quiz found with this code.")
        return _serialize_quiz(quiz, include_answers=quiz.created_by == user.id)

    @app.get("/quizzes/{quiz_id}")
    def get_quiz(
        quiz_id: str,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            quiz = manager.get_quiz(quiz_id)
        is_owner = quiz.created_by == user.id
        if not quiz.is_published and not is_owner:
            raise HTTPException(status_code=404, detail=f"Quiz '{quiz_id}' does not exist.")
        return _serialize_quiz(quiz, include_answers=is_owner)

    @app.patch("/quizzes/{quiz_id}")
    def update_quiz(
        quiz_id: str,
        payload: QuizUpdatePayload,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        fields: dict[str, object] = {
            name: value
            for name, value in payload.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if payload.questions is not None:
            fields["questions"] = [_to_question(question) for question in payload.questions]
        with _translate_errors():
            quiz = manager.update_quiz(user, quiz_id, **fields)
        return _serialize_quiz(quiz, include_answers=True)

    @app.delete("/quizzes/{quiz_id}", status_code=204)
    def delete_quiz(
        quiz_id: str,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> Response:
        with _translate_errors():
            manager.delete_quiz(user, quiz_id)
        return Response(status_code=204)

    @app.get("/quizzes/{quiz_id}/export", response_class=PlainTextResponse)
    def export_quiz(
        quiz_id: str,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> str:
        with _translate_errors():
            return manager.export_quiz(user, quiz_id)

    @app.get("/quizzes/{quiz_id}/results")
    def quiz_results(
        quiz_id: str,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            results = manager.quiz_results(user, quiz_id)
        return {
            "quiz": _serialize_quiz(results["quiz"], include_answers=True),
            "summary": asdict(results["summary"]),
            "distribution": [asdict(bucket) for bucket in results["distribution"]],
            "questions": [asdict(stats) for stats in results["questions"]],
            "attempts": [_serialize_attempt(attempt) for attempt in results["attempts"]],
        }

    @app.get("/quizzes/{quiz_id}/attempts")
    def list_quiz_attempts(
        quiz_id: str,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            attempts = manager.list_quiz_attempts(user, quiz_id)
        return {
            "in_progress": [
                _serialize_attempt(attempt)
                for attempt in quiz_analytics.in_progress_attempts(attempts)
            ],
            "completed": [
                _serialize_attempt(attempt)
                for attempt in quiz_analytics.completed_attempts(attempts)
            ],
        }

    # --- Student endpoints ---

    @app.post("/quizzes/{quiz_id}/attempts", status_code=201)
    def start_attempt(
        quiz_id: str,
        payload: StartAttemptPayload | None = None,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        resume = payload.resume if payload is not None else False
        with _translate_errors():
            attempt = manager.start_attempt(user, quiz_id, resume=resume)
            quiz = manager.get_quiz(quiz_id)
        return _serialize_attempt(attempt, quiz)

    @app.get("/attempts/mine")
    def list_my_attempts(
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        attempts = manager.list_my_attempts(user)
        return {
            "in_progress": [
                _serialize_attempt(attempt)
                for attempt in quiz_analytics.in_progress_attempts(attempts)
            ],
            "completed": [
                _serialize_attempt(attempt)
                for attempt in quiz_analytics.completed_attempts(attempts)
            ],
        }

    @app.get("/attempts/{attempt_id}")
    def get_attempt(
        attempt_id: str,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            attempt, quiz = manager.get_attempt(user, attempt_id)
        return _serialize_attempt(attempt, quiz)

    @app.put("/attempts/{attempt_id}/answers/{question_id}")
    def record_answer(
        attempt_id: str,
        question_id: str,
        payload: AnswerPayload,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            attempt = manager.record_answer(user, attempt_id, question_id, payload.selected_option)
            _, quiz = manager.get_attempt(user, attempt_id)
        return _serialize_attempt(attempt, quiz)

    @app.post("/attempts/{attempt_id}/submit")
    def submit_attempt(
        attempt_id: str,
        payload: SubmitPayload,
        user: UserIdentity = Depends(get_current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        answers = None
        if payload.answers is not None:
            answers = [
                AttemptAnswer(question_id=item.question_id, selected_option=item.selected_option)
                for item in payload.answers
            ]
        with _translate_errors():
            attempt = manager.submit_attempt(user, attempt_id, answers)
            _, quiz = manager.get_attempt(user, attempt_id)
        return _serialize_attempt(attempt, quiz)

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API with uvicorn in the foreground."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_level="info",
        timeout_keep_alive=KEEP_ALIVE_TIMEOUT_SECONDS,
    )
    uvicorn.Server(config).run()
