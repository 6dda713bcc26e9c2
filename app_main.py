"""Application entry point for the QuizPortal service."""

from __future__ import annotations

from quiz_portal.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_portal.constants.quiz_constants import SEED_DEMO_DATA
from quiz_portal.core.quiz_manager import QuizManager
from quiz_portal.server.api_server import run_api_server
from quiz_portal.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, optionally seed demo quizzes, and serve the API."""
    logger = configure_logging()
    logger.info("Starting QuizPortal…")

    quiz_manager = QuizManager()
    if SEED_DEMO_DATA:
        seeded = quiz_manager.seed_demo_quizzes()
        logger.info("Seeded %d demo quiz(zes)", len(seeded))

    logger.info("API listening on http://%s:%d/", DEFAULT_HOST, DEFAULT_PORT)
    run_api_server(quiz_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
