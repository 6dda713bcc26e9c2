"""Static metadata describing QuizPortal."""

APP_NAME = "QuizPortal"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizPortal is a quiz-administration service: teachers author multiple-choice "
    "quizzes and share them with a short access code, students take them and get "
    "a percentage score."
)
