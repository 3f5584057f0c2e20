"""
Terminal delivery for the valkompass questionnaire.

Components:
- visuals: rich renderables for the quiz, results and debate screens
- quiz_runner: async input loop driving a SessionOrchestrator
"""

from .quiz_runner import QuizRunner, handle_quiz_command

__all__ = ["QuizRunner", "handle_quiz_command"]
