from quizbank.models.question import Question, Difficulty, QuestionType
from quizbank.models.test import Test
from quizbank.models.test_question import TestQuestion

__all__ = ["Question", "Difficulty", "QuestionType", "Test", "TestQuestion"]
