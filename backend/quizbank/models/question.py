"""
Question model - a single quiz item in the question bank.

Each question carries its prompt, an optional code snippet, an explanation,
an options mapping stored as JSON, and the correct answers and topics as
string arrays.
"""

import enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, DateTime, JSON, Index
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import relationship
from quizbank.database import Base

# JSONB / text[] on PostgreSQL, plain JSON everywhere else
OptionsType = JSON().with_variant(postgresql.JSONB(), "postgresql")
StringArray = JSON().with_variant(postgresql.ARRAY(Text()), "postgresql")


class Difficulty(str, enum.Enum):
    EASY = "Easy"
    MODERATE = "Moderate"
    HARD = "Hard"


class QuestionType(str, enum.Enum):
    MCQ = "MCQ"
    MSQ = "MSQ"
    FILL_IN_BLANK = "Fill in the blank"


class Question(Base):
    """
    SQLAlchemy model for the questions table.

    Every question belongs to exactly one language and one difficulty tier.
    Updates overwrite in place; there is no versioning.
    """
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True,
                doc="Store-assigned question identifier")
    question_text = Column(Text, nullable=False,
                           doc="The question prompt")
    code_snippet = Column(Text, nullable=True,
                          doc="Optional code shown with the prompt")
    explanation = Column(Text, nullable=False,
                         doc="Why the correct answers are correct")
    options = Column(OptionsType, nullable=False, default=dict,
                     doc="Option key -> option text, e.g. {'a': '...', 'b': '...'}")
    correct_answers = Column(StringArray, nullable=False, default=list,
                             doc="Option keys (or literal answers for fill-in-the-blank)")
    topics = Column(StringArray, nullable=False, default=list,
                    doc="Topic tags")
    difficulty = Column(Text, nullable=False,
                        doc="Easy | Moderate | Hard")
    question_type = Column(Text, nullable=False,
                           doc="MCQ | MSQ | Fill in the blank")
    language = Column(Text, nullable=False,
                      doc="Programming language tag, e.g. Python")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        doc="Timestamp when the question was created")

    test_links = relationship("TestQuestion", back_populates="question", passive_deletes=True)

    __table_args__ = (
        Index("ix_questions_language_difficulty", "language", "difficulty"),
    )

    def __repr__(self):
        return f"<Question(id={self.id}, language='{self.language}', difficulty='{self.difficulty}')>"
