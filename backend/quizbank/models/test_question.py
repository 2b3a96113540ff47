"""
TestQuestion model - the many-to-many junction between tests and questions.

The (test_id, question_id) pair is the primary key, so a question appears
in a test at most once. Rows cascade away with either parent.
"""

from sqlalchemy import Column, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship
from quizbank.database import Base


class TestQuestion(Base):
    """SQLAlchemy model for the test_questions junction table."""
    __tablename__ = "test_questions"
    __test__ = False

    test_id = Column(Integer, ForeignKey("tests.id", ondelete="CASCADE"),
                     primary_key=True, doc="Owning test")
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"),
                         primary_key=True, doc="Linked question")

    test = relationship("Test", back_populates="question_links")
    question = relationship("Question", back_populates="test_links")

    __table_args__ = (
        Index("ix_test_questions_question_id", "question_id"),
    )

    def __repr__(self):
        return f"<TestQuestion(test={self.test_id}, question={self.question_id})>"
