"""
Test model - a named, timed collection of questions.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from quizbank.database import Base


class Test(Base):
    """
    SQLAlchemy model for the tests table.

    A test is created together with its initial question set in one
    transaction (see services.authoring). Its links die with it.
    """
    __tablename__ = "tests"
    # Keep pytest from collecting this model when it is imported in test modules
    __test__ = False

    id = Column(Integer, primary_key=True, autoincrement=True,
                doc="Store-assigned test identifier")
    name = Column(Text, nullable=False,
                  doc="Test name/title")
    description = Column(Text, nullable=False,
                         doc="What the test covers")
    duration_minutes = Column(Integer, nullable=False,
                              doc="Time allowed, in minutes")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        doc="Timestamp when test was created")

    question_links = relationship("TestQuestion", back_populates="test",
                                  cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_tests_duration_positive"),
    )

    def __repr__(self):
        return f"<Test(id={self.id}, name='{self.name}', duration={self.duration_minutes}m)>"
