# app/models/quiz_section.py
from sqlalchemy import Column, ForeignKey, Integer, String, Text

from app.core.database import Base


class QuizSection(Base):
    __tablename__ = "quiz_sections"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<QuizSection(id={self.id}, quiz_id={self.quiz_id})>"


class QuizGroup(Base):
    """
    A fixed-order set of questions inside a section (e.g. one reading passage
    with its questions). Questions of a group are never shuffled.
    """

    __tablename__ = "quiz_groups"

    id = Column(Integer, primary_key=True, index=True)
    section_id = Column(
        Integer, ForeignKey("quiz_sections.id"), nullable=False, index=True
    )

    name = Column(String(255), nullable=False)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)  # Passage / instructions
    display_order = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<QuizGroup(id={self.id}, section_id={self.section_id})>"
