"""create quiz attempt tables

Revision ID: 3b7e1c9a4f20
Revises:
Create Date: 2026-10-19 10:12:44.318205

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "3b7e1c9a4f20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(JSONB(), "postgresql")


def _timestamps():
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "quizzes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("shuffle_questions", sa.Boolean(), nullable=False),
        sa.Column("shuffle_answers", sa.Boolean(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("available_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("available_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_attempts", sa.Integer(), nullable=True),
        sa.Column("show_score_immediately", sa.Boolean(), nullable=False),
        sa.Column("show_answers_after_submit", sa.Boolean(), nullable=False),
        sa.Column("passing_score", sa.Numeric(8, 2), nullable=True),
        sa.Column("total_possible_score", sa.Numeric(8, 2), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_quizzes_id", "quizzes", ["id"])
    op.create_index("ix_quizzes_status", "quizzes", ["status"])

    op.create_table(
        "quiz_sections",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
    )
    op.create_index("ix_quiz_sections_id", "quiz_sections", ["id"])
    op.create_index("ix_quiz_sections_quiz_id", "quiz_sections", ["quiz_id"])

    op.create_table(
        "quiz_groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "section_id", sa.Integer(), sa.ForeignKey("quiz_sections.id"), nullable=False
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
    )
    op.create_index("ix_quiz_groups_id", "quiz_groups", ["id"])
    op.create_index("ix_quiz_groups_section_id", "quiz_groups", ["section_id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column(
            "section_id", sa.Integer(), sa.ForeignKey("quiz_sections.id"), nullable=False
        ),
        sa.Column(
            "group_id", sa.Integer(), sa.ForeignKey("quiz_groups.id"), nullable=True
        ),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("stem_text", sa.Text(), nullable=False),
        sa.Column("points", sa.Numeric(6, 2), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("correct_answers", JSON_TYPE, nullable=True),
    )
    op.create_index("ix_questions_id", "questions", ["id"])
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"])
    op.create_index("ix_questions_section_id", "questions", ["section_id"])
    op.create_index("ix_questions_group_id", "questions", ["group_id"])

    op.create_table(
        "answer_options",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "question_id", sa.Integer(), sa.ForeignKey("questions.id"), nullable=False
        ),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
    )
    op.create_index("ix_answer_options_id", "answer_options", ["id"])
    op.create_index("ix_answer_options_question_id", "answer_options", ["question_id"])

    op.create_table(
        "quiz_attempts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("answers_json", JSON_TYPE, nullable=True),
        sa.Column("scores_json", JSON_TYPE, nullable=True),
        sa.Column("total_score", sa.Numeric(8, 2), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("time_spent_seconds", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id", "quiz_id", "attempt_number", name="uq_quiz_attempt_number"
        ),
    )
    op.create_index("ix_quiz_attempts_id", "quiz_attempts", ["id"])
    op.create_index("ix_quiz_attempts_quiz_id", "quiz_attempts", ["quiz_id"])
    op.create_index("ix_quiz_attempts_user_id", "quiz_attempts", ["user_id"])
    op.create_index("ix_quiz_attempts_status", "quiz_attempts", ["status"])


def downgrade() -> None:
    op.drop_table("quiz_attempts")
    op.drop_table("answer_options")
    op.drop_table("questions")
    op.drop_table("quiz_groups")
    op.drop_table("quiz_sections")
    op.drop_table("quizzes")
    op.drop_table("users")
