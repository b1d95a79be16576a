"""initial schema

Revision ID: 3b1e9c2d7a40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1e9c2d7a40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True, unique=True),
        sa.Column("hourly_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.CheckConstraint(
            "role IN ('teacher', 'inspector', 'founder', 'sg', 'admin')", name="ck_users_role"
        ),
        sa.CheckConstraint("hourly_rate >= 0", name="ck_users_hourly_rate"),
    )

    op.create_table(
        "academic_years",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=9), nullable=False, unique=True),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="inactive"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'archived')", name="ck_academic_years_status"
        ),
    )

    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
    )

    op.create_table(
        "levels",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False, unique=True),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.CheckConstraint(
            "category IN ('maternelle', 'primaire', 'college', 'lycee')",
            name="ck_levels_category",
        ),
    )

    op.create_table(
        "classes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("level_id", sa.Integer(), sa.ForeignKey("levels.id"), nullable=False),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("floor", sa.String(length=50), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("interactive_board", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("whiteboard", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("projector", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("camera", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("delegate", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("name", "level_id", "academic_year", name="uq_classes_name_level_year"),
        sa.CheckConstraint("capacity BETWEEN 1 AND 100", name="ck_classes_capacity"),
    )
    op.create_index("ix_classes_academic_year", "classes", ["academic_year"])

    op.create_table(
        "chapters",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("subject_id", sa.Integer(), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("level_id", sa.Integer(), sa.ForeignKey("levels.id"), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("trimester", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("trimester BETWEEN 1 AND 3", name="ck_chapters_trimester"),
    )

    op.create_table(
        "chapter_elements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "chapter_id",
            sa.Integer(),
            sa.ForeignKey("chapters.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "estimated_duration_minutes", sa.Integer(), nullable=False, server_default="55"
        ),
    )

    op.create_table(
        "lessons",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("objectives", sa.Text(), nullable=True),
        sa.Column("chapter_id", sa.Integer(), sa.ForeignKey("chapters.id"), nullable=False),
        sa.Column("planned_date", sa.Date(), nullable=True),
        sa.Column("planned_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.CheckConstraint("planned_duration_minutes > 0", name="ck_lessons_duration"),
    )
    op.create_index("ix_lessons_academic_year", "lessons", ["academic_year"])

    op.create_table(
        "teacher_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "teacher_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("class_id", sa.Integer(), sa.ForeignKey("classes.id"), nullable=False),
        sa.Column("subject_id", sa.Integer(), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint(
            "teacher_id", "class_id", "subject_id", "academic_year", name="uq_teacher_assignments"
        ),
    )

    op.create_table(
        "inspector_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "inspector_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subject_id", sa.Integer(), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint(
            "inspector_id", "subject_id", "academic_year", name="uq_inspector_assignments"
        ),
    )

    op.create_table(
        "sg_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "sg_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("cycle", sa.String(length=20), nullable=False),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("sg_id", "cycle", "academic_year", name="uq_sg_assignments"),
    )

    op.create_table(
        "lesson_progressions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("lesson_id", sa.Integer(), sa.ForeignKey("lessons.id"), nullable=False),
        sa.Column("class_id", sa.Integer(), sa.ForeignKey("classes.id"), nullable=False),
        sa.Column(
            "teacher_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="planned"),
        sa.Column("actual_date", sa.Date(), nullable=True),
        sa.Column("actual_duration_minutes", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("session_type", sa.String(length=10), nullable=False, server_default="lesson"),
        sa.Column(
            "chapter_element_ids",
            postgresql.ARRAY(sa.Integer()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "validated_by",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint(
            "lesson_id", "class_id", "teacher_id", name="uq_lesson_progressions_key"
        ),
        sa.CheckConstraint(
            "status IN ('planned', 'completed', 'validated')",
            name="ck_lesson_progressions_status",
        ),
        sa.CheckConstraint(
            "session_type IN ('lesson', 'exercises', 'control', 'revision')",
            name="ck_lesson_progressions_session_type",
        ),
    )

    op.create_table(
        "anomaly_reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "teacher_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("recipients", postgresql.ARRAY(sa.String()), nullable=False),
        sa.Column("lesson_id", sa.Integer(), sa.ForeignKey("lessons.id"), nullable=True),
        sa.Column("class_id", sa.Integer(), sa.ForeignKey("classes.id"), nullable=True),
        sa.Column("subject_id", sa.Integer(), sa.ForeignKey("subjects.id"), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="open"),
        sa.Column("priority", sa.String(length=10), nullable=False, server_default="normal"),
        sa.Column(
            "reviewed_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True
        ),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "sg_reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "sg_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "teacher_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("class_id", sa.Integer(), sa.ForeignKey("classes.id"), nullable=False),
        sa.Column(
            "lesson_progression_id",
            sa.Integer(),
            sa.ForeignKey("lesson_progressions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("schedule_validated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("actual_start_time", sa.String(length=5), nullable=True),
        sa.Column("actual_end_time", sa.String(length=5), nullable=True),
        sa.Column("teacher_present", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("teacher_late_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("teacher_rating", sa.Integer(), nullable=True),
        sa.Column("teacher_appreciation", sa.Text(), nullable=True),
        sa.Column("incidents", sa.Text(), nullable=True),
        sa.Column("observations", sa.Text(), nullable=True),
        sa.Column("students_present", sa.Integer(), nullable=True),
        sa.Column("students_total", sa.Integer(), nullable=True),
        sa.Column("session_validated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("validation_notes", sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("teacher_rating BETWEEN 1 AND 5", name="ck_sg_reports_rating"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("priority", sa.String(length=10), nullable=False, server_default="normal"),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False, server_default="{}"),
        _created_at(),
    )


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("sg_reports")
    op.drop_table("anomaly_reports")
    op.drop_table("lesson_progressions")
    op.drop_table("sg_assignments")
    op.drop_table("inspector_assignments")
    op.drop_table("teacher_assignments")
    op.drop_index("ix_lessons_academic_year", table_name="lessons")
    op.drop_table("lessons")
    op.drop_table("chapter_elements")
    op.drop_table("chapters")
    op.drop_index("ix_classes_academic_year", table_name="classes")
    op.drop_table("classes")
    op.drop_table("levels")
    op.drop_table("subjects")
    op.drop_table("academic_years")
    op.drop_table("users")
