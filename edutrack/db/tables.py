"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in edutrack/models/; repos
convert between rows and dataclasses. Academic years are referenced by name
("2024-2025") rather than by id, the same way the domain models carry them.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from edutrack.db.engine import Base

# Postgres arrays; JSON lists on SQLite so the repositories run in tests.
INT_LIST = ARRAY(Integer).with_variant(JSON(), "sqlite")
STR_LIST = ARRAY(String).with_variant(JSON(), "sqlite")

# --- Identity ---


class UserRow(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('teacher', 'inspector', 'founder', 'sg', 'admin')",
            name="ck_users_role",
        ),
        CheckConstraint("hourly_rate >= 0", name="ck_users_hourly_rate"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), unique=True, nullable=True)
    hourly_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# --- Curriculum ---


class AcademicYearRow(Base):
    __tablename__ = "academic_years"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'archived')", name="ck_academic_years_status"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(9), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="inactive")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)


class SubjectRow(Base):
    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")


class LevelRow(Base):
    __tablename__ = "levels"
    __table_args__ = (
        CheckConstraint(
            "category IN ('maternelle', 'primaire', 'college', 'lycee')",
            name="ck_levels_category",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)


class ClassRow(Base):
    __tablename__ = "classes"
    __table_args__ = (
        UniqueConstraint("name", "level_id", "academic_year", name="uq_classes_name_level_year"),
        CheckConstraint("capacity BETWEEN 1 AND 100", name="ck_classes_capacity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    level_id: Mapped[int] = mapped_column(ForeignKey("levels.id"), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False, index=True)
    floor: Mapped[str | None] = mapped_column(String(50), nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    interactive_board: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    whiteboard: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    projector: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    camera: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    delegate: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ChapterRow(Base):
    __tablename__ = "chapters"
    __table_args__ = (
        CheckConstraint("trimester BETWEEN 1 AND 3", name="ck_chapters_trimester"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id"), nullable=False)
    level_id: Mapped[int] = mapped_column(ForeignKey("levels.id"), nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    trimester: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class ChapterElementRow(Base):
    __tablename__ = "chapter_elements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    chapter_id: Mapped[int] = mapped_column(
        ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    estimated_duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=55
    )


class LessonRow(Base):
    __tablename__ = "lessons"
    __table_args__ = (
        CheckConstraint("planned_duration_minutes > 0", name="ck_lessons_duration"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    objectives: Mapped[str | None] = mapped_column(Text, nullable=True)
    chapter_id: Mapped[int] = mapped_column(ForeignKey("chapters.id"), nullable=False)
    planned_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    planned_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# --- Assignments (scoped by academic year name) ---


class TeacherAssignmentRow(Base):
    __tablename__ = "teacher_assignments"
    __table_args__ = (
        UniqueConstraint(
            "teacher_id",
            "class_id",
            "subject_id",
            "academic_year",
            name="uq_teacher_assignments",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    teacher_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id"), nullable=False)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id"), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class InspectorAssignmentRow(Base):
    __tablename__ = "inspector_assignments"
    __table_args__ = (
        UniqueConstraint(
            "inspector_id", "subject_id", "academic_year", name="uq_inspector_assignments"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    inspector_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id"), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class SgAssignmentRow(Base):
    __tablename__ = "sg_assignments"
    __table_args__ = (
        UniqueConstraint("sg_id", "cycle", "academic_year", name="uq_sg_assignments"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sg_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    cycle: Mapped[str] = mapped_column(String(20), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


# --- Progression ---


class LessonProgressionRow(Base):
    __tablename__ = "lesson_progressions"
    __table_args__ = (
        # One row per (lesson, class, teacher); mark_completed upserts on it.
        UniqueConstraint(
            "lesson_id", "class_id", "teacher_id", name="uq_lesson_progressions_key"
        ),
        CheckConstraint(
            "status IN ('planned', 'completed', 'validated')",
            name="ck_lesson_progressions_status",
        ),
        CheckConstraint(
            "session_type IN ('lesson', 'exercises', 'control', 'revision')",
            name="ck_lesson_progressions_session_type",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lesson_id: Mapped[int] = mapped_column(ForeignKey("lessons.id"), nullable=False)
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id"), nullable=False)
    teacher_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="planned")
    actual_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    session_type: Mapped[str] = mapped_column(String(10), nullable=False, default="lesson")
    chapter_element_ids: Mapped[list[int]] = mapped_column(
        INT_LIST, nullable=False, default=[]
    )
    validated_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    validated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# --- Reports, notifications and audit ---


class AnomalyReportRow(Base):
    __tablename__ = "anomaly_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    teacher_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    recipients: Mapped[list[str]] = mapped_column(STR_LIST, nullable=False)
    lesson_id: Mapped[int | None] = mapped_column(ForeignKey("lessons.id"), nullable=True)
    class_id: Mapped[int | None] = mapped_column(ForeignKey("classes.id"), nullable=True)
    subject_id: Mapped[int | None] = mapped_column(ForeignKey("subjects.id"), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="normal")
    reviewed_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class SgReportRow(Base):
    __tablename__ = "sg_reports"
    __table_args__ = (
        CheckConstraint("teacher_rating BETWEEN 1 AND 5", name="ck_sg_reports_rating"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sg_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    teacher_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id"), nullable=False)
    lesson_progression_id: Mapped[int | None] = mapped_column(
        ForeignKey("lesson_progressions.id", ondelete="SET NULL"), nullable=True
    )
    schedule_validated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    actual_start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    actual_end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    teacher_present: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    teacher_late_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    teacher_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    teacher_appreciation: Mapped[str | None] = mapped_column(Text, nullable=True)
    incidents: Mapped[str | None] = mapped_column(Text, nullable=True)
    observations: Mapped[str | None] = mapped_column(Text, nullable=True)
    students_present: Mapped[int | None] = mapped_column(Integer, nullable=True)
    students_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    session_validated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    validation_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class NotificationRow(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="normal")
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class AuditLogRow(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
