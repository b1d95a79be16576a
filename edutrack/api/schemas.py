"""Request and response bodies shared by the routers.

JSON is camelCase on the wire, so the pydantic fields are spelled that way.
Services take snake_case keyword arguments or ``changes`` dicts;
``snake_fields()`` converts a partially-filled body into one.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from edutrack.models.curriculum import (
    AcademicYear,
    Chapter,
    ChapterElement,
    Lesson,
    Level,
    SchoolClass,
    Subject,
)
from edutrack.models.notification import AuditLog, Notification
from edutrack.models.progression import LessonProgression, effective_status
from edutrack.models.report import AnomalyReport, SgReport
from edutrack.models.user import INSPECTOR, SG, User
from edutrack.repos.store import Store
from edutrack.services.durations import format_duration, reliquat
from edutrack.services.progression_service import ProgressionStats
from edutrack.services.reporting_service import MonthlyHours, TeacherHours, TeacherStatistics
from edutrack.services.visibility import AccessScope, class_cycle

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

Priority = Literal["low", "normal", "high", "urgent"]
SessionType = Literal["lesson", "exercises", "control", "revision"]
Cycle = Literal["maternelle", "primaire", "college", "lycee"]
HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


def snake_fields(body: BaseModel, *, exclude: set[str] | None = None) -> dict[str, Any]:
    """Fields the client actually sent, keyed in snake_case."""
    sent = body.model_dump(exclude_unset=True, exclude=exclude)
    return {_CAMEL_BOUNDARY.sub("_", k).lower(): v for k, v in sent.items()}


class MessageOut(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Auth and users
# ---------------------------------------------------------------------------


class LoginIn(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterIn(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)
    role: str
    firstName: str = Field(min_length=1)
    lastName: str = Field(min_length=1)
    email: str | None = None


class UserOut(BaseModel):
    id: int
    username: str
    role: str
    firstName: str
    lastName: str
    email: str | None
    hourlyRate: float
    isActive: bool
    createdAt: datetime

    @classmethod
    def of(cls, u: User) -> UserOut:
        return cls(
            id=u.id,
            username=u.username,
            role=u.role,
            firstName=u.first_name,
            lastName=u.last_name,
            email=u.email,
            hourlyRate=u.hourly_rate,
            isActive=u.is_active,
            createdAt=u.created_at,
        )


class LoginOut(BaseModel):
    id: int
    username: str
    role: str
    firstName: str
    lastName: str
    email: str | None
    token: str
    tokenType: str = "bearer"
    expiresIn: int


class RegisterOut(BaseModel):
    message: str
    user: UserOut


# ---------------------------------------------------------------------------
# Curriculum
# ---------------------------------------------------------------------------


class SubjectOut(BaseModel):
    id: int
    name: str
    code: str
    description: str

    @classmethod
    def of(cls, s: Subject) -> SubjectOut:
        return cls(id=s.id, name=s.name, code=s.code, description=s.description)


class LevelOut(BaseModel):
    id: int
    name: str
    code: str
    category: str

    @classmethod
    def of(cls, lv: Level) -> LevelOut:
        return cls(id=lv.id, name=lv.name, code=lv.code, category=lv.category)


class ClassOut(BaseModel):
    id: int
    name: str
    levelId: int
    level: LevelOut | None
    academicYear: str
    floor: str | None
    capacity: int | None
    interactiveBoard: bool
    whiteboard: bool
    projector: bool
    camera: bool
    delegate: str | None
    isActive: bool

    @classmethod
    def of(cls, store: Store, c: SchoolClass) -> ClassOut:
        level = store.curriculum.get_level(c.level_id)
        return cls(
            id=c.id,
            name=c.name,
            levelId=c.level_id,
            level=LevelOut.of(level) if level else None,
            academicYear=c.academic_year,
            floor=c.floor,
            capacity=c.capacity,
            interactiveBoard=c.interactive_board,
            whiteboard=c.whiteboard,
            projector=c.projector,
            camera=c.camera,
            delegate=c.delegate,
            isActive=c.is_active,
        )


class ChapterOut(BaseModel):
    id: int
    name: str
    subjectId: int
    levelId: int
    orderIndex: int
    trimester: int

    @classmethod
    def of(cls, c: Chapter) -> ChapterOut:
        return cls(
            id=c.id,
            name=c.name,
            subjectId=c.subject_id,
            levelId=c.level_id,
            orderIndex=c.order_index,
            trimester=c.trimester,
        )


class ChapterElementOut(BaseModel):
    id: int
    chapterId: int
    title: str
    description: str | None
    orderIndex: int
    estimatedDurationMinutes: int

    @classmethod
    def of(cls, e: ChapterElement) -> ChapterElementOut:
        return cls(
            id=e.id,
            chapterId=e.chapter_id,
            title=e.title,
            description=e.description,
            orderIndex=e.order_index,
            estimatedDurationMinutes=e.estimated_duration_minutes,
        )


class LessonOut(BaseModel):
    id: int
    title: str
    objectives: str | None
    chapterId: int
    chapterName: str | None
    plannedDate: date | None
    plannedDurationMinutes: int
    plannedDuration: str
    orderIndex: int
    academicYear: str
    isActive: bool

    @classmethod
    def of(cls, store: Store, lesson: Lesson) -> LessonOut:
        chapter = store.curriculum.get_chapter(lesson.chapter_id)
        return cls(
            id=lesson.id,
            title=lesson.title,
            objectives=lesson.objectives,
            chapterId=lesson.chapter_id,
            chapterName=chapter.name if chapter else None,
            plannedDate=lesson.planned_date,
            plannedDurationMinutes=lesson.planned_duration_minutes,
            plannedDuration=format_duration(lesson.planned_duration_minutes),
            orderIndex=lesson.order_index,
            academicYear=lesson.academic_year,
            isActive=lesson.is_active,
        )


class AcademicYearOut(BaseModel):
    id: int
    name: str
    status: str
    startDate: date
    endDate: date

    @classmethod
    def of(cls, y: AcademicYear) -> AcademicYearOut:
        return cls(
            id=y.id, name=y.name, status=y.status, startDate=y.start_date, endDate=y.end_date
        )


# ---------------------------------------------------------------------------
# Progressions
# ---------------------------------------------------------------------------


class PlanIn(BaseModel):
    lessonId: int
    classId: int


class CompleteIn(BaseModel):
    lessonId: int
    classId: int
    actualDate: date
    actualDurationMinutes: int = Field(gt=0, le=600)
    notes: str | None = None
    sessionType: SessionType = "lesson"
    chapterElementIds: list[int] = Field(default_factory=list)


class ProgressionOut(BaseModel):
    id: int
    lessonId: int
    classId: int
    teacherId: int
    status: str
    effectiveStatus: str
    actualDate: date | None
    actualDurationMinutes: int | None
    actualDuration: str | None
    plannedDuration: str | None
    reliquat: str | None
    notes: str | None
    sessionType: str
    chapterElementIds: list[int]
    validatedBy: int | None
    validatedAt: datetime | None
    completedAt: datetime | None
    createdAt: datetime
    updatedAt: datetime
    lessonTitle: str | None = None
    plannedDate: date | None = None
    chapterName: str | None = None
    className: str | None = None
    levelName: str | None = None
    teacherName: str | None = None

    @classmethod
    def of(cls, store: Store, p: LessonProgression, today: date) -> ProgressionOut:
        lesson = store.curriculum.get_lesson(p.lesson_id)
        chapter = store.curriculum.get_chapter(lesson.chapter_id) if lesson else None
        school_class = store.curriculum.get_class(p.class_id)
        level = store.curriculum.get_level(school_class.level_id) if school_class else None
        teacher = store.users.get_by_id(p.teacher_id)
        planned = lesson.planned_duration_minutes if lesson else None
        return cls(
            id=p.id,
            lessonId=p.lesson_id,
            classId=p.class_id,
            teacherId=p.teacher_id,
            status=p.status,
            effectiveStatus=effective_status(
                p.status, lesson.planned_date if lesson else None, today
            ),
            actualDate=p.actual_date,
            actualDurationMinutes=p.actual_duration_minutes,
            actualDuration=(
                format_duration(p.actual_duration_minutes)
                if p.actual_duration_minutes
                else None
            ),
            plannedDuration=format_duration(planned) if planned else None,
            reliquat=reliquat(planned, p.actual_duration_minutes) if planned else None,
            notes=p.notes,
            sessionType=p.session_type,
            chapterElementIds=sorted(p.chapter_element_ids),
            validatedBy=p.validated_by,
            validatedAt=p.validated_at,
            completedAt=p.completed_at,
            createdAt=p.created_at,
            updatedAt=p.updated_at,
            lessonTitle=lesson.title if lesson else None,
            plannedDate=lesson.planned_date if lesson else None,
            chapterName=chapter.name if chapter else None,
            className=school_class.name if school_class else None,
            levelName=level.name if level else None,
            teacherName=teacher.full_name if teacher else None,
        )


class LessonProgressOut(LessonOut):
    """A lesson as a teacher sees it for one class: status plus own row."""

    trimester: int | None
    effectiveStatus: str
    progression: ProgressionOut | None


class StatsOut(BaseModel):
    totalLessons: int
    completedLessons: int
    validatedLessons: int
    delayedLessons: int
    totalPlannedHours: float
    totalActualHours: float

    @classmethod
    def of(cls, s: ProgressionStats) -> StatsOut:
        return cls(
            totalLessons=s.total_lessons,
            completedLessons=s.completed_lessons,
            validatedLessons=s.validated_lessons,
            delayedLessons=s.delayed_lessons,
            totalPlannedHours=s.total_planned_hours,
            totalActualHours=s.total_actual_hours,
        )


class TeacherAssignmentOut(BaseModel):
    classId: int
    className: str
    level: LevelOut | None
    subject: SubjectOut
    academicYear: str

    @classmethod
    def of(
        cls, store: Store, class_id: int, subject_id: int, academic_year: str
    ) -> TeacherAssignmentOut | None:
        school_class = store.curriculum.get_class(class_id)
        subject = store.curriculum.get_subject(subject_id)
        if school_class is None or subject is None:
            return None
        level = store.curriculum.get_level(school_class.level_id)
        return cls(
            classId=class_id,
            className=school_class.name,
            level=LevelOut.of(level) if level else None,
            subject=SubjectOut.of(subject),
            academicYear=academic_year,
        )


class TeacherOut(UserOut):
    assignments: list[TeacherAssignmentOut] = Field(default_factory=list)

    @classmethod
    def visible(cls, store: Store, scope: AccessScope, teacher: User) -> TeacherOut:
        """A teacher with the assignments of the scope's year the requester may see."""
        assignments = []
        for a in store.assignments.teacher_assignments(
            teacher_id=teacher.id, academic_year=scope.academic_year
        ):
            if scope.role == INSPECTOR and not scope.inspects(a.subject_id):
                continue
            if scope.role == SG and not _class_in_cycles(store, scope, a.class_id):
                continue
            out = TeacherAssignmentOut.of(store, a.class_id, a.subject_id, a.academic_year)
            if out is not None:
                assignments.append(out)
        return cls(**UserOut.of(teacher).model_dump(), assignments=assignments)


def _class_in_cycles(store: Store, scope: AccessScope, class_id: int) -> bool:
    school_class = store.curriculum.get_class(class_id)
    return school_class is not None and class_cycle(store, school_class) in scope.cycles


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


class TeacherStatisticsOut(BaseModel):
    teacher: UserOut
    totalLessons: int
    completedLessons: int
    validatedLessons: int
    progressPercentage: int
    plannedControls: int
    completedControls: int

    @classmethod
    def of(cls, s: TeacherStatistics) -> TeacherStatisticsOut:
        return cls(
            teacher=UserOut.of(s.teacher),
            totalLessons=s.total_lessons,
            completedLessons=s.completed_lessons,
            validatedLessons=s.validated_lessons,
            progressPercentage=s.progress_percentage,
            plannedControls=s.planned_controls,
            completedControls=s.completed_controls,
        )


class TeacherHoursOut(BaseModel):
    teacher: UserOut
    hourlyRate: float
    subjects: list[str]
    classes: list[str]
    weeklyHours: float
    monthlyHours: float
    semesterHours: float
    yearlyHours: float
    projectedSalary: float

    @classmethod
    def of(cls, h: TeacherHours) -> TeacherHoursOut:
        return cls(
            teacher=UserOut.of(h.teacher),
            hourlyRate=h.teacher.hourly_rate,
            subjects=h.subjects,
            classes=h.classes,
            weeklyHours=h.weekly_hours,
            monthlyHours=h.monthly_hours,
            semesterHours=h.semester_hours,
            yearlyHours=h.yearly_hours,
            projectedSalary=h.projected_salary,
        )


class MonthlyHoursOut(BaseModel):
    teacherId: int
    teacherName: str
    subject: str
    classes: list[str]
    plannedHours: float
    actualHours: float
    completedLessons: int
    totalLessons: int
    monthlyTarget: int

    @classmethod
    def of(cls, m: MonthlyHours) -> MonthlyHoursOut:
        return cls(
            teacherId=m.teacher_id,
            teacherName=m.teacher_name,
            subject=m.subject,
            classes=m.classes,
            plannedHours=m.planned_hours,
            actualHours=m.actual_hours,
            completedLessons=m.completed_lessons,
            totalLessons=m.total_lessons,
            monthlyTarget=m.monthly_target,
        )


class HourlyRateIn(BaseModel):
    hourlyRate: float = Field(ge=0)


# ---------------------------------------------------------------------------
# Notifications and audit
# ---------------------------------------------------------------------------


class NotificationOut(BaseModel):
    id: int
    type: str
    title: str
    message: str
    entityType: str | None
    entityId: int | None
    priority: str
    isRead: bool
    createdAt: datetime
    readAt: datetime | None

    @classmethod
    def of(cls, n: Notification) -> NotificationOut:
        return cls(
            id=n.id,
            type=n.type,
            title=n.title,
            message=n.message,
            entityType=n.entity_type,
            entityId=n.entity_id,
            priority=n.priority,
            isRead=n.is_read,
            createdAt=n.created_at,
            readAt=n.read_at,
        )


class CountOut(BaseModel):
    count: int


class DelayCheckOut(BaseModel):
    message: str
    delays: int
    reminders: int


class NotifySgIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    priority: Priority = "normal"


class AuditLogOut(BaseModel):
    id: int
    userId: int | None
    action: str
    entityType: str | None
    entityId: int | None
    details: dict[str, Any]
    createdAt: datetime

    @classmethod
    def of(cls, a: AuditLog) -> AuditLogOut:
        return cls(
            id=a.id,
            userId=a.user_id,
            action=a.action,
            entityType=a.entity_type,
            entityId=a.entity_id,
            details=a.details,
            createdAt=a.created_at,
        )


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class AnomalyReportIn(BaseModel):
    type: Literal["content", "hours", "schedule", "incident"]
    title: str = Field(min_length=5, max_length=200)
    description: str = Field(min_length=10)
    recipients: list[Literal["fondateur", "sg", "inspecteur"]] = Field(min_length=1)
    lessonId: int | None = None
    classId: int | None = None
    subjectId: int | None = None
    priority: Priority = "normal"


class AnomalyReviewIn(BaseModel):
    status: Literal["open", "in_review", "resolved", "rejected"] | None = None
    reviewNotes: str | None = None
    priority: Priority | None = None


class AnomalyReportOut(BaseModel):
    id: int
    teacherId: int
    teacherName: str | None
    type: str
    title: str
    description: str
    recipients: list[str]
    lessonId: int | None
    classId: int | None
    subjectId: int | None
    status: str
    priority: str
    reviewedBy: int | None
    reviewNotes: str | None
    resolvedAt: datetime | None
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def of(cls, store: Store, r: AnomalyReport) -> AnomalyReportOut:
        teacher = store.users.get_by_id(r.teacher_id)
        return cls(
            id=r.id,
            teacherId=r.teacher_id,
            teacherName=teacher.full_name if teacher else None,
            type=r.type,
            title=r.title,
            description=r.description,
            recipients=list(r.recipients),
            lessonId=r.lesson_id,
            classId=r.class_id,
            subjectId=r.subject_id,
            status=r.status,
            priority=r.priority,
            reviewedBy=r.reviewed_by,
            reviewNotes=r.review_notes,
            resolvedAt=r.resolved_at,
            createdAt=r.created_at,
            updatedAt=r.updated_at,
        )


class SgReportIn(BaseModel):
    teacherId: int
    classId: int
    lessonProgressionId: int | None = None
    scheduleValidated: bool = False
    actualStartTime: str | None = Field(default=None, pattern=HHMM)
    actualEndTime: str | None = Field(default=None, pattern=HHMM)
    teacherPresent: bool = True
    teacherLateMinutes: int = Field(default=0, ge=0)
    teacherRating: int | None = Field(default=None, ge=1, le=5)
    teacherAppreciation: str | None = None
    incidents: str | None = None
    observations: str | None = None
    studentsPresent: int | None = Field(default=None, ge=0)
    studentsTotal: int | None = Field(default=None, ge=0)


class SgReportUpdateIn(BaseModel):
    teacherId: int | None = None
    classId: int | None = None
    lessonProgressionId: int | None = None
    scheduleValidated: bool | None = None
    actualStartTime: str | None = Field(default=None, pattern=HHMM)
    actualEndTime: str | None = Field(default=None, pattern=HHMM)
    teacherPresent: bool | None = None
    teacherLateMinutes: int | None = Field(default=None, ge=0)
    teacherRating: int | None = Field(default=None, ge=1, le=5)
    teacherAppreciation: str | None = None
    incidents: str | None = None
    observations: str | None = None
    studentsPresent: int | None = Field(default=None, ge=0)
    studentsTotal: int | None = Field(default=None, ge=0)


class SgReportValidateIn(BaseModel):
    sessionValidated: bool
    validationNotes: str | None = None


class SgReportOut(BaseModel):
    id: int
    sgId: int
    sgName: str | None
    teacherId: int
    teacherName: str | None
    classId: int
    className: str | None
    lessonProgressionId: int | None
    scheduleValidated: bool
    actualStartTime: str | None
    actualEndTime: str | None
    teacherPresent: bool
    teacherLateMinutes: int
    teacherRating: int | None
    teacherAppreciation: str | None
    incidents: str | None
    observations: str | None
    studentsPresent: int | None
    studentsTotal: int | None
    sessionValidated: bool
    validationNotes: str | None
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def of(cls, store: Store, r: SgReport) -> SgReportOut:
        sg = store.users.get_by_id(r.sg_id)
        teacher = store.users.get_by_id(r.teacher_id)
        school_class = store.curriculum.get_class(r.class_id)
        return cls(
            id=r.id,
            sgId=r.sg_id,
            sgName=sg.full_name if sg else None,
            teacherId=r.teacher_id,
            teacherName=teacher.full_name if teacher else None,
            classId=r.class_id,
            className=school_class.name if school_class else None,
            lessonProgressionId=r.lesson_progression_id,
            scheduleValidated=r.schedule_validated,
            actualStartTime=r.actual_start_time,
            actualEndTime=r.actual_end_time,
            teacherPresent=r.teacher_present,
            teacherLateMinutes=r.teacher_late_minutes,
            teacherRating=r.teacher_rating,
            teacherAppreciation=r.teacher_appreciation,
            incidents=r.incidents,
            observations=r.observations,
            studentsPresent=r.students_present,
            studentsTotal=r.students_total,
            sessionValidated=r.session_validated,
            validationNotes=r.validation_notes,
            createdAt=r.created_at,
            updatedAt=r.updated_at,
        )


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


class UserCreateIn(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)
    role: Literal["teacher", "inspector", "founder", "sg", "admin"]
    firstName: str = Field(min_length=1)
    lastName: str = Field(min_length=1)
    email: str | None = None
    hourlyRate: float = Field(default=0.0, ge=0)
    subjectId: int | None = None
    classIds: list[int] = Field(default_factory=list)
    cycle: Cycle | None = None


class UserUpdateIn(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=50)
    password: str | None = Field(default=None, min_length=6)
    firstName: str | None = Field(default=None, min_length=1)
    lastName: str | None = Field(default=None, min_length=1)
    email: str | None = None
    hourlyRate: float | None = Field(default=None, ge=0)
    isActive: bool | None = None
    # Accepted only so the service can reject it with a clear message.
    role: str | None = None


class SubjectIn(BaseModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1, max_length=20)
    description: str = ""


class SubjectUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    code: str | None = Field(default=None, min_length=1, max_length=20)
    description: str | None = None


class LevelIn(BaseModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1, max_length=20)
    category: Cycle


class LevelUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    code: str | None = Field(default=None, min_length=1, max_length=20)
    category: Cycle | None = None


class ClassIn(BaseModel):
    name: str = Field(min_length=1)
    levelId: int
    academicYear: str | None = None
    floor: str | None = None
    capacity: int | None = Field(default=None, ge=1, le=100)
    interactiveBoard: bool = False
    whiteboard: bool = False
    projector: bool = False
    camera: bool = False
    delegate: str | None = None
    isActive: bool = True


class ClassUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    levelId: int | None = None
    floor: str | None = None
    capacity: int | None = Field(default=None, ge=1, le=100)
    interactiveBoard: bool | None = None
    whiteboard: bool | None = None
    projector: bool | None = None
    camera: bool | None = None
    delegate: str | None = None
    isActive: bool | None = None


class LessonIn(BaseModel):
    title: str = Field(min_length=1)
    objectives: str | None = None
    chapterId: int | None = None
    chapterName: str | None = None
    subjectId: int | None = None
    levelId: int | None = None
    plannedDate: date | None = None
    plannedDurationMinutes: int = Field(default=55, gt=0)
    orderIndex: int = 0
    academicYear: str | None = None


class LessonUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    objectives: str | None = None
    chapterId: int | None = None
    plannedDate: date | None = None
    plannedDurationMinutes: int | None = Field(default=None, gt=0)
    orderIndex: int | None = None
    isActive: bool | None = None


class ChapterElementIn(BaseModel):
    chapterId: int
    title: str = Field(min_length=1)
    description: str | None = None
    orderIndex: int = 0
    estimatedDurationMinutes: int = Field(default=55, gt=0)


class AcademicYearCreateIn(BaseModel):
    name: str
    copyFrom: str | None = None
    copyClasses: bool = False
    copyInspectorAssignments: bool = False
    copySgAssignments: bool = False


class SetAcademicYearIn(BaseModel):
    academicYear: str


class AcademicYearsOut(BaseModel):
    current: str
    years: list[str]
    records: list[AcademicYearOut]
    nextYear: str | None = None
