import datetime
import enum
import typing as t

from sqlalchemy import ForeignKey, func, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import JSON, String, Text

from marginalia.model import AssignmentCategory, Difficulty, FeedbackID, SubmissionID, SubmissionKind, SubmissionState

from .type import ShortUUIDKeyType, UTCDateTime, ValueEnumMapper


class base(MappedAsDataclass, DeclarativeBase):
    type_annotation_map = {
        SubmissionID: ShortUUIDKeyType(SubmissionID),
        FeedbackID: ShortUUIDKeyType(FeedbackID),
        datetime.datetime: UTCDateTime(),
        list[str]: JSON,
        dict[str, t.Any]: JSON,
        enum.Enum: ValueEnumMapper,
    }


class assignments(base):
    __tablename__ = "assignments"

    code: Mapped[str] = mapped_column(String(6), primary_key=True)
    title: Mapped[str]
    deadline: Mapped[datetime.datetime]
    description: Mapped[str] = mapped_column(Text, default="")
    requirements: Mapped[list[str]] = mapped_column(default_factory=list)
    recommendations: Mapped[list[str]] = mapped_column(default_factory=list)
    category: Mapped[AssignmentCategory] = mapped_column(default=AssignmentCategory.Programming)
    difficulty: Mapped[Difficulty] = mapped_column(default=Difficulty.Intermediate)
    active: Mapped[bool] = mapped_column(default=True)
    allow_resubmission: Mapped[bool] = mapped_column(default=False)

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class submissions(base):
    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("assignment_code", "submitter_id"),)

    submission_id: Mapped[SubmissionID] = mapped_column(primary_key=True)
    assignment_code: Mapped[str] = mapped_column(ForeignKey("assignments.code", ondelete="CASCADE"), index=True)
    submitter_id: Mapped[str] = mapped_column(index=True)
    kind: Mapped[SubmissionKind]
    content: Mapped[str] = mapped_column(Text)
    submitted_at: Mapped[datetime.datetime]
    reference: Mapped[str | None] = mapped_column(default=None)
    title: Mapped[str | None] = mapped_column(default=None)
    structure: Mapped[str | None] = mapped_column(Text, default=None)
    # `metadata` is taken by the declarative base
    content_metadata: Mapped[dict[str, t.Any]] = mapped_column("metadata", default_factory=dict)
    state: Mapped[SubmissionState] = mapped_column(default=SubmissionState.Created)
    failure_reason: Mapped[str | None] = mapped_column(default=None)
    failure_detail: Mapped[str | None] = mapped_column(Text, default=None)

    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class feedback(base):
    __tablename__ = "feedback"

    feedback_id: Mapped[FeedbackID] = mapped_column(primary_key=True)
    submission_id: Mapped[SubmissionID] = mapped_column(
        ForeignKey("submissions.submission_id", ondelete="CASCADE"), unique=True
    )
    score: Mapped[int]
    subscores: Mapped[dict[str, t.Any]]
    content: Mapped[str] = mapped_column(Text)
    model: Mapped[str]
    latency_ms: Mapped[int]
    tokens_used: Mapped[int | None] = mapped_column(default=None)

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())


metadata = base.metadata
