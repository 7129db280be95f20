from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.auth.dependencies import AuthContext, require_roles
from backend.core.errors import AuthorizationFailure, NotFound, ValidationFailure
from backend.database import commit_or_fail, get_db
from backend.models.course import Course, Lesson
from backend.models.enrollment import Enrollment
from backend.models.note import Note
from backend.models.progress import Progress
from backend.models.user import Role
from backend.routes.course_routes import CourseResponse

require_student = require_roles(Role.student)

router = APIRouter(tags=['students'], dependencies=[Depends(require_student)])


class ProgressUpdateRequest(BaseModel):
    completed: bool | None = None
    watched_seconds: int | None = None

    @field_validator('watched_seconds')
    @classmethod
    def validate_watched_seconds(cls, value: int | None) -> int | None:
        if value is not None and value < 0:
            raise ValueError('Watched seconds cannot be negative.')
        return value


class ProgressResponse(BaseModel):
    id: int
    course_id: int
    lesson_id: int
    completed: bool
    watched_seconds: int
    last_watched: datetime | None = None

    class Config:
        from_attributes = True


class CourseProgressResponse(BaseModel):
    course_id: int
    total_lessons: int
    completed_lessons: int
    progress_percentage: float
    details: list[ProgressResponse]


class CreateNoteRequest(BaseModel):
    lesson_id: int
    content: str
    timestamp: float

    @field_validator('content')
    @classmethod
    def validate_content(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Note content is required.')
        return normalized

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, value: float) -> float:
        if value < 0:
            raise ValueError('Timestamp cannot be negative.')
        return value


class NoteResponse(BaseModel):
    id: int
    lesson_id: int
    content: str
    timestamp: float
    created_at: datetime | None = None

    class Config:
        from_attributes = True


def add_enrollment(db: Session, user_id: int, course_id: int) -> None:
    db.add(Enrollment(user_id=user_id, course_id=course_id))
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationFailure('Already enrolled') from exc


def completion_percentage(completed: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(completed / total * 100, 2)


@router.post('/enroll/{course_id}')
def enroll_course(
    course_id: int,
    identity: AuthContext = Depends(require_student),
    db: Session = Depends(get_db),
):
    if db.get(Course, course_id) is None:
        raise NotFound('Course not found')

    existing = db.query(Enrollment).filter(
        Enrollment.user_id == identity.user_id,
        Enrollment.course_id == course_id,
    ).first()
    if existing is not None:
        raise ValidationFailure('Already enrolled')

    add_enrollment(db, identity.user_id, course_id)
    return {'message': 'Enrolled successfully'}


@router.get('/my-courses', response_model=list[CourseResponse])
def list_my_courses(
    identity: AuthContext = Depends(require_student),
    db: Session = Depends(get_db),
):
    return (
        db.query(Course)
        .join(Enrollment, Enrollment.course_id == Course.id)
        .filter(Enrollment.user_id == identity.user_id)
        .order_by(Enrollment.enrolled_at)
        .all()
    )


@router.put('/progress/lessons/{lesson_id}', response_model=ProgressResponse)
def update_progress(
    lesson_id: int,
    data: ProgressUpdateRequest,
    identity: AuthContext = Depends(require_student),
    db: Session = Depends(get_db),
):
    lesson = db.get(Lesson, lesson_id)
    if lesson is None:
        raise NotFound('Lesson not found')

    progress = db.query(Progress).filter(
        Progress.user_id == identity.user_id,
        Progress.lesson_id == lesson_id,
    ).first()
    if progress is None:
        progress = Progress(
            user_id=identity.user_id,
            course_id=lesson.course_id,
            lesson_id=lesson_id,
            completed=False,
            watched_seconds=0,
        )
        db.add(progress)

    if data.completed is not None:
        progress.completed = data.completed
    if data.watched_seconds is not None:
        progress.watched_seconds = data.watched_seconds
    progress.last_watched = datetime.now(timezone.utc)

    commit_or_fail(db)
    db.refresh(progress)
    return progress


@router.get('/progress/{course_id}', response_model=CourseProgressResponse)
def get_course_progress(
    course_id: int,
    identity: AuthContext = Depends(require_student),
    db: Session = Depends(get_db),
):
    if db.get(Course, course_id) is None:
        raise NotFound('Course not found')

    total_lessons = db.query(Lesson).filter(Lesson.course_id == course_id).count()
    completed = db.query(Progress).filter(
        Progress.user_id == identity.user_id,
        Progress.course_id == course_id,
        Progress.completed.is_(True),
    ).all()

    return {
        'course_id': course_id,
        'total_lessons': total_lessons,
        'completed_lessons': len(completed),
        'progress_percentage': completion_percentage(len(completed), total_lessons),
        'details': completed,
    }


@router.post('/notes', response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
def save_note(
    data: CreateNoteRequest,
    identity: AuthContext = Depends(require_student),
    db: Session = Depends(get_db),
):
    if db.get(Lesson, data.lesson_id) is None:
        raise NotFound('Lesson not found')

    note = Note(
        user_id=identity.user_id,
        lesson_id=data.lesson_id,
        content=data.content,
        timestamp=data.timestamp,
    )
    db.add(note)
    commit_or_fail(db)
    db.refresh(note)
    return note


@router.get('/notes/{lesson_id}', response_model=list[NoteResponse])
def list_lesson_notes(
    lesson_id: int,
    identity: AuthContext = Depends(require_student),
    db: Session = Depends(get_db),
):
    return db.query(Note).filter(
        Note.user_id == identity.user_id,
        Note.lesson_id == lesson_id,
    ).order_by(Note.timestamp).all()


@router.delete('/notes/{note_id}')
def delete_note(
    note_id: int,
    identity: AuthContext = Depends(require_student),
    db: Session = Depends(get_db),
):
    note = db.get(Note, note_id)
    if note is None:
        raise NotFound('Note not found')
    if note.user_id != identity.user_id:
        raise AuthorizationFailure('Not authorized')

    db.delete(note)
    commit_or_fail(db)
    return {'message': 'Note removed'}
