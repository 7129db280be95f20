from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.auth.dependencies import AuthContext, require_roles
from backend.core.errors import AuthorizationFailure, NotFound
from backend.database import commit_or_fail, get_db
from backend.models.course import Course, Lesson
from backend.models.enrollment import Enrollment
from backend.models.note import Note
from backend.models.progress import Progress
from backend.models.user import Role

router = APIRouter(tags=['courses'])

require_course_author = require_roles(Role.instructor, Role.admin)


class LessonResponse(BaseModel):
    id: int
    course_id: int
    title: str
    description: str | None = None
    video_url: str
    duration: int
    order: int

    class Config:
        from_attributes = True


class CourseResponse(BaseModel):
    id: int
    title: str
    description: str
    instructor_id: int
    thumbnail: str | None = ''
    price: float
    published: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class CourseDetailResponse(CourseResponse):
    lessons: list[LessonResponse] = []


class CreateCourseRequest(BaseModel):
    title: str
    description: str
    thumbnail: str = ''
    price: float = 0

    @field_validator('title', 'description')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('This field is required.')
        return normalized

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: float) -> float:
        if value < 0:
            raise ValueError('Price cannot be negative.')
        return value


class UpdateCourseRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    thumbnail: str | None = None
    price: float | None = None
    published: bool | None = None

    @field_validator('title', 'description')
    @classmethod
    def validate_optional_text(cls, value: str | None) -> str | None:
        if value is None:
            return value
        normalized = value.strip()
        if not normalized:
            raise ValueError('This field cannot be blank.')
        return normalized

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: float | None) -> float | None:
        if value is not None and value < 0:
            raise ValueError('Price cannot be negative.')
        return value


class CreateLessonRequest(BaseModel):
    title: str
    description: str | None = None
    video_url: str
    duration: int = 0
    order: int

    @field_validator('title', 'video_url')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('This field is required.')
        return normalized

    @field_validator('duration')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if value < 0:
            raise ValueError('Duration cannot be negative.')
        return value


def get_course_or_404(course_id: int, db: Session) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise NotFound('Course not found')
    return course


def ensure_course_owner(course: Course, identity: AuthContext, action: str) -> None:
    if course.instructor_id != identity.user_id and identity.role != Role.admin.value:
        raise AuthorizationFailure(f'Not authorized to {action}')


@router.get('', response_model=list[CourseResponse])
def list_courses(db: Session = Depends(get_db)):
    return db.query(Course).filter(Course.published.is_(True)).order_by(Course.created_at.desc()).all()


@router.get('/{course_id}', response_model=CourseDetailResponse)
def get_course(course_id: int, db: Session = Depends(get_db)):
    return get_course_or_404(course_id, db)


@router.post('', response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    data: CreateCourseRequest,
    identity: AuthContext = Depends(require_course_author),
    db: Session = Depends(get_db),
):
    course = Course(
        title=data.title,
        description=data.description,
        thumbnail=data.thumbnail,
        price=data.price,
        instructor_id=identity.user_id,
    )
    db.add(course)
    commit_or_fail(db)
    db.refresh(course)
    return course


@router.put('/{course_id}', response_model=CourseResponse)
def update_course(
    course_id: int,
    data: UpdateCourseRequest,
    identity: AuthContext = Depends(require_course_author),
    db: Session = Depends(get_db),
):
    course = get_course_or_404(course_id, db)
    ensure_course_owner(course, identity, 'update this course')

    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(course, field, value)

    commit_or_fail(db)
    db.refresh(course)
    return course


@router.delete('/{course_id}')
def delete_course(
    course_id: int,
    identity: AuthContext = Depends(require_course_author),
    db: Session = Depends(get_db),
):
    course = get_course_or_404(course_id, db)
    ensure_course_owner(course, identity, 'delete this course')

    # Student records are removed explicitly; SQLite does not enforce ON DELETE.
    lesson_ids = [lesson.id for lesson in course.lessons]
    if lesson_ids:
        db.query(Note).filter(Note.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
    db.query(Progress).filter(Progress.course_id == course.id).delete(synchronize_session=False)
    db.query(Enrollment).filter(Enrollment.course_id == course.id).delete(synchronize_session=False)
    db.delete(course)
    commit_or_fail(db)
    return {'message': 'Course removed'}


@router.post('/{course_id}/lessons', response_model=LessonResponse, status_code=status.HTTP_201_CREATED)
def add_lesson(
    course_id: int,
    data: CreateLessonRequest,
    identity: AuthContext = Depends(require_course_author),
    db: Session = Depends(get_db),
):
    course = get_course_or_404(course_id, db)
    ensure_course_owner(course, identity, 'add lessons to this course')

    lesson = Lesson(
        course_id=course.id,
        title=data.title,
        description=data.description,
        video_url=data.video_url,
        duration=data.duration,
        order=data.order,
    )
    db.add(lesson)
    commit_or_fail(db)
    db.refresh(lesson)
    return lesson
