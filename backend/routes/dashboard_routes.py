from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.auth.dependencies import AuthContext, require_roles
from backend.database import get_db
from backend.models.course import Course
from backend.models.enrollment import Enrollment
from backend.models.progress import Progress
from backend.models.user import Role, User

router = APIRouter(tags=['dashboard'])


class InstructorStatsResponse(BaseModel):
    total_courses: int
    total_students: int
    total_progress_entries: int


class AdminStatsResponse(BaseModel):
    total_users: int
    total_students: int
    total_instructors: int
    total_admins: int
    total_courses: int


@router.get('/instructor', response_model=InstructorStatsResponse)
def get_instructor_stats(
    identity: AuthContext = Depends(require_roles(Role.instructor, Role.admin)),
    db: Session = Depends(get_db),
):
    course_ids = [
        course_id
        for (course_id,) in db.query(Course.id).filter(Course.instructor_id == identity.user_id).all()
    ]
    if not course_ids:
        return {'total_courses': 0, 'total_students': 0, 'total_progress_entries': 0}

    # A student enrolled in several of these courses counts once.
    total_students = db.query(func.count(func.distinct(Enrollment.user_id))).filter(
        Enrollment.course_id.in_(course_ids),
    ).scalar()
    total_progress_entries = db.query(Progress).filter(Progress.course_id.in_(course_ids)).count()

    return {
        'total_courses': len(course_ids),
        'total_students': total_students or 0,
        'total_progress_entries': total_progress_entries,
    }


@router.get('/admin', response_model=AdminStatsResponse)
def get_admin_stats(
    _: AuthContext = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
):
    role_counts = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())

    return {
        'total_users': sum(role_counts.values()),
        'total_students': role_counts.get(Role.student.value, 0),
        'total_instructors': role_counts.get(Role.instructor.value, 0),
        'total_admins': role_counts.get(Role.admin.value, 0),
        'total_courses': db.query(Course).count(),
    }
