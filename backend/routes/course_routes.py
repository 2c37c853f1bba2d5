import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import Identity, require_admin
from backend.core.errors import DependencyFailure, InvalidInput, NotFound
from backend.database import get_db
from backend.models.course import Course
from backend.models.lesson import Lesson

router = APIRouter(tags=['courses'])

MAX_COURSE_ID = 2**63 - 1

logger = logging.getLogger(__name__)


def _require_text(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f'{field_name} is required.')
    return value


class CreateCourseRequest(BaseModel):
    title: str
    description: str

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _require_text(value, 'Title')

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str) -> str:
        return _require_text(value, 'Description')


class CreateLessonRequest(BaseModel):
    title: str
    content: str

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _require_text(value, 'Title')

    @field_validator('content')
    @classmethod
    def validate_content(cls, value: str) -> str:
        return _require_text(value, 'Content')


class LessonResponse(BaseModel):
    id: int
    title: str
    content: str
    course_id: int
    created_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class CourseResponse(BaseModel):
    id: int
    title: str
    description: str
    created_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class CourseDetailResponse(CourseResponse):
    lessons: list[LessonResponse] = []


class DeleteCourseResponse(BaseModel):
    success: bool
    deleted: CourseResponse


def parse_course_id(raw_id: str) -> int:
    if not raw_id.isascii() or not raw_id.isdigit():
        raise InvalidInput('Invalid course ID')
    return int(raw_id)


def find_course(db: Session, course_id: int) -> Course | None:
    # Ids past the 64-bit range cannot be bound by every driver and match no row.
    if course_id > MAX_COURSE_ID:
        return None
    return db.get(Course, course_id)


def database_failure(db: Session, exc: SQLAlchemyError) -> DependencyFailure:
    db.rollback()
    logger.exception('Database operation failed', exc_info=exc)
    return DependencyFailure()


@router.get('', response_model=list[CourseResponse])
def list_courses(db: Session = Depends(get_db)):
    try:
        courses = db.query(Course).order_by(Course.id.asc()).all()
        return [CourseResponse.model_validate(course) for course in courses]
    except SQLAlchemyError as exc:
        raise database_failure(db, exc) from exc


@router.get('/{course_id}', response_model=CourseDetailResponse)
def get_course(course_id: str, db: Session = Depends(get_db)):
    parsed_id = parse_course_id(course_id)

    try:
        course = find_course(db, parsed_id)
        if course is None:
            raise NotFound('Course not found')
        return CourseDetailResponse.model_validate(course)
    except SQLAlchemyError as exc:
        raise database_failure(db, exc) from exc


@router.post('', response_model=CourseResponse)
def create_course(
    data: CreateCourseRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    try:
        course = Course(title=data.title, description=data.description)
        db.add(course)
        db.commit()
        db.refresh(course)
        logger.info('Course %s created by %s', course.id, identity.email)
        return CourseResponse.model_validate(course)
    except SQLAlchemyError as exc:
        raise database_failure(db, exc) from exc


@router.delete('/{course_id}', response_model=DeleteCourseResponse)
def delete_course(
    course_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    parsed_id = parse_course_id(course_id)

    try:
        course = find_course(db, parsed_id)
        if course is None:
            raise NotFound('Course not found')
        deleted = CourseResponse.model_validate(course)

        # Lessons go first so no lesson row ever outlives its course.
        lesson_count = db.query(Lesson).filter(Lesson.course_id == parsed_id).delete(synchronize_session=False)
        removed = db.query(Course).filter(Course.id == parsed_id).delete(synchronize_session=False)
        if removed == 0:
            db.rollback()
            raise NotFound('Course not found')
        db.commit()
        logger.info('Course %s deleted by %s with %s lessons', parsed_id, identity.email, lesson_count)
        return DeleteCourseResponse(success=True, deleted=deleted)
    except SQLAlchemyError as exc:
        raise database_failure(db, exc) from exc


@router.get('/{course_id}/lessons', response_model=list[LessonResponse])
def list_lessons(course_id: str, db: Session = Depends(get_db)):
    parsed_id = parse_course_id(course_id)
    if parsed_id > MAX_COURSE_ID:
        return []

    try:
        lessons = (
            db.query(Lesson)
            .filter(Lesson.course_id == parsed_id)
            .order_by(Lesson.created_at.asc(), Lesson.id.asc())
            .all()
        )
        return [LessonResponse.model_validate(lesson) for lesson in lessons]
    except SQLAlchemyError as exc:
        raise database_failure(db, exc) from exc


@router.post('/{course_id}/lessons', response_model=LessonResponse)
def create_lesson(course_id: str, data: CreateLessonRequest, db: Session = Depends(get_db)):
    parsed_id = parse_course_id(course_id)

    try:
        if find_course(db, parsed_id) is None:
            raise NotFound('Course not found')

        lesson = Lesson(title=data.title, content=data.content, course_id=parsed_id)
        db.add(lesson)
        db.commit()
        db.refresh(lesson)
        return LessonResponse.model_validate(lesson)
    except SQLAlchemyError as exc:
        raise database_failure(db, exc) from exc
