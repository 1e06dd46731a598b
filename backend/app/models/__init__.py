from app.models.academic import Grade, Homeroom, HomeroomGrade, Section, Semester  # noqa: F401
from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.block import Block  # noqa: F401
from app.models.class_session import ClassSession, ClassSessionTeacher  # noqa: F401
from app.models.duty import Duty, DutyType  # noqa: F401
from app.models.room import Room, RoomType  # noqa: F401
from app.models.school_class import SchoolClass  # noqa: F401
from app.models.teacher import Teacher  # noqa: F401
