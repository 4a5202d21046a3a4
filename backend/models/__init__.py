from models.base import Base
from models.notification import Notification
from models.school_class import SchoolClass
from models.subject import Subject
from models.teacher import Teacher
from models.teacher_subject import TeacherSubject
from models.timetable import Timetable

__all__ = [
	"Base",
	"Notification",
	"SchoolClass",
	"Subject",
	"Teacher",
	"TeacherSubject",
	"Timetable",
]
