# concern2care/db/base.py
from sqlalchemy.orm import declarative_base

Base = declarative_base()

from concern2care.models.enrolled_teacher import EnrolledTeacher  # noqa
from concern2care.models.submission import Submission  # noqa
from concern2care.models.notification import AdminNotification  # noqa
