from .User import User
from .SchoolClass import SchoolClass
from .Student import Student
from .Attendance import AttendanceSession
from .AuditLog import AuditLog
from .base import RoleEnum, AttendanceStatus, MARK_STATUSES
