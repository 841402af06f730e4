import enum


class RoleEnum(enum.Enum):
    admin = "admin"
    teacher = "teacher"
    student = "student"


class AttendanceStatus(enum.Enum):
    present = "Present"
    absent = "Absent"
    not_recorded = "NotRecorded"


# statuses a teacher may submit; NotRecorded only exists in derived reports
MARK_STATUSES = (AttendanceStatus.present.value, AttendanceStatus.absent.value)
