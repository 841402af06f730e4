import os
from datetime import timedelta
from classcraft.extensions import db
from classcraft.models import AttendanceSession, AuditLog, RoleEnum, SchoolClass, Student, User
from classcraft.attendance import upsert_session
from classcraft.utils.dates import normalize_day
from classcraft.utils.roster import next_enroll_no

DEMO_CLASSES = {
    "Grade 8 - A": ["Aarav Shah", "Diya Patel", "Kabir Rao", "Meera Iyer"],
    "Grade 8 - B": ["Ishaan Nair", "Sara Khan", "Vivaan Gupta"],
}


def seed_data(reset=False, history_days=5):
    """
    Inserts a demo admin, one teacher per class, rosters and a few days of attendance.

    Returns the number of attendance sessions written.
    """
    if reset:
        AttendanceSession.query.delete()
        Student.query.delete()
        SchoolClass.query.delete()
        AuditLog.query.delete()
        User.query.delete()
        db.session.commit()

    admin_email = os.getenv("ADMIN_EMAIL", "admin@classcraft.local")
    if not User.query.filter_by(email=admin_email).first():
        db.session.add(User(name="Admin", email=admin_email, role=RoleEnum.admin))
        db.session.commit()

    written = 0
    today = normalize_day()
    for index, (class_name, names) in enumerate(DEMO_CLASSES.items(), start=1):
        teacher_email = f"teacher{index}@classcraft.local"
        teacher = User.query.filter_by(email=teacher_email).first()
        if not teacher:
            teacher = User(name=f"Teacher {index}", email=teacher_email, role=RoleEnum.teacher)
            db.session.add(teacher)
            db.session.commit()

        school_class = SchoolClass.query.filter_by(name=class_name).first()
        if not school_class:
            school_class = SchoolClass(name=class_name, grade="8", students_limit=40, teacher_id=teacher.id)
            db.session.add(school_class)
            db.session.commit()

        for name in names:
            if Student.query.filter_by(class_id=school_class.id, name=name).first():
                continue
            # committed one by one so next_enroll_no sees the previous student
            db.session.add(Student(name=name, enroll_no=next_enroll_no(school_class), class_id=school_class.id))
            db.session.commit()

        roster = Student.query.filter_by(class_id=school_class.id).order_by(Student.name).all()
        for offset in range(history_days):
            day = today - timedelta(days=offset)
            records = [
                {
                    "studentId": student.id,
                    "studentName": student.name,
                    "enrollNo": student.enroll_no,
                    "status": "Absent" if (position + offset) % 4 == 0 else "Present",
                }
                for position, student in enumerate(roster)
            ]
            upsert_session(school_class.id, day, records, recorded_by=teacher.id)
            written += 1

    return written
