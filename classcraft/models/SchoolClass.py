from classcraft.extensions import db
from classcraft.utils.dates import utcnow


class SchoolClass(db.Model):
    __tablename__ = 'classes'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), nullable=False, unique=True)
    grade = db.Column(db.String(50), nullable=False)
    students_limit = db.Column(db.Integer, nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    teacher = db.relationship('User', back_populates='classes')
    students = db.relationship('Student', back_populates='school_class', lazy=True)
    attendance_sessions = db.relationship('AttendanceSession', back_populates='school_class', lazy='dynamic')

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "grade": self.grade,
            "studentsLimit": self.students_limit,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "teacher": {
                "id": self.teacher.id,
                "name": self.teacher.name,
                "email": self.teacher.email,
            } if self.teacher else None,
        }
