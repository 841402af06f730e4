import uuid
from classcraft.extensions import db
from classcraft.utils.dates import utcnow


def _new_student_id():
    return uuid.uuid4().hex


class Student(db.Model):
    __tablename__ = 'students'

    id = db.Column(db.String(36), primary_key=True, default=_new_student_id)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    enroll_no = db.Column(db.String(20), unique=True, nullable=False)
    contact = db.Column(db.String(40), nullable=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    school_class = db.relationship('SchoolClass', back_populates='students')
    user = db.relationship('User', backref=db.backref('student_profile', uselist=False))
