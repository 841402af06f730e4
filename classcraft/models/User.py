from classcraft.extensions import db
from classcraft.utils.dates import utcnow
from .base import RoleEnum


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    role = db.Column(db.Enum(RoleEnum), nullable=False, default=RoleEnum.student, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    classes = db.relationship('SchoolClass', back_populates='teacher', lazy=True)
    audit_logs = db.relationship('AuditLog', backref='user', lazy=True)

    def __repr__(self):
        return f"<User {self.id} {self.role.value if self.role else None}>"
