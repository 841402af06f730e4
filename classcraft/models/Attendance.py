from datetime import timezone
from classcraft.extensions import db
from classcraft.utils.dates import utcnow
from .base import AttendanceStatus


class AttendanceSession(db.Model):
    """One roster of marks per class per UTC calendar day.

    ``records`` is replaced as a whole on every save; the unique constraint on
    (class_id, day) is what keeps a class from having two sessions on one day.
    """

    __tablename__ = 'attendance_sessions'

    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
    day = db.Column(db.Date, nullable=False)
    recorded_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    recorded_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    records = db.Column(db.JSON, nullable=False, default=list)

    school_class = db.relationship('SchoolClass', back_populates='attendance_sessions')

    __table_args__ = (
        db.UniqueConstraint('class_id', 'day', name='uq_attendance_class_day'),
    )

    def tally(self):
        records = self.records or []
        present = sum(1 for r in records if r.get("status") == AttendanceStatus.present.value)
        absent = sum(1 for r in records if r.get("status") == AttendanceStatus.absent.value)
        return present, absent

    def to_dict(self, class_name=None):
        present, absent = self.tally()
        if class_name is None and self.school_class is not None:
            class_name = self.school_class.name
        recorded_at = self.recorded_at
        # SQLite hands timestamps back without tzinfo; they are always stored as UTC
        if recorded_at is not None and recorded_at.tzinfo is None:
            recorded_at = recorded_at.replace(tzinfo=timezone.utc)
        return {
            "id": self.id,
            "className": class_name,
            "date": self.day.isoformat(),
            "recordedAt": recorded_at.isoformat() if recorded_at else None,
            "recordedBy": self.recorded_by,
            "total": len(self.records or []),
            "present": present,
            "absent": absent,
            "records": list(self.records or []),
        }
