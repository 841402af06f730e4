import re
from classcraft.models import SchoolClass, Student


def find_class_by_name(name):
    if not name:
        return None
    return SchoolClass.query.filter_by(name=name.strip()).first()


def find_students_by_class(class_id):
    """Current roster of a class, alphabetical by name (ties broken by id)."""
    return (
        Student.query
        .filter_by(class_id=class_id)
        .order_by(Student.name, Student.id)
        .all()
    )


def parse_section(class_name):
    """'Grade 8 - A' -> 'A', 'Grade 8 B' -> 'B', anything else -> 'A'."""
    if not class_name:
        return "A"
    dash_match = re.search(r"-\s*([A-Za-z])\s*$", class_name)
    if dash_match:
        return dash_match.group(1).upper()
    last = class_name.strip().split()[-1]
    if re.fullmatch(r"[A-Za-z]", last):
        return last.upper()
    return "A"


def next_enroll_no(school_class):
    """Next free enrollment number of a class, e.g. A01, A02 ... for section A."""
    section = parse_section(school_class.name)
    pattern = re.compile(rf"^{section}(\d+)$", re.IGNORECASE)

    highest = 0
    for (enroll_no,) in Student.query.with_entities(Student.enroll_no).filter_by(class_id=school_class.id).all():
        match = pattern.match(enroll_no or "")
        if match:
            highest = max(highest, int(match.group(1)))

    return f"{section}{highest + 1:02d}"
