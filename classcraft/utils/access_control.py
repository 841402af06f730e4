from classcraft.errors import AuthenticationError, AuthorizationError, NotFoundError
from classcraft.models import SchoolClass, RoleEnum
from classcraft.utils.roster import find_class_by_name

ELEVATED_ROLES = {RoleEnum.admin}


class AccessContext:
    """
    What the caller of a request may touch, resolved once per request.

    - Elevated roles (admin) can read and write every class.
    - Teachers are limited to the classes they own.
    - Students get no access to class attendance.
    """

    def __init__(self, user_id, role, owned_class_ids=()):
        self.user_id = user_id
        self.role = role
        self.owned_class_ids = frozenset(owned_class_ids)

    @classmethod
    def for_user(cls, user):
        if not user:
            raise AuthenticationError("User not found")

        owned = ()
        if user.role == RoleEnum.teacher:
            owned = [
                class_id for (class_id,) in
                SchoolClass.query.with_entities(SchoolClass.id).filter_by(teacher_id=user.id).all()
            ]
        return cls(user.id, user.role, owned)

    @property
    def is_elevated(self):
        return self.role in ELEVATED_ROLES

    def can_access(self, school_class):
        if self.is_elevated:
            return True
        if self.role == RoleEnum.teacher:
            return school_class.id in self.owned_class_ids
        return False


def check_class_access(class_name, caller):
    """
    Resolves a class by name and verifies the caller may use it.

    Raises NotFoundError for an unknown class and AuthorizationError when the
    caller neither owns the class nor holds an elevated role.
    """
    school_class = find_class_by_name(class_name)
    if school_class is None:
        raise NotFoundError("Class not found")

    if not caller.can_access(school_class):
        raise AuthorizationError("Forbidden: you do not manage this class")

    return school_class


def get_allowed_classes(caller):
    query = SchoolClass.query.order_by(SchoolClass.name)
    if caller.is_elevated:
        return query.all()
    if not caller.owned_class_ids:
        return []
    return query.filter(SchoolClass.id.in_(caller.owned_class_ids)).all()
