from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from classcraft.utils.access_control import check_class_access, get_allowed_classes
from classcraft.utils.decorators import role_required, get_current_caller
from classcraft.utils.roster import find_students_by_class
from classcraft.utils.serialization import to_dict

classes_bp = Blueprint("classes", __name__)


@classes_bp.route('/my-classes', methods=['GET'])
@jwt_required()
def my_classes():
    """Admins get every class, teachers their own, students none."""
    caller = get_current_caller()
    return jsonify([c.to_dict() for c in get_allowed_classes(caller)]), 200


@classes_bp.route('/<class_name>/students', methods=['GET'])
@jwt_required()
@role_required("admin", "teacher")
def class_roster(class_name):
    caller = get_current_caller()
    school_class = check_class_access(class_name, caller)

    students = find_students_by_class(school_class.id)
    return jsonify([
        to_dict(s, exclude=("user_id", "created_at")) for s in students
    ]), 200
