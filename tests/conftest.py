import pytest
from flask_jwt_extended import create_access_token
from classcraft import create_app
from classcraft.config import TestingConfig
from classcraft.extensions import db
from classcraft.models import RoleEnum, SchoolClass, Student, User
from classcraft.utils.access_control import AccessContext


class RateLimitedConfig(TestingConfig):
    RATELIMIT_ENABLED = True


def _seed():
    admin = User(name="Admin", email="admin@example.com", role=RoleEnum.admin)
    teacher = User(name="Ms Rao", email="rao@example.com", role=RoleEnum.teacher)
    other_teacher = User(name="Mr Khan", email="khan@example.com", role=RoleEnum.teacher)
    pupil = User(name="Pupil", email="pupil@example.com", role=RoleEnum.student)
    db.session.add_all([admin, teacher, other_teacher, pupil])
    db.session.commit()

    class_8a = SchoolClass(name="8A", grade="8", teacher_id=teacher.id)
    class_8b = SchoolClass(name="8B", grade="8", teacher_id=other_teacher.id)
    db.session.add_all([class_8a, class_8b])
    db.session.commit()

    db.session.add_all([
        Student(id="s1", name="Alice", enroll_no="A01", class_id=class_8a.id),
        Student(id="s2", name="Bob", enroll_no="A02", class_id=class_8a.id),
        Student(id="s3", name="Cara", enroll_no="A03", class_id=class_8a.id),
        Student(id="s4", name="Dev", enroll_no="B01", class_id=class_8b.id),
    ])
    db.session.commit()

    return {
        "admin": admin.id,
        "teacher": teacher.id,
        "other_teacher": other_teacher.id,
        "student": pupil.id,
    }


def _build_app(config_class, tmp_path):
    app = create_app(config_class)
    app.config["AUDIT_LOG_FILE"] = str(tmp_path / "logs" / "audit.log")

    with app.app_context():
        app.config["TEST_USER_IDS"] = _seed()
        yield app

        db.session.remove()
        db.drop_all()


@pytest.fixture
def app(tmp_path):
    yield from _build_app(TestingConfig, tmp_path)


@pytest.fixture
def limited_app(tmp_path):
    yield from _build_app(RateLimitedConfig, tmp_path)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user_ids(app):
    return app.config["TEST_USER_IDS"]


@pytest.fixture
def auth_headers(app, user_ids):
    def _headers(who):
        token = create_access_token(identity=str(user_ids[who]))
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def caller(app, user_ids):
    def _caller(who):
        return AccessContext.for_user(db.session.get(User, user_ids[who]))
    return _caller
