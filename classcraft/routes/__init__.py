from .base_route import base_bp
from .attendance import attendance_bp
from .classes import classes_bp

def register_routes(app):
    app.register_blueprint(base_bp)
    app.register_blueprint(attendance_bp, url_prefix='/attendance')
    app.register_blueprint(classes_bp, url_prefix='/classes')
