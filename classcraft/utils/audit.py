import os
from flask import current_app
from classcraft.utils.dates import utcnow

DEFAULT_AUDIT_LOG_FILE = os.path.join("logs", "audit.log")

def log_event(event_type, user_id=None, ip=None, description=None, level="INFO"):
    """
    Logs an audit-related event to the configured audit file.

    Parameters:
        event_type (str): The type of the event (e.g., ATTENDANCE_SAVED).
        user_id (int|None): The user ID, if available.
        ip (str|None): IP address, if available.
        description (str|None): Additional context.
        level (str): Log level (e.g., INFO, WARNING, ERROR).
    """
    log_file_path = current_app.config.get("AUDIT_LOG_FILE") or DEFAULT_AUDIT_LOG_FILE
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    timestamp = utcnow().strftime('%Y-%m-%d %H:%M:%S')
    log_entry = (
        f"[{timestamp}] [{level.upper()}] EVENT: {event_type} | "
        f"USER: {user_id or 'N/A'} | IP: {ip or 'N/A'} | DESC: {description or 'N/A'}\n"
    )

    with open(log_file_path, "a") as log_file:
        log_file.write(log_entry)
