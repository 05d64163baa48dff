import os


def _flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Settings shared by every environment module."""

    # Database
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "hr_platform")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Leave policy: ordered approver types per leave kind.
    LEAVE_APPROVAL_STEPS = {
        "advance": ["cover_person", "manager", "admin"],
        "post": ["manager", "admin"],
    }
    LEAVE_DEFAULT_ADVANCE_TYPE = os.environ.get("LEAVE_DEFAULT_ADVANCE_TYPE", "casual")
    LEAVE_DEFAULT_POST_TYPE = os.environ.get("LEAVE_DEFAULT_POST_TYPE", "sick")
    LEAVE_WARNING_DAYS = int(os.environ.get("LEAVE_WARNING_DAYS", "2"))
    LEAVE_STRICT_BALANCE = _flag("LEAVE_STRICT_BALANCE")

    # Flask-Mail; notifications fall back to the log when MAIL_SERVER is empty.
    MAIL_SERVER = os.environ.get("MAIL_SERVER", "")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USE_TLS = _flag("MAIL_USE_TLS", "1")
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER", "no-reply@example.com")

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }
