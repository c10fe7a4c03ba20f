import os


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_TIMEOUT_MINUTES = int(os.environ.get("SESSION_TIMEOUT_MINUTES", 120))
    # Scheduling
    ALLOW_WEEKEND_SESSIONS = _env_flag("ALLOW_WEEKEND_SESSIONS", "true")
    SESSION_DEFAULT_DURATION_HOURS = float(os.environ.get("SESSION_DEFAULT_DURATION_HOURS", 1))
    UNKNOWN_CLASS_LABEL = os.environ.get("UNKNOWN_CLASS_LABEL", "Unknown Class")
    UNKNOWN_ROOM_LABEL = os.environ.get("UNKNOWN_ROOM_LABEL", "Unknown Room")
    # Teacher workload caps
    TEACHER_MAX_HOURS_PER_WEEK = int(os.environ.get("TEACHER_MAX_HOURS_PER_WEEK", 20))
    TEACHER_MAX_CLASSES = int(os.environ.get("TEACHER_MAX_CLASSES", 5))
    # Audit
    ACTIVITY_LOG_ENABLED = _env_flag("ACTIVITY_LOG_ENABLED", "true")


class DevelopmentConfig(BaseConfig):
    # Default to instance/tuition.db unless overridden
    @staticmethod
    def database_uri(instance_path: str) -> str:
        db_path = os.environ.get("DATABASE_PATH")
        if db_path:
            return f"sqlite:///{db_path}"
        return "sqlite:///" + os.path.join(instance_path, "tuition.db")


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URI", "sqlite:///:memory:")


class ProductionConfig(BaseConfig):
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URI", "sqlite:///tuition.db")
