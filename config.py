import os


def _flag(name, default="0"):
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "sunday_school_secret"

    # MongoDB
    MONGO_URI = os.environ.get("MONGO_URI", "mongodb://localhost:27017/SundaySchool")

    # Seconds of quiet before a coalesced write is sent
    ATTENDANCE_QUIET_PERIOD = float(os.environ.get("ATTENDANCE_QUIET_PERIOD", "0.3"))
    DIRECTORY_QUIET_PERIOD = float(os.environ.get("DIRECTORY_QUIET_PERIOD", "0.4"))

    ROWS_PER_PAGE = int(os.environ.get("ROWS_PER_PAGE", "10"))

    # Bulk stage transfer is locked until the operators ask for it
    ENABLE_STAGE_MOVE = _flag("ENABLE_STAGE_MOVE")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    DEBUG = _flag("DEBUG")


class TestingConfig(Config):
    TESTING = True
    MONGO_URI = "mongodb://localhost:27017/SundaySchoolTest"
    # Tests flush explicitly instead of waiting on timers
    ATTENDANCE_QUIET_PERIOD = 5.0
    DIRECTORY_QUIET_PERIOD = 5.0
    ENABLE_STAGE_MOVE = True
    LOG_LEVEL = "DEBUG"
