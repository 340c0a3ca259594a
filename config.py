import os
from dotenv import load_dotenv
load_dotenv()


def _to_bool(s, default=False):
    if s is None:
        return default
    return str(s).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///reviewdesk.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    RQ_ENABLED = _to_bool(os.getenv("RQ_ENABLED"), True)
    RQ_QUEUE = os.getenv("RQ_QUEUE", "default")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # pre-criteria reviews were rated on a 1-10 scale
    LEGACY_SCORE_SCALE = int(os.getenv("LEGACY_SCORE_SCALE", "10"))
    # middle of the 1-5 band, written when a review row is created lazily
    REVIEW_PLACEHOLDER_SCORE = int(os.getenv("REVIEW_PLACEHOLDER_SCORE", "3"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    RQ_ENABLED = False
    LOG_LEVEL = "DEBUG"
