import os

from config.config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = Config.db_config()

DEBUG = False

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

LEAVE_APPROVAL_STEPS = Config.LEAVE_APPROVAL_STEPS
LEAVE_DEFAULT_ADVANCE_TYPE = Config.LEAVE_DEFAULT_ADVANCE_TYPE
LEAVE_DEFAULT_POST_TYPE = Config.LEAVE_DEFAULT_POST_TYPE
LEAVE_WARNING_DAYS = Config.LEAVE_WARNING_DAYS
LEAVE_STRICT_BALANCE = Config.LEAVE_STRICT_BALANCE

MAIL_SERVER = Config.MAIL_SERVER
MAIL_PORT = Config.MAIL_PORT
MAIL_USE_TLS = Config.MAIL_USE_TLS
MAIL_USERNAME = Config.MAIL_USERNAME
MAIL_PASSWORD = Config.MAIL_PASSWORD
MAIL_DEFAULT_SENDER = Config.MAIL_DEFAULT_SENDER
