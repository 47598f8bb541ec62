import os
from pathlib import Path
from dotenv import load_dotenv
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent  # <project>
INSTANCE_DIR = BASE_DIR / "instance"
INSTANCE_DIR.mkdir(parents=True, exist_ok=True)

def _default_sqlite_uri():
    return f"sqlite:///{(INSTANCE_DIR / 'smartcore.db').as_posix()}"

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or _default_sqlite_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # shared secret of the external monthly cron trigger; empty disables token access
    PAYROLL_CRON_TOKEN = os.getenv("PAYROLL_CRON_TOKEN", "")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

def ensure_instance(app):
    # Flask instance path
    os.makedirs(app.instance_path, exist_ok=True)
