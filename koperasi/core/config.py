from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path

# Find .env file - check koperasi/ directory first, then project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent
PACKAGE_ENV = BASE_DIR / "koperasi" / ".env"
ROOT_ENV = BASE_DIR / ".env"

# Use koperasi/.env if it exists, otherwise try root .env
env_file = str(PACKAGE_ENV) if PACKAGE_ENV.exists() else (str(ROOT_ENV) if ROOT_ENV.exists() else ".env")


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./koperasi.db"

    # Scheduler (daily payroll-day check)
    SCHEDULER_ENABLED: bool = True
    PAYROLL_CRON_HOUR: int = 1
    PAYROLL_CRON_MINUTE: int = 0

    # Settlement transaction bounds
    PAYROLL_TRANSACTION_TIMEOUT_SECONDS: int = 120
    PAYROLL_TRANSACTION_MAX_WAIT_SECONDS: int = 10

    # Audit
    AUDIT_LOG_DIR: Optional[str] = None

    # Application
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = env_file
        case_sensitive = True


settings = Settings()

# Derived paths
LOGS_DIR = Path(settings.AUDIT_LOG_DIR) if settings.AUDIT_LOG_DIR else BASE_DIR / "logs"
