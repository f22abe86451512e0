from dataclasses import dataclass
import os

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    db_driver: str
    db_server: str
    db_port: int
    db_name: str
    db_user: str
    db_password: str
    log_level: str
    batch_size: int
    concurrency: int
    progress_interval_seconds: float


def get_settings() -> Settings:
    return Settings(
        app_name=os.getenv("APP_NAME", "bulkimport"),
        database_url=os.getenv("DATABASE_URL", ""),
        db_driver=os.getenv("DB_DRIVER", "mysql+pymysql"),
        db_server=os.getenv("DB_SERVER", "localhost"),
        db_port=int(os.getenv("DB_PORT", "3306")),
        db_name=os.getenv("DB_NAME", ""),
        db_user=os.getenv("DB_USER", ""),
        db_password=os.getenv("DB_PASSWORD", ""),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        batch_size=int(os.getenv("BATCH_SIZE", "1000")),
        concurrency=int(os.getenv("CONCURRENCY", str(os.cpu_count() or 1))),
        progress_interval_seconds=float(os.getenv("PROGRESS_INTERVAL_SECONDS", "1")),
    )
