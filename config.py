import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")


def _database_url() -> str:
    """URL SQLAlchemy de la base, DB_PATH étant un raccourci vers un fichier SQLite"""
    db_path = os.getenv("DB_PATH")
    if db_path:
        path = Path(db_path)
        if not path.is_absolute():
            path = BASE_DIR / path
        return f"sqlite:///{path}"
    return os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'budget.db'}")


class Config:
    DATABASE_URL = _database_url()
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", 3001))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
