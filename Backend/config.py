# config.py
import os
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    DEBUG = _env_bool("DEBUG")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    PORT = int(os.getenv("PORT", "5001"))
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))

    # Deployed getRandomMovie function (see functions/main.py)
    RANDOM_MOVIE_FUNCTION_URL = os.getenv(
        "RANDOM_MOVIE_FUNCTION_URL", "https://getrandommovie-gswuy2kjqq-uc.a.run.app"
    )

    # Website analytics proxied by /api/stats
    UMAMI_API_URL = os.getenv("UMAMI_API_URL", "https://api.umami.is/v1")
    UMAMI_API_KEY = os.getenv("UMAMI_API_KEY") or os.getenv("PUBLIC_UMAMI_API_KEY")
    UMAMI_WEBSITE_ID = os.getenv("UMAMI_WEBSITE_ID", "4e15035b-7c4c-4239-914a-3187a48999bd")

    MOVIES_JSON_PATH = os.getenv("MOVIES_JSON_PATH", "static/data/movies.json")

    FIREBASE_SERVICE_ACCOUNT_JSON = os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON")
    GOOGLE_APPLICATION_CREDENTIALS = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    FIREBASE_CREDENTIALS_DIR = Path(__file__).resolve().parent / "firebase" / "credentials"

    @classmethod
    def firebase_cred_path(cls) -> str | None:
        """
        Service-account file for firebase-admin: GOOGLE_APPLICATION_CREDENTIALS,
        else the first *.json under firebase/credentials. None means use the
        JSON blob or Application Default Credentials.
        """
        if cls.GOOGLE_APPLICATION_CREDENTIALS:
            path = Path(os.path.expanduser(cls.GOOGLE_APPLICATION_CREDENTIALS.strip().strip('"')))
            if not path.exists():
                raise FileNotFoundError(f"Firebase credential file not found: {path}")
            return str(path)

        matches = sorted(cls.FIREBASE_CREDENTIALS_DIR.glob("*.json"))
        return str(matches[0]) if matches else None


def configure_logging(level: str | None = None):
    """Install the root handler once; later calls only adjust the level."""
    level = (level or Config.LOG_LEVEL).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root.setLevel(level)
