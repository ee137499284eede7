import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings:
    PORT: int = int(os.getenv("PORT", 3000))
    POLL_INTERVAL_S: float = float(os.getenv("POLL_INTERVAL_S", "10"))
    REQUEST_TIMEOUT_S: float = float(os.getenv("REQUEST_TIMEOUT_S", "5"))
    TARGETS_PATH: Path = Path(
        os.getenv(
            "PULSECHECK_TARGETS_PATH",
            str(Path(__file__).resolve().parents[1] / "targets.yml"),
        )
    )
    TARGET_URLS: tuple[str, ...] = tuple(
        url.strip()
        for url in os.getenv("PULSECHECK_TARGETS", "").split(",")
        if url.strip()
    )
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    USER_AGENT: str | None = os.getenv("PULSECHECK_USER_AGENT")


settings = Settings()


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
