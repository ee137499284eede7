import uvicorn

from pulsecheck.config import settings
from pulsecheck.main import build_default_app


def main() -> None:
    uvicorn.run(build_default_app(), host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    main()
