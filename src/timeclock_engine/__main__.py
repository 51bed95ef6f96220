"""Run the time clock API: ``python -m timeclock_engine`` or ``timeclock-engine``."""

import uvicorn

from timeclock_engine.app_logger import setup_logging
from timeclock_engine.config import settings


def main() -> None:
    setup_logging(settings.log_level)
    uvicorn.run(
        "timeclock_engine.api.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
