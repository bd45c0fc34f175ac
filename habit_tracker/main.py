import logging

import uvicorn

from habit_tracker.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    logger.info("Starting habit tracker on %s:%s", settings.HOST, settings.PORT)
    uvicorn.run(
        "habit_tracker.api.app:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
