import logging

import uvicorn

from core import config


def main() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger(__name__).info("Hospital dashboard API starting on port %s", config.PORT)
    uvicorn.run("api.main:app", host="0.0.0.0", port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
