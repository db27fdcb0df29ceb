import logging


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # pymongo heartbeat chatter
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    # passlib complains about newer bcrypt builds
    logging.getLogger("passlib").setLevel(logging.ERROR)
