import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger("tonebridge")

def setup_logging(level: str = "INFO"):
    """Configure root logging for the ToneBridge process"""
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        logger.warning(f"Unknown log level '{level}', using INFO")
        numeric_level = logging.INFO

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logger.setLevel(numeric_level)
