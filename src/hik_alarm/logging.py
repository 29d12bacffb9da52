import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging for the alarm checker.
    """

    # Convert "INFO" -> logging.INFO etc.
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    # Configure root logger.
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)


class CameraLogAdapter(logging.LoggerAdapter):
    """
    Prefixes every record with the camera address so interleaved
    output from many camera threads stays readable.
    """

    def process(self, msg, kwargs):
        return f"[{self.extra['address']}] {msg}", kwargs
