import logging
import sys
from pythonjsonlogger import jsonlogger


class DefaultFieldsFilter(logging.Filter):
    def filter(self, record):
        record.service = 'devmap'
        return True


def setup_logging(level: str = "INFO", json_output: bool = True) -> logging.Logger:
    """
    Sets up centralized logging for DevMap.

    Logs go to stderr so that tables and `devmap show` output on stdout stay
    clean for piping. With ``json_output`` the records are structured JSON,
    otherwise a short human-readable line.
    """
    logger = logging.getLogger('devmap')
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Reconfiguring must not stack handlers
    for handler in list(logger.handlers):
        if getattr(handler, '_devmap_handler', False):
            logger.removeHandler(handler)

    if json_output:
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={'levelname': 'level', 'asctime': 'timestamp', 'name': 'logger'},
            json_ensure_ascii=False
        )
    else:
        formatter = logging.Formatter('%(levelname)s: %(message)s')

    if not any(isinstance(f, DefaultFieldsFilter) for f in logger.filters):
        logger.addFilter(DefaultFieldsFilter())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler._devmap_handler = True
    logger.addHandler(handler)

    # Library noise stays at WARNING unless configured by their own loggers
    logging.getLogger().setLevel(logging.WARNING)

    return logger
