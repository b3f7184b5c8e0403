import logging
from pythonjsonlogger import jsonlogger


def setup_logger(level: int = logging.INFO) -> None:
    logger = logging.getLogger()
    logger.setLevel(level)
    # create_app may run more than once per process.
    if any(isinstance(handler.formatter, jsonlogger.JsonFormatter)
           for handler in logger.handlers):
        return
    log_handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s',
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    )
    log_handler.setFormatter(formatter)
    logger.addHandler(log_handler)
