""" logger factory shared by all ifquery modules """

import logging

CRITICAL = logging.CRITICAL
ERROR    = logging.ERROR
WARNING  = logging.WARNING
INFO     = logging.INFO
DEBUG    = logging.DEBUG

LOG_FORMAT  = "%(asctime)s %(my_name)s: [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y/%m/%d:%H:%M:%S"

def get_logger(name, level=WARNING):
    """ return the logger for module 'name' with a stderr handler attached
        the handler is added only the first time a logger is requested """

    logging.addLevelName(CRITICAL, "critical")
    logging.addLevelName(ERROR,    "error")
    logging.addLevelName(WARNING,  "warning")
    logging.addLevelName(INFO,     "info")
    logging.addLevelName(DEBUG,    "debug")

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    modname = name.split('.')[-1]
    ch = logging.StreamHandler()
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT,
                            defaults={"my_name": modname[:8].upper()})
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    return logger
