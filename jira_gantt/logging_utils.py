from __future__ import annotations
import logging

def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        ch = logging.StreamHandler()
        fmt = logging.Formatter('[%(levelname)s] %(message)s')
        ch.setFormatter(fmt)
        logger.addHandler(ch)
    return logger


def set_verbosity(verbose: bool) -> None:
    """Switch every jira_gantt logger between INFO and DEBUG."""
    level = logging.DEBUG if verbose else logging.INFO
    for name, obj in logging.root.manager.loggerDict.items():
        if name.startswith("jira_gantt") and isinstance(obj, logging.Logger):
            obj.setLevel(level)
