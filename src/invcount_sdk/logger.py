import json
import logging
from datetime import datetime, timezone


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def log_action(
    logger: logging.Logger,
    module: str,
    action: str,
    count_id: str | None,
    trace_id: str | None,
    outcome: str,
    level: int = logging.INFO,
    **extra: object,
) -> None:
    record = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": logging.getLevelName(level),
        "module": module,
        "action": action,
        "count_id": count_id,
        "trace_id": trace_id,
        "outcome": outcome,
    }
    record.update(extra)
    logger.log(level, json.dumps(record, default=str))
