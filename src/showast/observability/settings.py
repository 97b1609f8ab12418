import os
import random


def _parse_sample_rate() -> float:
    raw = os.getenv("SHOWAST_LOG_SAMPLE_RATE", "1.0")
    try:
        return float(raw)
    except ValueError:
        return 1.0


SHOWAST_LOG_SAMPLE_RATE = _parse_sample_rate()


def should_sample() -> bool:
    if SHOWAST_LOG_SAMPLE_RATE >= 1.0:
        return True
    return random.random() < SHOWAST_LOG_SAMPLE_RATE  # nosec B311
