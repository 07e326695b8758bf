import os
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

PROJECT_ROOT = os.getenv("AUTOQA_PROJECT_ROOT", os.getcwd())

EXPORT_DIR = os.getenv("AUTOQA_EXPORT_DIR", "tests/autoqa")
RUNS_DIR = os.getenv("AUTOQA_RUNS_DIR", ".autoqa/runs")
IR_FILE_NAME = os.getenv("AUTOQA_IR_FILE_NAME", "ir.jsonl")
ENV_HELPER_PATH = os.getenv("AUTOQA_ENV_HELPER_PATH", "tests/helpers/autoqa-env.ts")

BASE_URL = os.getenv("AUTOQA_BASE_URL")
LOGIN_BASE_URL = os.getenv("AUTOQA_LOGIN_BASE_URL")

API_PREFIX = os.getenv("API_PREFIX", "/api/v1")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

MAX_FILE_NAME_LENGTH = 200
ENV_VAR_PREFIX = "AUTOQA_"


def get_log_level() -> int:
    level = logging.getLevelName(LOG_LEVEL)
    if isinstance(level, int):
        return level
    logger.warning(f"Unknown LOG_LEVEL '{LOG_LEVEL}', falling back to INFO")
    return logging.INFO
