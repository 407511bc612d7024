"""System routes for logs and diagnostics."""

import logging
from collections import deque
from typing import List, Dict, Any
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter()

# Global in-memory log buffer
LOG_BUFFER: deque = deque(maxlen=100)

_STANDARD_RECORD_FIELDS = {
    'args', 'asctime', 'created', 'exc_info', 'exc_text', 'filename',
    'funcName', 'levelname', 'levelno', 'lineno', 'module',
    'msecs', 'message', 'msg', 'name', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info', 'taskName', 'thread', 'threadName',
}


class LogEntry(BaseModel):
    timestamp: str
    level: str
    logger: str
    message: str
    extra: Dict[str, Any]


class MemoryLogHandler(logging.Handler):
    """Keeps the most recent story log records for the diagnostics endpoint."""

    def emit(self, record):
        try:
            extra = {
                k: v for k, v in record.__dict__.items() if k not in _STANDARD_RECORD_FIELDS
            }
            LOG_BUFFER.append(
                {
                    "timestamp": datetime.fromtimestamp(record.created).isoformat(),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": self.format(record),
                    "extra": extra,
                }
            )
        except Exception:
            self.handleError(record)


memory_handler = MemoryLogHandler()
memory_handler.setFormatter(logging.Formatter('%(message)s'))


def install_memory_handler(level: int = logging.INFO) -> None:
    """Attach the buffer handler to the root logger once."""
    root = logging.getLogger()
    if memory_handler not in root.handlers:
        root.addHandler(memory_handler)
    root.setLevel(level)


@router.get("/api/system/logs", response_model=List[LogEntry])
async def get_logs():
    """Retrieve recent system logs."""
    return list(LOG_BUFFER)
