import logging
from dataclasses import dataclass, field
from typing import Optional, List
from snapshot.orchestrator.contracts import CaptureResult

logger = logging.getLogger("snapshot")

MAX_LOGS = 200

@dataclass
class StatusStore:
    in_flight: int = 0              # captures currently awaiting a process
    captures_ok: int = 0
    captures_failed: int = 0
    last_error: Optional[str] = None
    logs: List[str] = field(default_factory=list)

    def begin_capture(self):
        self.in_flight += 1

    def end_capture(self, result: Optional[CaptureResult]):
        # result is None when the request was cancelled mid-capture
        self.in_flight -= 1
        if result is not None and result.ok:
            self.captures_ok += 1
        else:
            self.captures_failed += 1
            self.last_error = result.message if result is not None else "cancelled"

    def log(self, msg: str, level: int = logging.INFO):
        logger.log(level, msg)
        self.logs.append(msg)
        if len(self.logs) > MAX_LOGS:
            self.logs = self.logs[-MAX_LOGS:]
