from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

@dataclass
class RunOutcome:
    exit_code: Optional[int] = None
    stdout: bytes = b""
    stderr: bytes = b""
    timed_out: bool = False
    spawn_error: Optional[str] = None   # set when the process never started

class ProcessRunner(ABC):
    @abstractmethod
    async def run(self, args: Sequence[str], timeout_ms: int) -> RunOutcome:
        """Run args[0] with args[1:], killing it after timeout_ms. Never raises for process failures."""
        ...
