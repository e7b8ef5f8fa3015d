from pydantic import BaseModel
from typing import Literal

class SnapshotResponse(BaseModel):
    format: Literal["jpeg", "png"]
    size: int          # byte length of the decoded image
    data: str          # base64 image bytes

class ErrorResponse(BaseModel):
    error: str

# JSON bodies for the fixed rejections
NOT_FOUND = "Not found"
METHOD_NOT_ALLOWED = "Only GET is supported"
BAD_TIMEOUT = "timeout_ms must be a positive integer"
TOO_MANY_CAPTURES = "Too many concurrent captures"
