# Failure reasons carried by CaptureFailure.reason
ERR_TIMEOUT = "TIMEOUT"
ERR_PROCESS = "PROCESS_ERROR"
ERR_NON_ZERO_EXIT = "NON_ZERO_EXIT"

# Router-level rejections (no process spawned)
ERR_BAD_REQUEST = "BAD_REQUEST"
ERR_BUSY = "BUSY"
