from .shell import CaptureExecutor, ExecutionResult, truncate
from .suggest import suggest_fix, extract_missing_path, simple_distance
__all__ = [
    "CaptureExecutor",
    "ExecutionResult",
    "truncate",
    "suggest_fix",
    "extract_missing_path",
    "simple_distance",
]
