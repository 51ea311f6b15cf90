"""grpclogcheck: ordered protocol checks over recorded remote-execution gRPC logs."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("grpclogcheck")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from grpclogcheck.api import check_log, run_check, CheckConfig, CheckIssue, CheckResult
from grpclogcheck.codes import CheckCode

__all__ = [
    "__version__",
    "check_log",
    "run_check",
    "CheckConfig",
    "CheckIssue",
    "CheckResult",
    "CheckCode",
]
