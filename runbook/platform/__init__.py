"""Process and HTTP adapters."""

from runbook.platform.http import HttpClient, HttpError, HttpResponse, RealHttpClient
from runbook.platform.process import ProcessError, run

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "ProcessError",
    "RealHttpClient",
    "run",
]
