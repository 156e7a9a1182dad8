"""
Request metadata made available to handlers.
"""

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass
class RequestInfo:
    """The request (if any) during which an error was dispatched."""

    method: str = ""
    url: str = ""
    user_agent: str = ""
    ip_address: str = ""
    user_id: Optional[str] = None
    user_name: str = ""
    user_email: str = ""


RequestInfoProvider = Callable[[], Optional[RequestInfo]]


def no_request() -> Optional[RequestInfo]:
    """Provider for code running outside any request (jobs, CLI)."""
    return None
