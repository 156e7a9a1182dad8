"""
UEM — error classification and multi-channel notification pipeline.
"""

from uem.bootstrap import UEMServices, build_dispatcher, build_services
from uem.dispatcher import ErrorDispatcher
from uem.models import ErrorDefinition, ErrorResponse, UEMError

__all__ = [
    "UEMServices", "build_dispatcher", "build_services",
    "ErrorDispatcher",
    "ErrorDefinition", "ErrorResponse", "UEMError",
]
