from uem.models.definition import (
    BlockingLevel, DefinitionError, DisplayTarget, ErrorDefinition,
    MessageRef, NotifyFlags, Severity,
)
from uem.models.event import ErrorEvent, ErrorResponse, UEMError
from uem.models.log_record import ErrorLogRecord
from uem.models.request import RequestInfo, RequestInfoProvider, no_request

__all__ = [
    "BlockingLevel", "DefinitionError", "DisplayTarget", "ErrorDefinition",
    "MessageRef", "NotifyFlags", "Severity",
    "ErrorEvent", "ErrorResponse", "UEMError",
    "ErrorLogRecord",
    "RequestInfo", "RequestInfoProvider", "no_request",
]
