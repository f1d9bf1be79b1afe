"""
Structured audit logging for FortiState.

Every change pushed to a FortiOS device is written to a dedicated 'audit'
logger as one JSON object per line. The request id of the HTTP request (or
CLI invocation) that triggered the change is propagated across async calls
using contextvars.ContextVar.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Context variable for tracking request_id across async calls
_request_id_context: ContextVar[Optional[str]] = ContextVar(
    'request_id', default=None
)


class AuditLogger:
    """
    Structured audit logger for device configuration changes.

    All events are written to the 'audit' logger in JSON format.
    """

    def __init__(self):
        self.logger = logging.getLogger('audit')

    def set_request_id(self, request_id: str) -> None:
        """Set the request_id for the current context."""
        _request_id_context.set(request_id)

    def get_request_id(self) -> Optional[str]:
        """Get the current request_id from context, or None."""
        return _request_id_context.get()

    def log(
        self,
        action: str,
        resource: str,
        resource_id: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Core method to log a structured audit event.

        Args:
            action: Lifecycle action ('CREATE', 'UPDATE', 'DELETE', 'IMPORT', 'READ')
            resource: Resource type (e.g. 'fortios_system_arptable')
            resource_id: Management key of the affected object
            status: Result status ('success', 'failure', 'gone')
            details: Optional dict of additional context
        """
        event = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'action': action,
            'resource': resource,
            'resource_id': resource_id,
            'status': status,
            'request_id': self.get_request_id(),
            'details': details or {},
        }
        self.logger.info(json.dumps(event, default=str))

    def log_resource_change(
        self,
        operation: str,
        resource: str,
        resource_id: str,
        attributes: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """
        Log a create/update/delete/import of a device object.

        Args:
            operation: 'CREATE', 'UPDATE', 'DELETE' or 'IMPORT'
            resource: Resource type name
            resource_id: Management key (may be empty when creation failed)
            attributes: Attribute values sent to or read from the device
            error_message: Set when the operation failed
        """
        details: Dict[str, Any] = {}
        if attributes:
            details['attributes'] = attributes
        if error_message:
            details['error_message'] = error_message

        self.log(
            action=operation,
            resource=resource,
            resource_id=resource_id,
            status='failure' if error_message else 'success',
            details=details,
        )

    def log_drift(self, resource: str, resource_id: str) -> None:
        """Log that a tracked object disappeared from the device."""
        self.log(
            action='READ',
            resource=resource,
            resource_id=resource_id,
            status='gone',
        )


# Global audit logger instance for convenient import
audit = AuditLogger()
