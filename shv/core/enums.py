from enum import Enum


class HandlerType(str, Enum):
    FUNCTION = "function"
    CRON = "cron"
    QUEUE = "queue"
    BUCKET = "bucket"
    APIGATEWAYV1 = "apigatewayv1"

    @property
    def label(self) -> str:
        """Human readable name of the construct that references the handler."""
        return _HANDLER_LABELS[self]


_HANDLER_LABELS = {
    HandlerType.FUNCTION: "Lambda Function",
    HandlerType.CRON: "Cron Job",
    HandlerType.QUEUE: "Queue Subscriber",
    HandlerType.BUCKET: "Bucket Notification",
    HandlerType.APIGATEWAYV1: "API Gateway V1 Route",
}


class ErrorKind(str, Enum):
    FILE_NOT_FOUND = "file-not-found"
    FUNCTION_NOT_FOUND = "function-not-found"
    INVALID_FORMAT = "invalid-format"


class WarningKind(str, Enum):
    UNUSED_HANDLER = "unused-handler"
