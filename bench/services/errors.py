"""Service-layer failures, each tagged with the callable-function error code clients expect."""


class ServiceError(Exception):
    code = 'internal'

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(ServiceError):
    code = 'not-found'

    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class PermissionDeniedError(ServiceError):
    code = 'permission-denied'


class InsufficientBalanceError(ServiceError):
    code = 'failed-precondition'

    def __init__(self, available, required) -> None:
        self.available = available
        self.required = required
        super().__init__(f"Insufficient balance. You have {available} credits but need {required}")


class ConcurrentUpdateError(ServiceError):
    code = 'aborted'
