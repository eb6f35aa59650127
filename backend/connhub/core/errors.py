"""
Exception hierarchy shared by every backend manager.
"""


class ConnHubError(Exception):
    """Base exception for connection hub failures."""
    pass


class ClientConnectionError(ConnHubError):
    """Raised when a client cannot be constructed or fails its liveness probe."""

    def __init__(self, kind: str, name: str, message: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} [{name}] {message}")


class DuplicateInstanceError(ConnHubError):
    """Raised when an instance name is registered twice."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} [{name}] is already registered")


class TrustStoreError(ConnHubError):
    """Raised when a CA certificate file cannot be read or parsed."""
    pass


class InstanceNotFoundError(ConnHubError, LookupError):
    """Raised when looking up an instance name that was never registered."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} [{name}] does not exist")


class ManagerShutDownError(ConnHubError):
    """Raised when booting clients on a manager that was already shut down."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"{kind} manager is shut down")
