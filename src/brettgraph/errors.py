"""
Exceptions raised by the Graph client.
Everything derives from GraphError so callers can catch the lot in one go.
"""


class GraphError(Exception):
    """Base exception for the Graph client."""
    pass


class ConfigurationError(GraphError):
    """A required identity field (tenant, application, secret) is missing or unreadable."""
    pass


class NetworkError(GraphError):
    """The request could not be built or sent."""
    pass


class RemoteError(GraphError):
    """
    Graph or the identity endpoint answered with a non-2xx status.
    The raw body is kept as that is where the actual cause is described,
    e.g. an unknown tenant or a wrong client secret.
    """

    def __init__(self, status_code: int, body: str, url: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"StatusCode is not OK: {status_code}. Body: {body}")


class DecodeError(GraphError):
    """The response body could not be parsed into the expected shape."""
    pass


class ArgumentCountError(GraphError, TypeError):
    """A variadic builder method was called with the wrong number of arguments."""
    pass
