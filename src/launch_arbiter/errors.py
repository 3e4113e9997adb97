"""
Failure taxonomy for endpoint resolution.

Each class carries a `retryable` flag that the resolver's attempt loop
consults; nothing here ever propagates out of `EndpointResolver.resolve()`.
"""


class ResolutionError(Exception):
    """Base class for a failed resolution attempt."""

    retryable: bool = True
    classification: str = "RESOLUTION"


class NetworkError(ResolutionError):
    """Timeout or connection failure; the request never produced a response."""

    classification = "NETWORK"


class ProtocolError(ResolutionError):
    """A response arrived but was not usable (non-200 status, undecodable body)."""

    classification = "PROTOCOL"


class ExtractionError(ResolutionError):
    """
    The response decoded but did not carry an endpoint.

    Missing marker, missing separator or an empty tail is how the remote side
    opts out of remote mode, so retrying cannot change the answer.
    """

    retryable = False
    classification = "EXTRACTION"
