# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the typed HTTP client library.

All library-raised exceptions inherit from HttpClientError. Transport
failures are NOT wrapped: httpx exceptions reach the caller unchanged, and
server-reported failures are returned as a populated ``ResultMessage.error``
rather than raised.
"""


class HttpClientError(Exception):
    """Base exception for all typed HTTP client errors.

    Example:
        try:
            registry.resolve(UsersClient)
        except HttpClientError as e:
            logger.error(f"Client setup failed: {e}")
    """

    pass


class UnimplementedMethodError(HttpClientError):
    """Raised when a verb is not supported by the two-verb dispatch path.

    ``RequestExecutor.dispatch`` only knows GET and POST. Any other verb fails
    before a request is built, so no network activity takes place. Use
    ``async_send`` for arbitrary verbs.

    Attributes:
        method: The rejected HTTP method name.
    """

    def __init__(self, method: str):
        super().__init__(f"Method {method} is not implemented")
        self.method = method


class ConfigurationError(HttpClientError):
    """Raised when a client registration is invalid.

    Common causes include:
    - The implementation does not derive from AbstractHttpClient
    - The implementation does not derive from the requested service type
    - The same service key is registered twice
    """

    pass


class ClientNotRegisteredError(HttpClientError):
    """Raised when resolving a client type that was never registered.

    Attributes:
        key: The type that was requested from the registry.
    """

    def __init__(self, key: type):
        name = getattr(key, "__qualname__", repr(key))
        super().__init__(f"No client registered for {name}")
        self.key = key
