from typing import Protocol


class AuthBackendPort(Protocol):
    """
    App account backend.

    Both calls return the opaque user id on success and raise
    InvalidCredentialsError, DuplicateAccountError, RateLimitedError or
    BackendUnavailableError from inhash.ports.errors otherwise.
    """

    async def login(self, email: str, password: str) -> str: ...

    async def signup(self, email: str, password: str) -> str: ...
