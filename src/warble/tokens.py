"""Token capability exposed to handlers.

Handlers ask for a ``TokenSigner`` by annotation and the app injects
whatever implementation was provided::

    app.provide(TokenSigner, lambda: signer)

    def create_user(body, signer: TokenSigner):
        return {"jwt": signer.sign(), "verified": signer.verify()}

``StubTokenSigner`` returns fixed values. It performs no cryptography.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TokenSigner(Protocol):
    """Issues and checks bearer tokens."""

    def sign(self) -> str: ...

    def verify(self) -> dict[str, Any]: ...


class StubTokenSigner:
    """Placeholder signer with constant output."""

    __slots__ = ()

    def sign(self) -> str:
        return "signed-jwt"

    def verify(self) -> dict[str, Any]:
        return {"name": "Tom"}
