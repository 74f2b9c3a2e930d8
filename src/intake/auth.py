"""Shared-secret authentication of intake sources."""

import hmac

import structlog


logger = structlog.get_logger()

_BEARER_PREFIX = "bearer "


class SourceAuthenticator:
    """Checks per-source shared secrets in constant time.

    Sources with a configured token must present it, optionally as a
    ``Bearer`` credential. Sources without one are admitted only when
    anonymous sources are allowed; their content still goes through
    validation and review like any other.
    """

    def __init__(
        self,
        tokens: dict[str, str] | None = None,
        allow_anonymous: bool = True,
    ) -> None:
        """Initialize the authenticator.

        Args:
            tokens: Source identity to shared secret.
            allow_anonymous: Whether sources with no configured token pass.
        """
        self._tokens = dict(tokens or {})
        self._allow_anonymous = allow_anonymous
        self._log = logger.bind(component="auth")

    def authenticate(self, identity: str, credential: str | None) -> bool:
        """Check a source credential.

        Args:
            identity: Source identity.
            credential: Presented secret, with or without a Bearer prefix.

        Returns:
            True if the source may submit.
        """
        expected = self._tokens.get(identity)
        if expected is None:
            if not self._allow_anonymous:
                self._log.warning("source_not_registered", source=identity)
            return self._allow_anonymous

        if not credential:
            self._log.warning("credential_missing", source=identity)
            return False

        presented = credential.strip()
        if presented.lower().startswith(_BEARER_PREFIX):
            presented = presented[len(_BEARER_PREFIX) :].strip()

        ok = hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))
        if not ok:
            self._log.warning("credential_mismatch", source=identity)
        return ok
