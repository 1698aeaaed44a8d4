"""
Key and endpoint handling.

The API key is held in a ``Secret``: a mutable buffer that is overwritten
with zeros when wiped or garbage collected, compared in constant time and
never rendered by ``repr``/``str``.
"""

import hmac
import re
from urllib.parse import urlsplit

from az_analyze_image.errors import CredentialError

SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"

SECRET_DEBUG_OUTPUT = "Secret(*)"

# Visible ASCII, space and tab are the only characters allowed in a header value
_HEADER_VALUE_RE = re.compile(r"[\t\x20-\x7e]+")


class Secret:
    """A secret string value."""

    __slots__ = ("_value",)

    def __init__(self, value: str):
        self._value = bytearray(value.encode("utf-8"))

    def reveal(self) -> str:
        return self._value.decode("utf-8")

    def wipe(self):
        """Overwrite the backing buffer with zeros and empty it."""
        for i in range(len(self._value)):
            self._value[i] = 0
        del self._value[:]

    @property
    def wiped(self) -> bool:
        return len(self._value) == 0

    def __len__(self):
        return len(self._value)

    def __eq__(self, other):
        if not isinstance(other, Secret):
            return NotImplemented
        return hmac.compare_digest(self._value, other._value)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def __repr__(self):
        return SECRET_DEBUG_OUTPUT

    __str__ = __repr__

    def __del__(self):
        try:
            self.wipe()
        except AttributeError:
            # __init__ never completed
            pass


def normalize_endpoint(endpoint: str) -> str:
    """
    Validate an endpoint and return it with exactly one trailing slash.

    Raises:
        CredentialError: If the endpoint is empty, contains whitespace, has an
            invalid port or is not an absolute http(s) URL.
    """
    if not endpoint or not endpoint.strip():
        raise CredentialError("Endpoint must not be empty")

    endpoint = endpoint.strip()
    if any(c.isspace() for c in endpoint):
        raise CredentialError(
            "Endpoint must not contain whitespace",
            {"endpoint": endpoint}
        )
    parts = urlsplit(endpoint)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise CredentialError(
            "Endpoint must be an absolute http(s) URL",
            {"endpoint": endpoint}
        )
    try:
        parts.port
    except ValueError as e:
        raise CredentialError(
            f"Endpoint has an invalid port: {e}",
            {"endpoint": endpoint}
        ) from e
    if parts.query or parts.fragment:
        raise CredentialError(
            "Endpoint must not carry a query string or fragment",
            {"endpoint": endpoint}
        )

    return endpoint.rstrip("/") + "/"


class Credential:
    """
    API key plus the resource endpoint it belongs to.

    Only derived artifacts are exposed: the normalized ``base_url`` and the
    authentication headers for a request.

    Args:
        key: Azure AI Services key
        endpoint: Azure AI Services Computer Vision endpoint,
            e.g. ``https://<resource>.cognitiveservices.azure.com/``

    Raises:
        CredentialError: If the key is empty or not usable as a header value,
            or the endpoint is not a well-formed absolute URL.
    """

    def __init__(self, key: str, endpoint: str):
        if not key:
            raise CredentialError("Key must not be empty")
        if not _HEADER_VALUE_RE.fullmatch(key):
            raise CredentialError("Key contains characters invalid for an HTTP header")

        self._base_url = normalize_endpoint(endpoint)
        self._secret = Secret(key)

    @property
    def base_url(self) -> str:
        return self._base_url

    def auth_headers(self) -> dict:
        """Headers authenticating a single request."""
        if self._secret.wiped:
            raise CredentialError("Credential has been wiped")
        return {SUBSCRIPTION_KEY_HEADER: self._secret.reveal()}

    def wipe(self):
        self._secret.wipe()

    @property
    def wiped(self) -> bool:
        return self._secret.wiped

    def __eq__(self, other):
        if not isinstance(other, Credential):
            return NotImplemented
        # Evaluate both comparisons so timing does not depend on the endpoint
        same_secret = self._secret == other._secret
        same_endpoint = hmac.compare_digest(
            self._base_url.encode("utf-8"),
            other._base_url.encode("utf-8")
        )
        return same_secret & same_endpoint

    __hash__ = None

    def __repr__(self):
        return f"Credential(endpoint={self._base_url!r}, key={self._secret!r})"
