"""
Request URL construction for each API version.

    v3.2: POST {endpoint}vision/v3.2/analyze?visualFeatures=...&details=...
    v4.0: POST {endpoint}computervision/imageanalysis:analyze?api-version=2023-04-01-preview&features=...
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import quote, urlencode, urlsplit

from az_analyze_image.errors import DecodeError
from az_analyze_image.vision.versions import ApiVersion, get_profile

ANALYZE_OPERATION = "analyze"

QueryParams = Union[Mapping[str, Optional[str]], Iterable[Tuple[str, Optional[str]]]]


def _iter_params(params: QueryParams):
    if params is None:
        return []
    if isinstance(params, Mapping):
        return list(params.items())
    return list(params)


def build_url(
    base_url: str,
    api_version,
    operation: str = ANALYZE_OPERATION,
    params: QueryParams = None
) -> str:
    """
    Compose a fully-qualified request URL.

    Args:
        base_url: Resource endpoint (absolute URL)
        api_version: ApiVersion or version string
        operation: Operation name, e.g. "analyze"
        params: Query parameters; pairs whose value is None or "" are dropped

    Returns:
        The URL with every parameter value percent-encoded

    Raises:
        DecodeError: If base_url is not an absolute URL
    """
    parts = urlsplit(base_url or "")
    if not parts.scheme or not parts.netloc:
        raise DecodeError(f"Cannot build request URL from non-absolute base {base_url!r}", path="base_url")

    profile = get_profile(api_version)

    query = []
    if profile.api_version_param:
        query.append(("api-version", profile.api_version_param))
    for name, value in _iter_params(params):
        if value is None or value == "":
            continue
        if name == "api-version":
            continue
        query.append((name, str(value)))

    url = base_url.rstrip("/") + "/" + profile.path.format(operation=operation)
    if query:
        url += "?" + urlencode(query, safe="", quote_via=quote)
    return url


@dataclass(frozen=True)
class Endpoint:
    """A resource base URL bound to one API version."""
    base_url: str
    api_version: ApiVersion

    def __post_init__(self):
        parts = urlsplit(self.base_url or "")
        if not parts.scheme or not parts.netloc:
            raise DecodeError(f"Endpoint base URL is not absolute: {self.base_url!r}", path="base_url")
        object.__setattr__(self, "api_version", ApiVersion.parse(self.api_version))

    @property
    def profile(self):
        return get_profile(self.api_version)

    def url(self, operation: str = ANALYZE_OPERATION, params: Sequence[Tuple[str, str]] = None) -> str:
        return build_url(self.base_url, self.api_version, operation, params)
