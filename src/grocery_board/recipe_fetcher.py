"""Client for the recipe-scraping service.

The service takes a recipe page URL and returns the parsed recipe. URLs are
checked before anything is sent: only public http(s) hosts are allowed.
"""

import ipaddress
import logging
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

import httpx
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from .models import RecipeDetails

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
MAX_URL_LENGTH = 2048


class RecipeFetchStatus(str, Enum):
    """Why a recipe could not be fetched."""

    INVALID_URL = "invalid_url"
    BLOCKED_HOST = "blocked_host"
    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"
    UPSTREAM_ERROR = "upstream_error"
    MALFORMED = "malformed"


class RecipeFetchError(Exception):
    """Raised when a recipe cannot be fetched or parsed."""

    def __init__(
        self,
        status: RecipeFetchStatus,
        message: str,
        upstream_status: int | None = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.status = status
        self.message = message
        self.upstream_status = upstream_status
        self.details = details


class _ParsedRecipe(BaseModel):
    """Payload returned by the service's /parse endpoint."""

    title: str | None = None
    ingredients: list[str] = Field(default_factory=list)
    instructions: str | None = None
    yields: str | None = None
    total_time: int | None = Field(
        default=None, validation_alias=AliasChoices("total_time", "totalTimeMinutes")
    )
    image_url: str | None = Field(
        default=None, validation_alias=AliasChoices("image", "image_url", "imageUrl")
    )
    host: str | None = None


def coerce_https_url(raw: str) -> str:
    """Trim input and add ``https://`` when no http(s) scheme is given."""
    trimmed = raw.strip()
    if not trimmed:
        return ""
    if not trimmed.lower().startswith(("http://", "https://")):
        return f"https://{trimmed}"
    return trimmed


def is_blocked_host(hostname: str) -> bool:
    """True for localhost and private, loopback, link-local or unspecified IPs."""
    host = hostname.lower().strip("[]")
    if host == "localhost" or host.endswith(".localhost"):
        return True

    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False

    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
    )


def validate_recipe_url(raw: str) -> str:
    """Return the URL to send to the service, or raise RecipeFetchError."""
    if len(raw) > MAX_URL_LENGTH:
        raise RecipeFetchError(RecipeFetchStatus.INVALID_URL, "URL too long")

    url = coerce_https_url(raw)
    if not url:
        raise RecipeFetchError(RecipeFetchStatus.INVALID_URL, "Missing url")

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError as e:
        raise RecipeFetchError(RecipeFetchStatus.INVALID_URL, f"Invalid url: {e}") from e

    if parts.scheme not in ("http", "https"):
        raise RecipeFetchError(
            RecipeFetchStatus.INVALID_URL, "Only http/https URLs are allowed"
        )
    if not hostname:
        raise RecipeFetchError(RecipeFetchStatus.INVALID_URL, "Invalid url")
    if is_blocked_host(hostname):
        raise RecipeFetchError(RecipeFetchStatus.BLOCKED_HOST, f"Blocked host: {hostname}")

    return url


class RecipeFetcher:
    """Fetches parsed recipes from the recipe-scraping service."""

    def __init__(
        self,
        service_url: str,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        """Initialize the fetcher.

        Args:
            service_url: Base URL of the recipe service
            timeout: Upstream timeout in seconds. Defaults to 15
            client: HTTP client to use instead of creating one
        """
        if not service_url:
            raise ValueError("Recipe service URL is not configured")
        self.service_url = service_url.rstrip("/")
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                headers={"Accept": "application/json"},
            )
            self._owns_client = True
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            self._client.close()
        self._client = None

    def __enter__(self) -> "RecipeFetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def fetch_ingredients(self, url: str) -> RecipeDetails:
        """Ask the service to parse a recipe page.

        Raises:
            RecipeFetchError: If the URL is rejected, the service fails or
                times out, or the response is not a recipe
        """
        target = validate_recipe_url(url)
        endpoint = f"{self.service_url}/parse"
        logger.debug(f"Fetching recipe {target} via {endpoint}")

        try:
            response = self._get_client().post(
                endpoint, json={"url": target}, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            logger.warning(f"Recipe service timed out for {target}")
            raise RecipeFetchError(RecipeFetchStatus.TIMEOUT, "Recipe service timeout") from e
        except httpx.HTTPError as e:
            logger.warning(f"Recipe service unreachable: {e}")
            raise RecipeFetchError(
                RecipeFetchStatus.UNREACHABLE, "Recipe service unreachable"
            ) from e

        if not response.is_success:
            logger.warning(f"Recipe service returned {response.status_code} for {target}")
            raise RecipeFetchError(
                RecipeFetchStatus.UPSTREAM_ERROR,
                "Recipe service error",
                upstream_status=response.status_code,
                details=_error_details(response),
            )

        try:
            parsed = _ParsedRecipe.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RecipeFetchError(
                RecipeFetchStatus.MALFORMED, f"Recipe service returned an invalid recipe: {e}"
            ) from e

        return RecipeDetails(
            title=parsed.title,
            ingredients=[line for line in parsed.ingredients if line.strip()],
            instructions=parsed.instructions,
            yields=parsed.yields,
            total_time=parsed.total_time,
            image_url=parsed.image_url,
            host=parsed.host or urlsplit(target).hostname,
        )


def _error_details(response: httpx.Response) -> Any:
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            return None
    text = response.text
    return text if len(text) <= 1000 else f"{text[:1000]}…"
