"""Address range module for nsgallow.

This module fetches the published list of IPv4 ranges over HTTP and extracts
the dotted-quad addresses from the plain text body.
"""

import logging
import re
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

import function.nsg_config as nsg_config
from function.exceptions import AddressFetchError, ResponseBodyError

# Configure logging
logger = logging.getLogger(__name__)

IPV4_RE = re.compile(nsg_config.IPV4_PATTERN)


def extract_ipv4_addresses(text: str) -> List[str]:
    """Extract IPv4 dotted quads from free-form text.

    Matches are returned in order of appearance with duplicates kept. Octets
    are not range checked, so "999.999.999.999" is returned as is. A prefix
    length following an address ("/20") is not part of the match.

    Args:
        text: Text to scan

    Returns:
        List of matched address strings, possibly empty

    Examples:
        >>> extract_ipv4_addresses("1.2.3.4 and 5.6.7.8 end")
        ['1.2.3.4', '5.6.7.8']
    """
    return IPV4_RE.findall(text)


def build_session(
    retries: int = nsg_config.DEFAULT_FETCH_RETRIES,
    backoff_factor: float = nsg_config.DEFAULT_BACKOFF_FACTOR,
) -> requests.Session:
    """Create a requests session with a bounded retry policy.

    Connection errors, read errors and the status codes in
    nsg_config.RETRY_STATUS_CODES are retried with exponential backoff. Once
    status retries are exhausted the last response is returned rather than
    raised.

    Args:
        retries: Total number of retries, 0 disables retrying
        backoff_factor: Backoff factor passed to urllib3

    Returns:
        Configured session
    """
    retry = Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=nsg_config.RETRY_STATUS_CODES,
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def fetch_address_ranges(
    url: str = nsg_config.ADDRESS_RANGES_URL,
    timeout: float = nsg_config.DEFAULT_FETCH_TIMEOUT,
    retries: int = nsg_config.DEFAULT_FETCH_RETRIES,
    session: Optional[requests.Session] = None,
) -> str:
    """Fetch the address range page and return its body as text.

    The response status is not validated; a non-2xx body is logged and
    returned for scanning like any other.

    Args:
        url: Address range endpoint
        timeout: Connect and read timeout in seconds
        retries: Retries used when no session is supplied
        session: Optional pre-built session, left open for the caller to reuse.
            A session built here is closed before returning

    Returns:
        Decoded response body

    Raises:
        AddressFetchError: If the request fails at the transport level
        ResponseBodyError: If the response body cannot be read
    """
    if session is not None:
        return _read_address_ranges(session, url, timeout)

    with build_session(retries) as session:
        return _read_address_ranges(session, url, timeout)


def _read_address_ranges(session: requests.Session, url: str, timeout: float) -> str:
    """GET url with session and return the decoded body."""
    logger.debug(f"Fetching address ranges from {url}")
    try:
        response = session.get(url, timeout=timeout, stream=True)
    except requests.exceptions.RequestException as e:
        raise AddressFetchError(
            f"GET {url} failed",
            context={"error": e, "url": url},
        ) from e

    with response:
        if not response.ok:
            logger.warning(
                f"Address range endpoint {url} returned HTTP {response.status_code}"
            )
        try:
            body = response.content
        except requests.exceptions.RequestException as e:
            raise ResponseBodyError(
                f"cannot read body of {url}",
                context={"url": url, "error": e},
            ) from e

    try:
        return body.decode(response.encoding or "utf-8", errors="replace")
    except LookupError as e:
        # Unknown charset in the Content-Type header
        raise ResponseBodyError(
            f"cannot decode body of {url}",
            context={"url": url, "encoding": response.encoding},
        ) from e


def get_source_address_prefixes(
    url: str = nsg_config.ADDRESS_RANGES_URL,
    timeout: float = nsg_config.DEFAULT_FETCH_TIMEOUT,
    retries: int = nsg_config.DEFAULT_FETCH_RETRIES,
    session: Optional[requests.Session] = None,
) -> List[str]:
    """Fetch the address range page and extract its IPv4 addresses."""
    body = fetch_address_ranges(url, timeout, retries, session)
    addresses = extract_ipv4_addresses(body)
    logger.debug(f"Extracted {len(addresses)} addresses from {url}")
    return addresses
