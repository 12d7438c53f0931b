"""Fetch a page and extract the title, description and favicon for a new bookmark."""
import ipaddress
import logging
import socket
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from core.config import get_settings

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (compatible; SnapLink/1.0)'


class SSRFBlockedError(Exception):
    """Raised when a URL targets a private/internal network address."""

    pass


def is_private_ip(ip_str: str) -> bool:
    """
    Check if an IP address is private, loopback, or otherwise internal.

    Unparseable addresses count as private.
    """
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return True
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_reserved
        or ip.is_unspecified
    )


def validate_url_not_private(url: str) -> None:
    """
    Validate that a URL does not target a private/internal network.

    The hostname is resolved so a public name pointing at an internal address
    is also rejected.

    Raises:
        SSRFBlockedError: If the URL targets a private network.
        ValueError: If the URL has no hostname or the hostname does not resolve.
    """
    hostname = urlparse(url).hostname
    if not hostname:
        raise ValueError(f"Invalid URL (no hostname): {url}")
    if hostname.lower() in ('localhost', 'localhost.localdomain'):
        raise SSRFBlockedError(f"Blocked request to localhost: {url}")

    try:
        addrinfo = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise ValueError(f"Could not resolve hostname: {hostname}") from e

    for *_, sockaddr in addrinfo:
        if is_private_ip(sockaddr[0]):
            raise SSRFBlockedError(
                f"Blocked request to private/internal address: {url} resolves to {sockaddr[0]}",
            )


@dataclass
class FetchResult:
    """Result of fetching a URL: the HTML body or the reason there is none."""

    html: str | None
    final_url: str
    status_code: int | None
    error: str | None


@dataclass
class PageMetadata:
    """Title, description and favicon extracted from a page."""

    title: str | None
    description: str | None
    favicon: str | None


@dataclass
class ScrapedPage:
    """Result of scraping a URL for bookmark metadata."""

    metadata: PageMetadata | None
    final_url: str
    error: str | None


async def fetch_url(url: str, timeout: float | None = None) -> FetchResult:  # noqa: ASYNC109
    """
    Fetch an HTML page.

    Best-effort: failures are reported in `FetchResult.error` rather than
    raised. Redirects are followed and the final URL is checked against the
    private-network guard as well.

    Args:
        url:
            The URL to fetch.
        timeout:
            Request timeout in seconds; defaults to the configured scrape timeout.
    """
    timeout = timeout if timeout is not None else get_settings().scrape_timeout_seconds

    try:
        validate_url_not_private(url)
    except (SSRFBlockedError, ValueError) as e:
        return FetchResult(html=None, final_url=url, status_code=None, error=str(e))

    try:
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={'User-Agent': USER_AGENT},
            http2=True,
        ) as client:
            response = await client.get(url)
    except httpx.TimeoutException:
        return FetchResult(html=None, final_url=url, status_code=None, error="Request timed out")
    except httpx.RequestError as e:
        return FetchResult(html=None, final_url=url, status_code=None, error=f"Request failed: {e}")

    final_url = str(response.url)
    try:
        validate_url_not_private(final_url)
    except (SSRFBlockedError, ValueError) as e:
        return FetchResult(
            html=None,
            final_url=final_url,
            status_code=response.status_code,
            error=f"Redirect blocked: {e}",
        )

    if not response.is_success:
        return FetchResult(
            html=None,
            final_url=final_url,
            status_code=response.status_code,
            error=f"HTTP {response.status_code}",
        )

    content_type = response.headers.get('content-type', '')
    if 'text/html' not in content_type.lower():
        return FetchResult(
            html=None,
            final_url=final_url,
            status_code=response.status_code,
            error=f"Unsupported content type: {content_type}",
        )
    return FetchResult(
        html=response.text,
        final_url=final_url,
        status_code=response.status_code,
        error=None,
    )


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str | None:
    tag = soup.find('meta', attrs=attrs)
    if tag and tag.get('content'):
        return tag['content'].strip() or None
    return None


def _find_favicon(soup: BeautifulSoup, base_url: str) -> str:
    for link in soup.find_all('link', href=True):
        rel = link.get('rel') or []
        if isinstance(rel, str):
            rel = rel.split()
        if 'icon' in (r.lower() for r in rel):
            return urljoin(base_url, link['href'])
    return urljoin(base_url, '/favicon.ico')


def extract_page_metadata(html: str, base_url: str) -> PageMetadata:
    """
    Extract title, description and favicon from HTML.

    Pure function with no I/O.

    Title: `<title>`, then `og:title`, then `twitter:title`.
    Description: `meta description`, then `og:description`, then `twitter:description`.
    Favicon: the first `<link rel="... icon ...">` resolved against `base_url`,
    falling back to `/favicon.ico` on the page's host.
    """
    soup = BeautifulSoup(html, 'lxml')

    title = None
    title_tag = soup.find('title')
    if title_tag and title_tag.string:
        title = title_tag.string.strip() or None
    title = (
        title
        or _meta_content(soup, property='og:title')
        or _meta_content(soup, name='twitter:title')
    )

    description = (
        _meta_content(soup, name='description')
        or _meta_content(soup, property='og:description')
        or _meta_content(soup, name='twitter:description')
    )

    return PageMetadata(
        title=title,
        description=description,
        favicon=_find_favicon(soup, base_url),
    )


async def scrape_url(url: str, timeout: float | None = None) -> ScrapedPage:  # noqa: ASYNC109
    """Fetch a URL and extract bookmark metadata from it."""
    result = await fetch_url(url, timeout)
    if result.error:
        logger.warning("Failed to fetch URL %s: %s", url, result.error)
        return ScrapedPage(metadata=None, final_url=result.final_url, error=result.error)

    return ScrapedPage(
        metadata=extract_page_metadata(result.html, result.final_url),
        final_url=result.final_url,
        error=None,
    )
