"""
HTTP plumbing shared by the upstream parsers.

Fallback chains are an ordered list of AttemptSource entries; each attempt
produces a FetchResult instead of raising, and fetch_first() walks the list
until one succeeds.
"""
import logging
from dataclasses import dataclass
from http.cookiejar import DefaultCookiePolicy
from typing import Any, Callable, Iterable, Optional

import requests

logger = logging.getLogger(__name__)

USER_AGENT = "surveillance-sync/1.0 (+wastewater & clinical dashboard)"


class SourceError(Exception):
    """An upstream source could not provide usable data."""


class SourceExhaustedError(SourceError):
    """Every source of a fallback chain failed."""


class ClinicalFetchError(SourceError):
    pass


class RougeoleFetchError(SourceError):
    pass


@dataclass(frozen=True)
class FetchResult:
    ok: bool
    source: str
    data: Any = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, source: str, data) -> "FetchResult":
        return cls(ok=True, source=source, data=data)

    @classmethod
    def failure(cls, source: str, reason: str) -> "FetchResult":
        return cls(ok=False, source=source, reason=reason)


@dataclass(frozen=True)
class AttemptSource:
    name: str
    url: str
    # turns a successful response into parsed data; ValueError = unusable payload
    parse: Callable[[requests.Response], Any]


def build_session() -> requests.Session:
    """
    Session shared by the fetch workers. Headers are set here once and
    never touched afterwards: workers only issue concurrent GETs, which go
    through urllib3's thread-safe connection pool. Responses cannot set
    cookies, so nothing in the session changes while workers run.
    """
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": USER_AGENT,
            "Accept": "application/json, text/csv;q=0.9, */*;q=0.8",
            "Accept-Language": "fr-FR,fr;q=0.9",
        }
    )
    session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
    return session


def describe_status(response) -> str:
    return f"{response.status_code} {response.reason or ''}".strip()


def attempt(session, source: AttemptSource, timeout: float) -> FetchResult:
    try:
        response = session.get(source.url, timeout=timeout)
    except requests.RequestException as exc:
        return FetchResult.failure(source.name, f"network error: {exc}")

    if not response.ok:
        return FetchResult.failure(source.name, f"HTTP {describe_status(response)}")

    try:
        data = source.parse(response)
    except ValueError as exc:
        return FetchResult.failure(source.name, f"unreadable payload: {exc}")
    return FetchResult.success(source.name, data)


def fetch_first(session, sources: Iterable[AttemptSource], *, dataset: str, timeout: float):
    """
    Try each source in order and return the data of the first success.

    Raises SourceExhaustedError naming every attempted source when none works.
    """
    failures = []
    for source in sources:
        result = attempt(session, source, timeout)
        if result.ok:
            logger.info("Fetched %s from %s source", dataset, result.source)
            return result.data
        logger.warning("Fetching %s from %s source failed: %s", dataset, result.source, result.reason)
        failures.append(f"{result.source}: {result.reason}")

    raise SourceExhaustedError(
        f"Failed to fetch {dataset} from both primary and fallback sources ({'; '.join(failures)})"
    )
