"""Typed exceptions for gamefeed."""


class GamefeedError(Exception):
    """Base exception for all gamefeed errors."""


class NavigationError(GamefeedError):
    """Every candidate entry URL and the forced-mobile technique failed."""

    def __init__(self, urls: list[str], reason: str):
        self.urls = list(urls)
        self.reason = reason
        super().__init__(
            f"Navigation failed after {len(self.urls)} attempts "
            f"({', '.join(self.urls)}): {reason}"
        )


class SelectionError(GamefeedError):
    """The provider tab could not be selected on the rendered page."""

    def __init__(self, provider_id: str, selector: str, reason: str):
        self.provider_id = provider_id
        self.selector = selector
        self.reason = reason
        super().__init__(
            f"Could not select provider {provider_id} "
            f"via {selector!r}: {reason}"
        )


class ExtractionEmpty(GamefeedError):
    """The page rendered but no game cards could be extracted."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"No games found during scraping of {url}")


class DeadlineExceeded(GamefeedError, TimeoutError):
    """The whole scrape exceeded its end-to-end deadline."""

    def __init__(self, timeout_secs: float):
        self.timeout_secs = timeout_secs
        super().__init__(
            f"Scraping timeout after {timeout_secs:.0f} seconds"
        )


class CacheUnavailable(GamefeedError):
    """The durable cache store could not be reached."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Cache store unavailable at {url}: {reason}")
