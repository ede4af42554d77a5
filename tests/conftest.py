"""Shared fakes and settings factories for gamefeed tests."""

import fnmatch
from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from gamefeed._config import Settings

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def fast_settings(**overrides) -> Settings:
    """Settings with every settle delay zeroed."""
    base = Settings(
        settle_delay=0,
        loading_grace=0,
        selection_settle=0,
        deadline=5.0,
    )
    return replace(base, **overrides)


# ---------------------------------------------------------------------------
# Fake patchright objects
# ---------------------------------------------------------------------------


class FakeHandle:
    """JSHandle stand-in returned by evaluate_handle()."""

    def __init__(self, element):
        self._element = element

    def as_element(self):
        return self._element


class FakeElement:
    """ElementHandle whose in-page evaluation returns fixed card fields."""

    def __init__(
        self,
        fields: dict | None = None,
        error: Exception | None = None,
        card=None,
    ):
        self.fields = fields or {}
        self.error = error
        self.card = card

    async def evaluate(self, js, *args):
        if self.error is not None:
            raise self.error
        return dict(self.fields)

    async def evaluate_handle(self, js, *args):
        return FakeHandle(self.card)


def card(name="", players="", percent="", **extra) -> FakeElement:
    fields = {"name": name, "players": players, "percent": percent}
    fields.update(extra)
    return FakeElement(fields)


DEFAULT_STATS = {
    "divs": 120,
    "images": 40,
    "links": 12,
    "bodyTextLength": 2400,
    "title": "Slots",
}


class FakePage:
    """Page stand-in driven by plain dicts.

    - ``redirects`` maps a requested URL to the URL the page lands on
    - ``goto_errors`` maps a URL to the exception goto() raises
    - ``selectors`` maps a selector to the elements query_selector_all()
      returns
    - ``visible`` lists selectors wait_for_selector() succeeds on
    """

    def __init__(
        self,
        *,
        selectors: dict | None = None,
        stats: dict | None = None,
        title: str = "Slots",
        redirects: dict | None = None,
        goto_errors: dict | None = None,
        visible=(),
        click_errors: dict | None = None,
        ready_error: Exception | None = None,
    ):
        self.selectors = selectors or {}
        self.stats = dict(DEFAULT_STATS if stats is None else stats)
        self._title = title
        self.redirects = redirects or {}
        self.goto_errors = goto_errors or {}
        self.visible = set(visible)
        self.click_errors = click_errors or {}
        self.ready_error = ready_error
        self.url = "about:blank"
        self.visited: list[str] = []
        self.clicked: list[str] = []
        self.evaluated: list[str] = []
        self.waited: list[str] = []
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if url in self.goto_errors:
            raise self.goto_errors[url]
        self.url = self.redirects.get(url, url)

    async def evaluate(self, js, *args):
        self.evaluated.append(js)
        if "querySelectorAll('div')" in js:
            return dict(self.stats)
        return None

    async def wait_for_function(self, js, timeout=None):
        if self.ready_error is not None:
            raise self.ready_error
        return True

    async def title(self):
        return self._title

    async def query_selector_all(self, selector):
        return list(self.selectors.get(selector, []))

    async def wait_for_selector(self, selector, state=None, timeout=None):
        self.waited.append(selector)
        if selector not in self.visible:
            raise TimeoutError(f"Timeout waiting for {selector}")

    async def click(self, selector, timeout=None):
        self.clicked.append(selector)
        if selector in self.click_errors:
            raise self.click_errors[selector]

    async def close(self):
        self.closed = True


class FakeSession:
    """BrowserSession stand-in wrapping a FakePage."""

    def __init__(self, settings: Settings, page: FakePage):
        self.settings = settings
        self.page = page
        self.block_desktop = True
        self.entered = False
        self.closed = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True


def make_session_factory(page: FakePage):
    """Return ``(factory, sessions)``; every session built is recorded."""
    sessions: list[FakeSession] = []

    def factory(settings):
        session = FakeSession(settings, page)
        sessions.append(session)
        return session

    return factory, sessions


def make_route(url: str, resource_type: str = "document", response=None):
    """Mock patchright Route for the context route handler."""
    route = MagicMock()
    route.request.url = url
    route.request.resource_type = resource_type
    route.abort = AsyncMock()
    route.continue_ = AsyncMock()
    route.fulfill = AsyncMock()
    route.fetch = AsyncMock(return_value=response)
    return route


def make_fetch_response(status=200, headers=None, body=b""):
    resp = MagicMock()
    resp.status = status
    resp.headers = headers or {}
    resp.body = AsyncMock(return_value=body)
    return resp


def make_playwright():
    """Mock async_playwright() chain.

    Returns ``(factory, pw, browser, context, page)``.
    """
    page = MagicMock()
    page.close = AsyncMock()
    context = MagicMock()
    context.route = AsyncMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    pw = MagicMock()
    pw.chromium.launch = AsyncMock(return_value=browser)
    pw.stop = AsyncMock()
    factory = MagicMock()
    factory.return_value.start = AsyncMock(return_value=pw)
    return factory, pw, browser, context, page


# ---------------------------------------------------------------------------
# Fake Redis
# ---------------------------------------------------------------------------


class FakeRedis:
    """In-memory subset of ``redis.asyncio.Redis``.

    With ``fail=True`` every command raises a connection error.
    """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.store: dict[str, str] = {}
        self.expiry: dict[str, int | None] = {}
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("Connection refused")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.store[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed

    async def scan_iter(self, match=None):
        self._check()
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self):
        self.closed = True
