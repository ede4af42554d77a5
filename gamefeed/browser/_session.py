"""Patchright-based mobile browser session.

One ``BrowserSession`` per scrape: it owns the driver, the Chromium
process, a mobile-emulating context and a single page, and tears all of
them down on every exit path (success, failure, timeout, cancellation).

All traffic passes through one context route:

- requests to the upstream desktop site are aborted while
  ``block_desktop`` is on, so a server-side redirect cannot drag the
  page off the mobile surface;
- document responses get a stealth script prepended to ``<head>``;
- everything else continues untouched.
"""

import logging
from urllib.parse import urlparse

from patchright.async_api import async_playwright

from gamefeed._config import Settings

logger = logging.getLogger("gamefeed")

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-features=VizDisplayCompositor",
    "--no-first-run",
    "--disable-extensions",
]

MOBILE_HOST_PREFIXES = ("m.", "mobile.")

# ---------------------------------------------------------------------------
# Stealth injection (route-based: add_init_script is unreliable in patchright)
# ---------------------------------------------------------------------------

_STEALTH_SCRIPT = b"""<script>
Object.defineProperty(Navigator.prototype, 'webdriver', {
    get: () => false,
    configurable: true,
});
Object.defineProperty(Navigator.prototype, 'platform', {
    get: () => 'iPhone',
    configurable: true,
});
Object.defineProperty(Navigator.prototype, 'maxTouchPoints', {
    get: () => 5,
    configurable: true,
});
if (window.chrome && !window.chrome.runtime) {
    window.chrome.runtime = {
        connect: function() {},
        sendMessage: function() {},
    };
}
</script>"""


def inject_stealth(body: bytes) -> bytes:
    """Prepend the stealth script so it runs before any page script."""
    if b"<head>" in body:
        return body.replace(b"<head>", b"<head>" + _STEALTH_SCRIPT, 1)
    if b"<script" in body:
        return _STEALTH_SCRIPT + body
    return body


def is_desktop_url(url: str, upstream_domain: str) -> bool:
    """True when *url* points at the desktop variant of the upstream site.

    Any host of *upstream_domain* (the bare domain, ``www.``, or a
    ``?forceLanguage=`` redirect target) counts as desktop unless it is
    one of the mobile hosts (``m.``/``mobile.``). Hosts outside the
    domain, such as image CDNs, are never desktop.
    """
    host = (urlparse(url).hostname or "").lower()
    domain = upstream_domain.lower()
    if not host or not (host == domain or host.endswith("." + domain)):
        return False
    return not host.startswith(MOBILE_HOST_PREFIXES)


class BrowserSession:
    """A single-use mobile browser session.

    Use as ``async with BrowserSession(settings) as session`` or through
    ``acquire_session()`` / ``release()``.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.block_desktop = True
        self.blocked_urls: list[str] = []
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @property
    def page(self):
        if self._page is None:
            raise RuntimeError("BrowserSession is not started")
        return self._page

    @property
    def is_open(self) -> bool:
        return self._browser is not None

    async def start(self) -> "BrowserSession":
        """Launch Chromium and open a mobile page."""
        s = self.settings
        self._playwright = await async_playwright().start()
        launch_kwargs = {"headless": s.headless, "args": list(LAUNCH_ARGS)}
        if s.browser_channel:
            launch_kwargs["channel"] = s.browser_channel
        self._browser = await self._playwright.chromium.launch(**launch_kwargs)

        self._context = await self._browser.new_context(
            viewport=dict(s.viewport),
            screen=dict(s.viewport),
            user_agent=s.user_agent,
            device_scale_factor=s.device_scale_factor,
            is_mobile=True,
            has_touch=True,
            locale=s.locale,
            extra_http_headers=dict(s.extra_headers),
        )
        await self._context.route("**/*", self._handle_route)
        self._page = await self._context.new_page()
        logger.info(
            "Browser launched (headless=%s, viewport=%dx%d)",
            s.headless,
            s.viewport["width"],
            s.viewport["height"],
        )
        return self

    async def _handle_route(self, route) -> None:
        request = route.request
        url = request.url

        if self.block_desktop and is_desktop_url(
            url, self.settings.upstream_domain
        ):
            logger.info("Blocking desktop redirect: %s", url)
            self.blocked_urls.append(url)
            await route.abort()
            return

        if request.resource_type != "document":
            await route.continue_()
            return

        # Fetch without following redirects so each hop comes back
        # through this route (and the desktop check above).
        try:
            resp = await route.fetch(max_redirects=0)
            body = await resp.body()
        except Exception:
            logger.debug("Stealth fetch failed for %s", url, exc_info=True)
            await route.continue_()
            return

        # route.fetch() decompresses the body but keeps Content-Encoding;
        # forwarding both makes the browser decode twice.
        headers = {
            k: v
            for k, v in resp.headers.items()
            if k.lower() not in ("content-encoding", "content-length")
        }
        await route.fulfill(
            status=resp.status,
            headers=headers,
            body=inject_stealth(body),
        )

    async def close(self) -> None:
        """Shut down page, context, browser and driver. Never raises."""
        for name in ("_page", "_context", "_browser"):
            obj = getattr(self, name)
            if obj is None:
                continue
            try:
                await obj.close()
            except Exception:
                logger.debug("Error closing %s", name[1:], exc_info=True)
            setattr(self, name, None)
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception:
                logger.debug("Error stopping playwright", exc_info=True)
            self._playwright = None
            logger.info("Browser closed")

    async def __aenter__(self) -> "BrowserSession":
        try:
            return await self.start()
        except BaseException:
            await self.close()
            raise

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


async def acquire_session(settings: Settings) -> BrowserSession:
    """Start a session. The caller must ``release()`` it."""
    session = BrowserSession(settings)
    try:
        await session.start()
    except BaseException:
        await session.close()
        raise
    return session


async def release(session: BrowserSession) -> None:
    await session.close()
