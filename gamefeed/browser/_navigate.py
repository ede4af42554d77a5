"""Navigation onto the upstream mobile surface.

Candidates are tried in order; a candidate whose final URL lands on the
desktop site is rejected and the next one is tried. When every
candidate fails, the forced-mobile technique loads the desktop URL with
mobile-forcing parameters and rewrites the document into a mobile
layout. Only when that also fails is ``NavigationError`` raised.
"""

import asyncio
import logging
from dataclasses import dataclass

from gamefeed._config import Settings
from gamefeed._errors import NavigationError
from gamefeed.browser._session import BrowserSession, is_desktop_url

logger = logging.getLogger("gamefeed")

_FORCE_MOBILE_JS = """() => {
    const meta = document.querySelector('meta[name="viewport"]');
    if (meta) {
        meta.setAttribute(
            'content',
            'width=device-width, initial-scale=1.0, user-scalable=no'
        );
    }
    if (document.body) {
        document.body.classList.add('mobile', 'is-mobile');
    }
    const style = document.createElement('style');
    style.textContent =
        '@media (min-width: 768px) { body { max-width: 375px !important; } }';
    (document.head || document.documentElement).appendChild(style);
}"""

_READY_JS = "() => document.readyState === 'complete'"


@dataclass
class RenderedPage:
    """A page that reached the mobile surface and finished settling."""

    page: object
    url: str
    title: str
    entry_url: str


def _ms(seconds: float) -> int:
    return int(seconds * 1000)


async def _try_candidate(
    session: BrowserSession, url: str, s: Settings
) -> str | None:
    """Navigate to *url*. Returns the final URL, or None if rejected."""
    page = session.page
    logger.info("Trying mobile URL: %s", url)
    try:
        await page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=_ms(s.navigation_timeout),
        )
    except Exception as e:
        logger.info("URL failed: %s (%s)", url, e)
        return None

    final_url = page.url
    logger.debug("Final URL after navigation: %s", final_url)
    if is_desktop_url(final_url, s.upstream_domain):
        logger.info("Redirected to desktop (%s), trying next URL", final_url)
        return None
    return final_url


async def _force_mobile(session: BrowserSession, s: Settings) -> str:
    """Load the desktop URL with mobile parameters and coerce the layout.

    The desktop filter is lifted for this navigation; otherwise the
    request itself would be aborted.
    """
    page = session.page
    logger.info("Forcing mobile layout via %s", s.forced_mobile_url)
    session.block_desktop = False
    await page.goto(
        s.forced_mobile_url,
        wait_until="domcontentloaded",
        timeout=_ms(s.forced_mobile_timeout),
    )
    await page.evaluate(_FORCE_MOBILE_JS)
    return page.url


async def _wait_until_ready(page, settings: Settings) -> str:
    """Settle, wait for readyState, give a still-loading page extra time.

    Returns the final document title. Never raises on a slow page.
    """
    await asyncio.sleep(settings.settle_delay)
    try:
        await page.wait_for_function(
            _READY_JS, timeout=_ms(settings.ready_timeout)
        )
    except Exception:
        logger.info("Document ready timeout, proceeding anyway")

    title = await page.title()
    if title == settings.loading_title:
        logger.info(
            "Page still shows %r, waiting %.0fs more",
            title,
            settings.loading_grace,
        )
        await asyncio.sleep(settings.loading_grace)
        title = await page.title()
    return title


async def navigate(
    session: BrowserSession, settings: Settings | None = None
) -> RenderedPage:
    """Bring the session's page onto the upstream mobile surface.

    Raises:
        NavigationError: the preflight probe failed, or every candidate
            and the forced-mobile technique were exhausted.
    """
    s = settings or session.settings
    page = session.page
    tried: list[str] = []

    if s.preflight_url:
        tried.append(s.preflight_url)
        try:
            await page.goto(
                s.preflight_url,
                wait_until="domcontentloaded",
                timeout=_ms(s.navigation_timeout),
            )
        except Exception as e:
            raise NavigationError(tried, f"preflight failed: {e}") from e
        logger.debug("Preflight OK: %s", s.preflight_url)

    entry_url = None
    for url in s.entry_urls:
        tried.append(url)
        if await _try_candidate(session, url, s) is not None:
            entry_url = url
            logger.info("Mobile navigation successful via %s", url)
            break

    if entry_url is None:
        logger.warning("All mobile URLs failed, trying forced-mobile")
        tried.append(s.forced_mobile_url)
        try:
            await _force_mobile(session, s)
        except Exception as e:
            raise NavigationError(
                tried, f"all candidates and forced-mobile failed: {e}"
            ) from e
        entry_url = s.forced_mobile_url

    title = await _wait_until_ready(page, s)
    logger.info("Rendered %s (title %r)", page.url, title)
    return RenderedPage(
        page=page, url=page.url, title=title, entry_url=entry_url
    )
