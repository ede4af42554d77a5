"""Scrape orchestration: session -> navigate -> select -> extract.

``fetch_catalog`` never raises for upstream problems. Every failure
(navigation, selection, empty extraction, deadline, or anything the
browser throws) becomes a ``Degraded`` outcome carrying the fallback
catalog, or ``Fatal`` when fallback data is disabled. The browser
session is released on every path, cancellation included.
"""

import asyncio
import logging
import random

from gamefeed._config import Settings
from gamefeed._errors import (
    DeadlineExceeded,
    ExtractionEmpty,
    GamefeedError,
    SelectionError,
)
from gamefeed._fallback import generate_fallback
from gamefeed._providers import ProviderDescriptor
from gamefeed._result import Degraded, Fatal, Ok, ScrapeOutcome
from gamefeed.browser._extract import extract_games, rank_games
from gamefeed.browser._navigate import navigate
from gamefeed.browser._select import select_provider
from gamefeed.browser._session import BrowserSession

logger = logging.getLogger("gamefeed")


def degrade(
    reason: str,
    settings: Settings,
    rng: random.Random | None = None,
    limit: int | None = None,
) -> Degraded | Fatal:
    """Turn a failure into the outcome the caller will serve.

    With *limit*, the fallback catalog is ranked and truncated the same
    way live batch results are.
    """
    if not settings.serve_fallback:
        logger.warning("Scrape failed, fallback disabled: %s", reason)
        return Fatal(reason)
    logger.warning("Scrape failed, serving fallback: %s", reason)
    games = generate_fallback(rng)
    if limit is not None:
        games = rank_games(games, limit)
    return Degraded(games, reason)


async def _scrape_one(
    provider: ProviderDescriptor,
    settings: Settings,
    session_factory,
    rng: random.Random | None,
) -> Ok:
    async with session_factory(settings) as session:
        rendered = await navigate(session, settings)
        await select_provider(session, provider, settings)
        games = await extract_games(rendered, provider, settings, rng=rng)
        if not games:
            raise ExtractionEmpty(rendered.url)
        return Ok(games, source=rendered.url)


async def fetch_catalog(
    provider: ProviderDescriptor,
    settings: Settings,
    *,
    session_factory=BrowserSession,
    rng: random.Random | None = None,
) -> ScrapeOutcome:
    """Scrape one provider's catalog within ``settings.deadline``."""
    logger.info("Scraping %s (deadline %.0fs)", provider.id, settings.deadline)
    try:
        outcome = await asyncio.wait_for(
            _scrape_one(provider, settings, session_factory, rng),
            timeout=settings.deadline,
        )
    except asyncio.TimeoutError:
        return degrade(str(DeadlineExceeded(settings.deadline)), settings, rng)
    except GamefeedError as e:
        return degrade(str(e), settings, rng)
    except Exception as e:
        logger.debug("Scrape of %s raised", provider.id, exc_info=True)
        return degrade(str(e) or type(e).__name__, settings, rng)

    logger.info(
        "Scraped %d games for %s from %s",
        len(outcome.games),
        provider.id,
        outcome.source,
    )
    return outcome


# ---------------------------------------------------------------------------
# Batch mode
# ---------------------------------------------------------------------------


def _page_url(rendered) -> str:
    try:
        return rendered.page.url
    except Exception:
        return rendered.url


async def _scrape_many(
    providers: list[ProviderDescriptor],
    settings: Settings,
    session_factory,
    rng: random.Random | None,
    results: dict[str, ScrapeOutcome],
) -> None:
    async with session_factory(settings) as session:
        rendered = await navigate(session, settings)
        for provider in providers:
            try:
                await select_provider(session, provider, settings)
                games = await extract_games(
                    rendered,
                    provider,
                    settings,
                    limit=settings.batch_limit,
                    rng=rng,
                )
            except SelectionError as e:
                results[provider.id] = degrade(
                    str(e), settings, rng, settings.batch_limit
                )
                continue
            except Exception as e:
                logger.debug(
                    "Batch step for %s raised", provider.id, exc_info=True
                )
                results[provider.id] = degrade(
                    str(e) or type(e).__name__,
                    settings,
                    rng,
                    settings.batch_limit,
                )
                continue
            if games:
                results[provider.id] = Ok(games, source=_page_url(rendered))
            else:
                results[provider.id] = degrade(
                    str(ExtractionEmpty(_page_url(rendered))),
                    settings,
                    rng,
                    settings.batch_limit,
                )


async def scrape_providers(
    providers: list[ProviderDescriptor],
    settings: Settings,
    *,
    session_factory=BrowserSession,
    rng: random.Random | None = None,
) -> dict[str, ScrapeOutcome]:
    """Scrape several providers sequentially in one browser session.

    Navigation happens once; each provider is then selected and
    extracted in turn, ranked by RTP and truncated to
    ``settings.batch_limit``. One provider failing never aborts the
    others. Providers not reached before the deadline (or before a
    navigation failure) get a degraded outcome.
    """
    results: dict[str, ScrapeOutcome] = {}
    reason = None
    try:
        await asyncio.wait_for(
            _scrape_many(providers, settings, session_factory, rng, results),
            timeout=settings.deadline,
        )
    except asyncio.TimeoutError:
        reason = str(DeadlineExceeded(settings.deadline))
    except Exception as e:
        logger.debug("Batch scrape raised", exc_info=True)
        reason = str(e) or type(e).__name__

    for provider in providers:
        if provider.id not in results:
            results[provider.id] = degrade(
                reason or "provider not scraped",
                settings,
                rng,
                settings.batch_limit,
            )
    return results
