"""Provider tab selection and catalog wait."""

import asyncio
import logging

from gamefeed._config import Settings
from gamefeed._errors import SelectionError
from gamefeed._providers import ProviderDescriptor

logger = logging.getLogger("gamefeed")

CATALOG_CONTAINER = ".game-item"
CATALOG_IMAGE = ".game-item .img-game"
ALTERNATE_CONTAINERS = (
    '[class*="game-item"]',
    'div[class*="game"]',
    '[data-v-545cc5a7][class*="game"]',
)


async def wait_for_catalog(page, settings: Settings) -> str | None:
    """Wait for a catalog container to become visible.

    Returns the selector that matched, or None. A missing container is
    not an error: extraction still runs against whatever rendered.
    """
    try:
        await page.wait_for_selector(
            CATALOG_CONTAINER,
            state="visible",
            timeout=int(settings.container_timeout * 1000),
        )
    except Exception:
        logger.info("%s not visible, trying alternatives", CATALOG_CONTAINER)
    else:
        try:
            await page.wait_for_selector(
                CATALOG_IMAGE,
                state="visible",
                timeout=int(settings.image_timeout * 1000),
            )
        except Exception:
            logger.debug("%s not visible, proceeding", CATALOG_IMAGE)
        return CATALOG_CONTAINER

    for selector in ALTERNATE_CONTAINERS:
        try:
            await page.wait_for_selector(
                selector,
                state="visible",
                timeout=int(settings.alternate_timeout * 1000),
            )
        except Exception:
            logger.debug("%s not found", selector)
            continue
        logger.info("Found alternative container: %s", selector)
        return selector

    logger.warning("No catalog container found, extracting anyway")
    return None


async def select_provider(
    session, provider: ProviderDescriptor, settings: Settings | None = None
) -> str | None:
    """Click the provider's tab and wait for its catalog.

    Returns the container selector that appeared (or None).

    Raises:
        SelectionError: the provider's selector could not be clicked.
    """
    s = settings or session.settings
    page = session.page
    logger.info("Selecting provider %s via %s", provider.id, provider.selector)
    try:
        await page.click(
            provider.selector, timeout=int(s.selection_timeout * 1000)
        )
    except Exception as e:
        raise SelectionError(provider.id, provider.selector, str(e)) from e

    await asyncio.sleep(s.selection_settle)
    return await wait_for_catalog(page, s)
