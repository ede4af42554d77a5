"""Settings -- environment-injected configuration, zero I/O."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace

DEFAULT_REDIS_URL = "redis://localhost:6379"

DEFAULT_SITE_ORIGIN = "https://m.amigo.love"
DEFAULT_UPSTREAM_DOMAIN = "amigo.love"

# Ordered: the first candidate that does not land on the desktop site wins
DEFAULT_ENTRY_URLS = (
    "https://m.amigo.love/game-slot",
    "https://m.amigo.love/game-slot/",
    "https://m.amigo.love/#/game-slot",
    "https://mobile.amigo.love/game-slot",
)
DEFAULT_FORCED_MOBILE_URL = (
    "https://amigo.love/game-slot?mobile=1&forceLanguage=en"
)

DEFAULT_PROVIDER = "pg-soft"

MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.0 Mobile/15E148 Safari/604.1"
)

MOBILE_VIEWPORT = {"width": 375, "height": 667}
MOBILE_DEVICE_SCALE = 2

DEFAULT_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/webp,image/apng,*/*;q=0.8"
    ),
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Upgrade-Insecure-Requests": "1",
}

DEFAULT_CACHE_TTL = 15 * 60
DEFAULT_FAILURE_TTL = 5 * 60
DEFAULT_LOCAL_TTL = 15 * 60
DEFAULT_DEADLINE = 60.0


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_list(
    environ: Mapping[str, str], name: str, default: tuple[str, ...]
) -> tuple[str, ...]:
    raw = environ.get(name)
    if not raw:
        return default
    items = tuple(p.strip() for p in raw.split(",") if p.strip())
    return items or default


@dataclass(frozen=True)
class Settings:
    """Everything the pipeline needs to know about its environment.

    Timeouts and delays are in seconds. Tests build a ``Settings`` with
    zero delays via ``dataclasses.replace``; production code builds one
    from the process environment with ``Settings.from_env()``.
    """

    redis_url: str = DEFAULT_REDIS_URL
    site_origin: str = DEFAULT_SITE_ORIGIN
    upstream_domain: str = DEFAULT_UPSTREAM_DOMAIN
    entry_urls: tuple[str, ...] = DEFAULT_ENTRY_URLS
    forced_mobile_url: str = DEFAULT_FORCED_MOBILE_URL
    preflight_url: str | None = None
    default_provider: str = DEFAULT_PROVIDER

    # Browser
    headless: bool = True
    browser_channel: str | None = None
    user_agent: str = MOBILE_USER_AGENT
    viewport: dict[str, int] = field(
        default_factory=lambda: dict(MOBILE_VIEWPORT)
    )
    device_scale_factor: float = MOBILE_DEVICE_SCALE
    locale: str = "en-US"
    extra_headers: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_HEADERS)
    )

    # Navigation
    navigation_timeout: float = 15.0
    forced_mobile_timeout: float = 10.0
    settle_delay: float = 5.0
    ready_timeout: float = 5.0
    loading_title: str = "Loading"
    loading_grace: float = 3.0

    # Provider selection
    selection_timeout: float = 10.0
    selection_settle: float = 2.0
    container_timeout: float = 30.0
    image_timeout: float = 10.0
    alternate_timeout: float = 5.0

    # Extraction
    batch_limit: int = 10

    # Pipeline and cache
    deadline: float = DEFAULT_DEADLINE
    cache_ttl: int = DEFAULT_CACHE_TTL
    failure_ttl: int = DEFAULT_FAILURE_TTL
    local_ttl: float = DEFAULT_LOCAL_TTL
    serve_fallback: bool = True
    environment: str = "development"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Unset or empty variables keep the module defaults. Malformed
        numbers and booleans raise ``ValueError`` naming the variable.
        """
        env = os.environ if environ is None else environ
        return cls(
            redis_url=env.get("REDIS_URL") or DEFAULT_REDIS_URL,
            site_origin=(
                env.get("GAMEFEED_SITE_ORIGIN") or DEFAULT_SITE_ORIGIN
            ),
            upstream_domain=(
                env.get("GAMEFEED_UPSTREAM_DOMAIN")
                or DEFAULT_UPSTREAM_DOMAIN
            ),
            entry_urls=_env_list(
                env, "GAMEFEED_ENTRY_URLS", DEFAULT_ENTRY_URLS
            ),
            forced_mobile_url=(
                env.get("GAMEFEED_FORCED_MOBILE_URL")
                or DEFAULT_FORCED_MOBILE_URL
            ),
            preflight_url=env.get("GAMEFEED_PREFLIGHT_URL") or None,
            default_provider=(
                env.get("GAMEFEED_DEFAULT_PROVIDER") or DEFAULT_PROVIDER
            ),
            headless=_env_bool(env, "GAMEFEED_HEADLESS", True),
            browser_channel=env.get("GAMEFEED_BROWSER_CHANNEL") or None,
            deadline=_env_float(env, "GAMEFEED_DEADLINE", DEFAULT_DEADLINE),
            cache_ttl=int(
                _env_float(env, "GAMEFEED_CACHE_TTL", DEFAULT_CACHE_TTL)
            ),
            failure_ttl=int(
                _env_float(env, "GAMEFEED_FAILURE_TTL", DEFAULT_FAILURE_TTL)
            ),
            local_ttl=_env_float(
                env, "GAMEFEED_LOCAL_TTL", DEFAULT_LOCAL_TTL
            ),
            serve_fallback=_env_bool(env, "GAMEFEED_SERVE_FALLBACK", True),
            environment=env.get("GAMEFEED_ENV") or "development",
        )

    def with_overrides(self, **changes) -> "Settings":
        return replace(self, **changes)
