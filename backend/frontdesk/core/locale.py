"""Locale prefix resolution for page URLs.

Every page lives under ``/{locale}``. Requests without a supported prefix
are redirected; API, docs, health and static paths pass through.
"""

import re
from typing import Optional, Sequence

from fastapi import Request
from fastapi.responses import RedirectResponse

from frontdesk.core.config import get_settings

PASSTHROUGH_PREFIXES = ("/api", "/health", "/docs", "/redoc", "/openapi.json", "/static")

LOCALE_SEGMENT = re.compile(r"^[a-z]{2}(-[A-Za-z]{2})?$")


def is_passthrough(path: str) -> bool:
    """Paths that never carry a locale prefix."""
    for prefix in PASSTHROUGH_PREFIXES:
        if path == prefix or path.startswith(prefix + "/"):
            return True
    last_segment = path.rstrip("/").rsplit("/", 1)[-1]
    return "." in last_segment


def pick_locale(accept_language: Optional[str], locales: Sequence[str], default: str) -> str:
    """Best supported locale for an ``Accept-Language`` header.

    Only the primary language tag is compared; q-values order the candidates.
    """
    if not accept_language:
        return default

    candidates = []
    for position, part in enumerate(accept_language.split(",")):
        tag, _, params = part.strip().partition(";")
        tag = tag.strip().lower()
        if not tag or tag == "*":
            continue
        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        if quality > 0:
            candidates.append((-quality, position, tag.split("-")[0]))

    for _, _, language in sorted(candidates):
        if language in locales:
            return language
    return default


def resolve_locale_redirect(
    path: str,
    query: str,
    accept_language: Optional[str],
    locales: Sequence[str],
    default: str,
) -> Optional[str]:
    """Where to send a request that lacks a supported locale prefix (None to serve it)."""
    if is_passthrough(path):
        return None

    segments = path.lstrip("/").split("/", 1)
    first = segments[0]
    if first in locales:
        return None

    if LOCALE_SEGMENT.match(first):
        # Looks like a locale but is not one we serve: swap it for the default.
        rest = segments[1] if len(segments) > 1 else ""
        target = f"/{default}/{rest}" if rest else f"/{default}"
    else:
        locale = pick_locale(accept_language, locales, default)
        target = f"/{locale}{path}" if path != "/" else f"/{locale}"

    if query:
        target = f"{target}?{query}"
    return target


async def locale_redirect(request: Request, call_next):
    """HTTP middleware: redirect page requests to their locale-prefixed URL."""
    settings = get_settings()
    target = resolve_locale_redirect(
        request.url.path,
        request.url.query,
        request.headers.get("accept-language"),
        settings.locales,
        settings.default_locale,
    )
    if target is not None:
        return RedirectResponse(target, status_code=307)
    return await call_next(request)
