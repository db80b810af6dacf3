"""
Runtime Environment Validation Module

Validates the frontdesk configuration at application startup.
If validation fails, the application refuses to start (hard fail).
"""

import sys

from pydantic import ValidationError

from frontdesk.core.config import Settings


def check_settings(settings: Settings) -> list[str]:
    """Return a list of configuration problems (empty when valid)."""
    problems = []

    # 1. Remote API must be reachable over http(s)
    if not settings.api_base_url.startswith(("http://", "https://")):
        problems.append(
            f"API_BASE_URL must be an http:// or https:// URL, got '{settings.api_base_url}'"
        )

    if settings.api_timeout_seconds <= 0:
        problems.append("API_TIMEOUT_SECONDS must be positive")

    # 2. Locales: default must be one of the supported ones
    supported = [code.strip() for code in settings.supported_locales.split(",") if code.strip()]
    if not supported:
        problems.append("SUPPORTED_LOCALES must list at least one locale")
    elif settings.default_locale not in supported:
        problems.append(
            f"DEFAULT_LOCALE '{settings.default_locale}' is not in SUPPORTED_LOCALES ({settings.supported_locales})"
        )

    # 3. CORS: wildcard is only tolerated in debug mode
    if not settings.debug and "*" in settings.origins:
        problems.append("Wildcard CORS origin (*) is not allowed outside debug mode")

    if settings.cache_max_sessions < 1:
        problems.append("CACHE_MAX_SESSIONS must be at least 1")

    return problems


def validate_environment() -> Settings:
    """
    Validate all environment variables at startup.

    Returns:
        Settings: Validated settings object

    Raises:
        SystemExit: If validation fails (exit code 1)
    """
    try:
        settings = Settings()
    except ValidationError as e:
        print("❌ FATAL: Environment validation failed", file=sys.stderr)
        print("\nMissing or invalid environment variables:", file=sys.stderr)
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            print(f"   • {field}: {error['msg']}", file=sys.stderr)
        print("\nPlease check your .env file or environment variables.", file=sys.stderr)
        sys.exit(1)

    problems = check_settings(settings)
    if problems:
        for problem in problems:
            print(f"❌ FATAL: {problem}", file=sys.stderr)
        sys.exit(1)

    print("✅ Environment validation passed")
    print(f"   App: {settings.app_name}")
    print(f"   Debug: {settings.debug}")
    print(f"   API: {settings.api_base_url}")
    print(f"   Locales: {', '.join(settings.locales)}")

    return settings


if __name__ == "__main__":
    validate_environment()
