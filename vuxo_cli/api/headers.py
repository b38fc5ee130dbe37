"""
Default HTTP headers for page and audio requests.
"""

BASE_HEADERS = {
    "user-agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "accept": "*/*",
    "accept-language": "en-US,en;q=0.9",
}


def build_page_headers(overrides: dict[str, str] | None = None) -> dict[str, str]:
    """Returns the default page headers with user overrides merged on top."""
    return {**BASE_HEADERS, **{k.lower(): v for k, v in (overrides or {}).items()}}


def build_audio_headers(
    host: str, overrides: dict[str, str] | None = None
) -> dict[str, str]:
    """
    Audio requests must look like they come from the site itself, otherwise
    the CDN refuses them as hotlinks.
    """
    headers = build_page_headers(overrides)
    headers.setdefault("referer", f"https://{host}/")
    headers.setdefault("origin", f"https://{host}")
    return headers
