import html
from typing import Optional

import bleach


def clean_text(value: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    """
    Strip all markup from free text that ends up in public page <head> tags or ad
    markup (SEO titles, meta descriptions, alt text).
    """
    if value is None:
        return None
    cleaned = bleach.clean(str(value), tags=[], attributes={}, strip=True)
    # bleach entity-escapes the remaining text; stored values are plain text
    cleaned = html.unescape(cleaned).strip()
    if max_length is not None:
        cleaned = cleaned[:max_length]
    return cleaned


def clean_url(value: Optional[str]) -> Optional[str]:
    """Allow only http(s) and site-relative links"""
    if not value:
        return value
    value = value.strip()
    if value.startswith("/") or value.lower().startswith(("http://", "https://")):
        return value
    raise ValueError("URL must be http(s) or start with /")
