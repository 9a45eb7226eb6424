"""
HTML Text Helpers

Regex-level extraction shared by the homepage stages and the validator.
Pages are only mined for a handful of signals, so no DOM is built.
"""

import html as html_lib
import re
from typing import Dict, List, Optional


_SCRIPT_STYLE_RE = re.compile(
    r"<(script|style|noscript|template)[^>]*>.*?</\1>", re.DOTALL | re.IGNORECASE
)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_META_TAG_RE = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_ATTR_RE = re.compile(r'([a-zA-Z_:.-]+)\s*=\s*(?:"([^"]*)"|\'([^\']*)\'|([^\s>]+))')
_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.DOTALL | re.IGNORECASE)
_LANG_RE = re.compile(r"<html\b[^>]*\blang\s*=\s*[\"']?([a-zA-Z]{2})", re.IGNORECASE)


def strip_scripts(html: str) -> str:
    """Remove script, style, noscript and template blocks plus comments."""
    html = _SCRIPT_STYLE_RE.sub(" ", html or "")
    return _COMMENT_RE.sub(" ", html)


def clean_text(text: Optional[str]) -> str:
    """Decode entities and collapse whitespace."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", html_lib.unescape(text)).strip()


def extract_text(html: Optional[str], limit: Optional[int] = None) -> str:
    """Extract readable text from HTML."""
    if not html:
        return ""
    text = _TAG_RE.sub(" ", strip_scripts(html))
    text = clean_text(text)
    return text[:limit] if limit else text


def parse_attributes(tag: str) -> Dict[str, str]:
    """Parse the attributes of a single tag into a lowercase-keyed dict."""
    attrs = {}
    for match in _ATTR_RE.finditer(tag):
        value = next((g for g in match.groups()[1:] if g is not None), "")
        attrs[match.group(1).lower()] = value
    return attrs


def find_meta(html: str, key: str) -> str:
    """
    Find the content of a <meta> tag by name or property.

    Attribute order does not matter, so both
    <meta name="description" content="..."> and
    <meta content="..." property="og:title"> are found.
    """
    key = key.lower()
    for tag in _META_TAG_RE.findall(html or ""):
        attrs = parse_attributes(tag)
        if (attrs.get("name") or attrs.get("property") or "").lower() == key:
            content = clean_text(attrs.get("content"))
            if content:
                return content
    return ""


def find_title(html: str) -> str:
    match = _TITLE_RE.search(html or "")
    return clean_text(_TAG_RE.sub(" ", match.group(1))) if match else ""


def find_language(html: str) -> Optional[str]:
    """Two-letter language from <html lang>, lowercased."""
    match = _LANG_RE.search(html or "")
    return match.group(1).lower() if match else None


def find_elements(html: str, tag: str) -> List[str]:
    """Return the inner HTML of every <tag>...</tag> (non-nested) occurrence."""
    pattern = re.compile(rf"<{tag}\b[^>]*>(.*?)</{tag}>", re.DOTALL | re.IGNORECASE)
    return pattern.findall(html or "")
