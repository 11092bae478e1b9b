"""HTML rendering of assistant replies for the chat UI.

Assistant text is escaped first, then URLs are turned into links and
weather-relevant tokens (temperatures, percentages, wind speeds, times,
condition keywords, gear to bring) are emphasized. Bullet lines become a
list; other lines become paragraphs.
"""

from __future__ import annotations

import html
import re

_KEYWORDS = (
    "today", "tonight", "this morning", "this afternoon", "this evening",
    "rain", "snow", "thunderstorm", "storm", "clear", "sunny", "cloudy",
    "overcast", "drizzle", "humid", "dry", "windy",
    "hot", "very hot", "warm", "cool", "cold", "chilly",
    "uv index", "air quality", "visibility",
    "warning", "alert", "advisory",
)

_GEAR = (
    "umbrella", "raincoat", "jacket", "coat", "sunscreen",
    "water", "mask", "hydrated", "layers",
)

_URL_RE = re.compile(r"\b(https?://[^\s<]+)\b", re.IGNORECASE)
_TEMPERATURE_RE = re.compile(r"-?\d+(?:\.\d+)?\s?°\s?[CF]", re.IGNORECASE)
_PERCENT_RE = re.compile(r"\b\d{1,3}%")
_WIND_RE = re.compile(r"\b\d+(?:\.\d+)?\s?(?:m/s|km/?h|kph|mph)\b", re.IGNORECASE)
_TIME_RE = re.compile(r"\b\d{1,2}(?:[:.]\d{2})?\s?(?:am|pm)\b", re.IGNORECASE)
_BULLET_RE = re.compile(r"^\s*[-•]\s+(.*)$")

# Longest first so "very hot" is wrapped before "hot"
_KEYWORD_RE = re.compile(
    r"\b(" + "|".join(re.escape(k) for k in sorted(_KEYWORDS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_GEAR_RE = re.compile(r"\b(" + "|".join(re.escape(g) for g in _GEAR) + r")\b", re.IGNORECASE)

# Tags and attributes produced here; emphasis must not rewrite inside them
_TAG_RE = re.compile(r"(<[^>]+>)")

_CONDITION_ICONS: tuple[tuple[str, str], ...] = (
    ("clear", "\u2600\ufe0f"),
    ("cloud", "\u2601\ufe0f"),
    ("rain", "\U0001f327\ufe0f"),
    ("drizzle", "\U0001f327\ufe0f"),
    ("thunder", "\u26c8\ufe0f"),
    ("snow", "\U0001f328\ufe0f"),
)


def escape_html(text: str) -> str:
    return html.escape(text, quote=True).replace("&#x27;", "&#39;")


def linkify(text: str) -> str:
    """Wrap bare http(s) URLs in anchor tags opening in a new tab."""
    return _URL_RE.sub(
        lambda m: f'<a href="{m.group(0)}" target="_blank" rel="noopener noreferrer">{m.group(0)}</a>',
        text,
    )


def _outside_tags(text: str, func) -> str:
    """Apply func to the text segments between HTML tags."""
    return "".join(
        part if _TAG_RE.fullmatch(part) else func(part)
        for part in _TAG_RE.split(text)
    )


def _emphasize(segment: str) -> str:
    # Numbers first, then gear highlights, then keywords
    for pattern in (_TEMPERATURE_RE, _PERCENT_RE, _WIND_RE, _TIME_RE):
        segment = _outside_tags(
            segment, lambda s, p=pattern: p.sub(lambda m: f"<strong>{m.group(0)}</strong>", s)
        )
    segment = _outside_tags(
        segment, lambda s: _GEAR_RE.sub(lambda m: f'<span class="hl">{m.group(0)}</span>', s)
    )
    return _outside_tags(
        segment, lambda s: _KEYWORD_RE.sub(lambda m: f"<strong>{m.group(0)}</strong>", s)
    )


def apply_inline_emphasis(text: str) -> str:
    """Bold weather figures and keywords, highlight gear words.

    Existing tags (e.g. from linkify) are left untouched, and text inside
    an anchor element is not emphasized.
    """
    parts = re.split(r"(<a\b[^>]*>.*?</a>)", text, flags=re.IGNORECASE | re.DOTALL)
    return "".join(
        part if part.lower().startswith("<a") else _emphasize(part)
        for part in parts
    )


def _format_line(text: str) -> str:
    return apply_inline_emphasis(linkify(escape_html(text)))


def format_assistant_html(text: str) -> str:
    """Render assistant text as HTML paragraphs and bullet lists."""
    out: list[str] = []
    in_list = False
    for raw in re.split(r"\r?\n", text):
        line = raw.rstrip()
        bullet = _BULLET_RE.match(line)
        if bullet:
            if not in_list:
                out.append('<ul class="assistant-list">')
                in_list = True
            out.append(f"<li>{_format_line(bullet.group(1))}</li>")
            continue

        if in_list:
            out.append("</ul>")
            in_list = False
        if not line.strip():
            out.append("<br />")
        else:
            out.append(f"<p>{_format_line(line)}</p>")

    if in_list:
        out.append("</ul>")
    return "".join(out)


def weather_icon(condition: str) -> str:
    """Map an OpenWeatherMap condition to an emoji."""
    lower = condition.lower()
    for key, icon in _CONDITION_ICONS:
        if key in lower:
            return icon
    return "\U0001f300"
