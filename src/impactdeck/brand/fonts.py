"""Map observed font families onto freely hosted web fonts."""

from __future__ import annotations

FONT_MAP: dict[str, str] = {
    "proxima nova": "Montserrat",
    "proxima-nova": "Montserrat",
    "proximanova": "Montserrat",
    "gotham": "Poppins",
    "gotham rounded": "Nunito",
    "avenir": "Nunito Sans",
    "avenir next": "Nunito Sans",
    "futura": "Jost",
    "futura pt": "Jost",
    "helvetica neue": "Inter",
    "helvetica": "Inter",
    "arial": "Inter",
    "din": "Barlow",
    "din next": "Barlow",
    "trade gothic": "Barlow Condensed",
    "brandon grotesque": "Raleway",
    "brandon": "Raleway",
    "circular": "DM Sans",
    "sofia pro": "Quicksand",
    "museo sans": "Nunito Sans",
    "lato": "Lato",
    "open sans": "Open Sans",
    "roboto": "Roboto",
    "montserrat": "Montserrat",
    "poppins": "Poppins",
    "raleway": "Raleway",
    "oswald": "Oswald",
    "source sans pro": "Source Sans 3",
    "source sans 3": "Source Sans 3",
    "work sans": "Work Sans",
    "nunito": "Nunito",
    "inter": "Inter",
    "manrope": "Manrope",
    "outfit": "Outfit",
    "plus jakarta sans": "Plus Jakarta Sans",
    "space grotesk": "Space Grotesk",
    "dm sans": "DM Sans",
    "be vietnam pro": "Be Vietnam Pro",
    "figtree": "Figtree",
    "georgia": "Merriweather",
    "times new roman": "Playfair Display",
    "times": "Playfair Display",
    "garamond": "EB Garamond",
    "adobe garamond": "EB Garamond",
    "minion": "Crimson Pro",
    "minion pro": "Crimson Pro",
    "baskerville": "Libre Baskerville",
    "caslon": "Libre Caslon Text",
    "palatino": "Cormorant Garamond",
    "bodoni": "Playfair Display",
    "didot": "Playfair Display",
    "freight text": "Lora",
    "miller": "Lora",
    "sentinel": "Zilla Slab",
    "rockwell": "Zilla Slab",
    "clarendon": "Zilla Slab",
    "playfair display": "Playfair Display",
    "merriweather": "Merriweather",
    "lora": "Lora",
    "crimson text": "Crimson Text",
    "eb garamond": "EB Garamond",
    "cormorant": "Cormorant Garamond",
    "libre baskerville": "Libre Baskerville",
    "source serif pro": "Source Serif 4",
    "pt serif": "PT Serif",
    "noto serif": "Noto Serif",
    "impact": "Anton",
    "bebas neue": "Bebas Neue",
    "league gothic": "Oswald",
    "anton": "Anton",
    "archivo black": "Archivo Black",
}

HOSTED_FONTS = (
    "Montserrat", "Poppins", "Roboto", "Open Sans", "Lato", "Oswald",
    "Raleway", "Playfair Display", "Merriweather", "Inter", "Nunito",
    "Work Sans", "DM Sans", "Outfit", "Space Grotesk", "Jost",
    "Barlow", "Quicksand", "Nunito Sans", "Source Sans 3",
)

SERIF_KEYWORDS = (
    "serif", "georgia", "times", "garamond", "baskerville", "palatino",
    "bodoni", "didot", "minion", "caslon", "freight", "miller", "sentinel",
    "rockwell", "clarendon", "playfair", "merriweather", "lora", "crimson", "cormorant",
)

SERIF_HEADING_FALLBACK = "Lora"
SANS_HEADING_FALLBACK = "Montserrat"
SERIF_BODY = "Source Serif 4"
SANS_BODY = "Inter"


def map_font(name: str | None) -> str | None:
    """Return the hosted equivalent of *name*, or ``None`` when unknown."""
    if not name:
        return None
    normalized = name.strip().lower()
    if not normalized:
        return None
    if normalized in FONT_MAP:
        return FONT_MAP[normalized]
    for key, value in FONT_MAP.items():
        if key in normalized or normalized in key:
            return value
    for hosted in HOSTED_FONTS:
        if hosted.lower() in normalized:
            return hosted
    return None


def is_serif_font(name: str | None) -> bool:
    if not name:
        return False
    lowered = name.lower()
    return any(keyword in lowered for keyword in SERIF_KEYWORDS)


def fonts_stylesheet_url(heading: str, body: str) -> str:
    families = list(dict.fromkeys([heading, body]))
    params = "&".join(f"family={f.replace(' ', '+')}:wght@400;500;700;900" for f in families)
    return f"https://fonts.googleapis.com/css2?{params}&display=swap"
