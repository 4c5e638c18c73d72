from __future__ import annotations

DEFAULT_FONT = "helv"
BASE_FONT_MAP = {
    "pt": "helv",
    "ptsans": "helv",
    "arial": "helv",
    "helvetica": "helv",
    "inter": "helv",
    "sans": "helv",
    "sans-serif": "helv",
    "times": "tiro",
    "timesnewroman": "tiro",
    "georgia": "tiro",
    "serif": "tiro",
    "courier": "cour",
    "couriernew": "cour",
    "monospace": "cour",
}
_BUILTIN_BASES = {"helv", "tiro", "cour"}
_STYLED = {
    ("helv", True, False): "hebo",
    ("helv", False, True): "heit",
    ("helv", True, True): "hebi",
    ("tiro", True, False): "tibo",
    ("tiro", False, True): "tiit",
    ("tiro", True, True): "tibi",
    ("cour", True, False): "cobo",
    ("cour", False, True): "coit",
    ("cour", True, True): "cobi",
}


def resolve_font_name(font_family: str | None) -> str:
    """Map a CSS-style family name onto one of the PDF base-14 fonts."""
    if not font_family:
        return DEFAULT_FONT
    cleaned = font_family.split(",")[0].strip().strip("'\"").lower()
    if not cleaned:
        return DEFAULT_FONT
    tokens = [token for token in cleaned.replace("_", " ").replace("-", " ").split() if token]
    is_bold = any(token in {"bold", "black", "semibold"} for token in tokens)
    is_italic = any(token in {"italic", "oblique"} for token in tokens)
    family_tokens = [token for token in tokens if token not in {"bold", "black", "semibold", "italic", "oblique", "regular"}]
    joined = "".join(family_tokens)

    base = BASE_FONT_MAP.get(joined) or BASE_FONT_MAP.get(family_tokens[0] if family_tokens else "", DEFAULT_FONT)
    if base not in _BUILTIN_BASES:
        base = DEFAULT_FONT
    return _STYLED.get((base, is_bold, is_italic), base)

