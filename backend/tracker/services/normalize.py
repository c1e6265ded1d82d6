import re

# Emoji and pictograph blocks
_EMOJI_RE = re.compile(
    "["
    "\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "\U0001F900-\U0001F9FF"
    "\U0001F018-\U0001F0F5"
    "\U0001F200-\U0001F2FF"
    "\U0001FA70-\U0001FAFF"
    "\U0001F004"
    "\U0001F0CF"
    "\U0001F170-\U0001F251"
    # variation selector and zero-width joiner left behind by composed emoji
    "\uFE0F"
    "\u200D"
    "]"
)
_WS = re.compile(r"\s+")
_MD_EMPHASIS = re.compile(r"(\*\*|__)")


def remove_emojis(text: str) -> str:
    return _EMOJI_RE.sub("", text or "").strip()


def normalize_whitespace(s: str) -> str:
    return _WS.sub(" ", (s or "").strip())


def strip_markdown(s: str) -> str:
    """Drops leftover [ ] brackets and bold markers from markdown table cells."""
    s = (s or "").replace("[", "").replace("]", "")
    return _MD_EMPHASIS.sub("", s).strip()
