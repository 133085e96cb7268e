"""Media type helpers used to decide whether an error body is worth showing."""

TEXTUAL_MEDIA_TYPES = frozenset({
    "application/json",
    "application/xml",
    "application/yaml",
    "application/x-yaml",
})


def normalize_media_type(content_type: str) -> str:
    """Strip parameters and collapse structured suffixes.

    ``application/ld+json; charset=utf-8`` becomes ``application/json``.
    Malformed values (no subtype, trailing ``+``) normalize to ``""``.
    """
    if not content_type:
        return ""

    media_type = content_type.split(";", 1)[0].strip().lower()
    main, slash, subtype = media_type.partition("/")
    if not slash or not main or not subtype or "/" in subtype:
        return ""
    if any(c.isspace() for c in media_type):
        return ""

    _, plus, suffix = subtype.rpartition("+")
    if plus:
        if not suffix:
            # e.g. "application/something+"
            return ""
        return f"{main}/{suffix}"
    return media_type


def is_textual(content_type: str) -> bool:
    """True for ``text/*`` and the JSON/XML/YAML application types."""
    media_type = normalize_media_type(content_type)
    if not media_type:
        return False
    if media_type.startswith("text/"):
        return True
    return media_type in TEXTUAL_MEDIA_TYPES
