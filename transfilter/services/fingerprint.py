"""Content fingerprints and embedded hash markers."""
import hashlib
import re

HASH_ATTRIBUTE = 'data-translationhash'

# <span data-translationhash="abc123"></span>, quotes and spacing are lenient
HASH_MARKER_RE = re.compile(
    r'<span data-translationhash[ ]*=[ ]*[\'"]+([a-zA-Z0-9]+)[\'"]+[ ]*>[ ]*</span>'
)


def compute_hash(text: str) -> str:
    """Hash content by its text, ignoring leading and trailing whitespace only."""
    return hashlib.md5((text or '').strip().encode('utf-8')).hexdigest()


def extract_hash(text: str) -> tuple[str, str | None]:
    """Find the embedded hash in a fragment and strip every marker from it.

    Returns:
        (stripped_text, found_hash). When the fragment carries no marker the
        text is returned unchanged with ``None``.
    """
    if not text or HASH_ATTRIBUTE not in text:
        return text, None

    match = HASH_MARKER_RE.search(text)
    if not match:
        return text, None

    return HASH_MARKER_RE.sub('', text), match.group(1)


def has_hash_marker(text: str) -> bool:
    return bool(text) and HASH_ATTRIBUTE in text


def embed_hash(text: str, content_hash: str) -> str:
    """Append a hash marker to content so later renders can find it."""
    return f'{text}<span {HASH_ATTRIBUTE}="{content_hash}"></span>'
