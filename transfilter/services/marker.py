"""Invisible in-page markers pointing at translation metadata.

Every distinct resolution rendered on a page gets a small integer id. The id is
written in binary with zero-width characters and appended to the rendered text,
so a client-side script can find it in the DOM and look up the metadata in the
session payload without the page's visible text changing.
"""
import hashlib
import json
import re

ENCODED_ONE = '\u200b'  # zero-width space
ENCODED_ZERO = '\u200c'  # zero-width non-joiner
ENCODED_SEPARATOR = '\u200d'  # zero-width joiner

MARKER_BOUNDARY = ENCODED_SEPARATOR * 2

MARKER_RE = re.compile(
    f'{MARKER_BOUNDARY}([{ENCODED_ONE}{ENCODED_ZERO}]+){MARKER_BOUNDARY}'
)

ENTRY_FIELDS = (
    'rawtext',
    'generatedhash',
    'foundhash',
    'contextid',
    'translationid',
    'staletranslation',
    'goodtranslation',
    'notranslation',
)


def contains_marker(text) -> bool:
    """True if the text already went through the marking pipeline."""
    return bool(text) and MARKER_BOUNDARY in text


def encode_id(marker_id: int) -> str:
    bits = format(marker_id, 'b')
    encoded = bits.replace('1', ENCODED_ONE).replace('0', ENCODED_ZERO)
    return f'{MARKER_BOUNDARY}{encoded}{MARKER_BOUNDARY}'


def decode_ids(text) -> list:
    """Every marker id found in ``text``, in order of appearance."""
    ids = []
    for match in MARKER_RE.finditer(text or ''):
        bits = match.group(1).replace(ENCODED_ONE, '1').replace(ENCODED_ZERO, '0')
        ids.append(int(bits, 2))
    return ids


def build_entry(rawtext, generatedhash, foundhash, contextid, translation=None) -> dict:
    """Marker metadata for one fragment and the translation offered for editing."""
    return {
        'rawtext': rawtext,
        'generatedhash': generatedhash,
        'foundhash': foundhash,
        'contextid': contextid,
        'translationid': translation.id if translation is not None else '',
        'staletranslation': translation is not None and generatedhash != translation.lastgeneratedhash,
        'goodtranslation': translation is not None and generatedhash == translation.lastgeneratedhash,
        'notranslation': translation is None,
    }


class MarkerSession:
    """Marker ids and their entries for a single page render."""

    def __init__(self):
        self._ids_by_key = {}
        self._entries = {}
        self._last_id = 0
        self._serialized = None

    def __len__(self):
        return len(self._entries)

    @staticmethod
    def entry_key(entry: dict) -> str:
        canonical = json.dumps([entry.get(field) for field in ENTRY_FIELDS], ensure_ascii=False)
        return hashlib.md5(canonical.encode('utf-8')).hexdigest()

    def register(self, entry: dict) -> int:
        """Id for ``entry``, reusing the id of an identical entry seen earlier."""
        key = self.entry_key(entry)
        existing = self._ids_by_key.get(key)
        if existing is not None:
            return existing

        self._last_id += 1
        marker_id = self._last_id
        stored = {field: entry.get(field) for field in ENTRY_FIELDS}
        stored['inpagetranslationid'] = marker_id
        self._entries[marker_id] = stored
        self._ids_by_key[key] = marker_id
        self._serialized = None
        return marker_id

    def mark(self, entry: dict) -> str:
        """Register ``entry`` and return the invisible sequence to append."""
        return encode_id(self.register(entry))

    def get(self, marker_id):
        return self._entries.get(marker_id)

    def payload(self) -> dict:
        return dict(self._entries)

    def to_json(self) -> str:
        """Serialized payload, rebuilt only after new entries are registered."""
        if self._serialized is None:
            self._serialized = json.dumps(
                {str(marker_id): entry for marker_id, entry in self._entries.items()},
                ensure_ascii=False,
            )
        return self._serialized
