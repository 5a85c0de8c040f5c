"""Pick the best stored translation for a fragment.

A fragment may be known by two hashes: the one embedded in it by an earlier
render (found hash) and the one computed from its current text (generated
hash). Translations filed under the found hash are authoritative; ones written
for the generated hash are used when nothing was filed for the fragment itself.
"""
import logging
from dataclasses import dataclass

from transfilter.services.store import SqlTranslationStore

logger = logging.getLogger(__name__)

# Language whose translations are never offered as the edit target for others
GENERIC_LANGUAGE = 'en'


def bucket_by_language(translations, found_hash):
    """Split translations into (by_found_hash, by_generated_hash) dicts keyed by language.

    Later rows overwrite earlier ones for the same language, so with rows in
    ascending ``md5key`` order the greatest key wins within a bucket.
    """
    by_found_hash = {}
    by_generated_hash = {}
    for translation in translations:
        if found_hash and translation.md5key == found_hash:
            by_found_hash[translation.targetlanguage] = translation
        else:
            by_generated_hash[translation.targetlanguage] = translation
    return by_found_hash, by_generated_hash


@dataclass
class Resolution:
    """A matched translation and the content hash it was matched against."""

    translation: object
    generated_hash: str
    requested_language: str

    @property
    def stale(self) -> bool:
        return self.translation.lastgeneratedhash != self.generated_hash

    @property
    def good(self) -> bool:
        return not self.stale

    @property
    def suggestable(self) -> bool:
        """Whether editors should be pointed at this record when editing."""
        return not (
            self.translation.targetlanguage == GENERIC_LANGUAGE
            and self.requested_language != GENERIC_LANGUAGE
        )


class TranslationResolver:
    """Resolve fragments against a translation store."""

    def __init__(self, store=None, fallback_language=None):
        self.store = store or SqlTranslationStore()
        self.fallback_language = fallback_language or None

    def candidate_languages(self, target_language):
        languages = [target_language]
        if self.fallback_language and self.fallback_language != target_language:
            languages.append(self.fallback_language)
        return languages

    def get_best_translation(self, target_language, generated_hash, found_hash, text):
        """Return a :class:`Resolution`, or ``None`` when nothing matches.

        Args:
            target_language: Language code being rendered.
            generated_hash: Hash of the fragment's current text.
            found_hash: Hash embedded in the fragment, if any.
            text: The fragment with markers stripped.
        """
        if not text or not target_language:
            return None

        translations = self.store.find_matching(found_hash, generated_hash)
        if not translations:
            return None

        by_found_hash, by_generated_hash = bucket_by_language(translations, found_hash)

        for language in self.candidate_languages(target_language):
            translation = by_found_hash.get(language) or by_generated_hash.get(language)
            if translation is not None:
                return Resolution(translation, generated_hash, target_language)

        return None
