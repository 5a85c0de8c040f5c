"""Render pipeline: swap content for its best translation and mark it for editors."""
import logging

from flask import current_app

from transfilter.services.cache import cache_key, get_resolution_cache
from transfilter.services.fingerprint import compute_hash, extract_hash
from transfilter.services.marker import build_entry, contains_marker
from transfilter.services.resolver import TranslationResolver

logger = logging.getLogger(__name__)

PLUGINFILE_PLACEHOLDER = '@@PLUGINFILE@@'


def rewrite_pluginfile_urls(text, translation, wwwroot, context_id):
    """Point file placeholders in a substitute at the translation's file area."""
    if not text or PLUGINFILE_PLACEHOLDER not in text:
        return text
    base = f"{wwwroot.rstrip('/')}/pluginfile.php/{context_id}/filter_translations/substitutetext/{translation.id}"
    return text.replace(PLUGINFILE_PLACEHOLDER, base)


def untranslated_pages(config):
    raw = config.get('TRANSLATIONS_UNTRANSLATED_PAGES') or ''
    return {line.strip() for line in raw.splitlines() if line.strip()}


class TranslationFilter:
    """Apply stored translations to rendered text.

    One filter can serve many requests; everything that belongs to a single
    render lives on the :class:`RenderContext` passed to :meth:`filter`.
    """

    def __init__(self, resolver=None, cache=None, config=None):
        self.config = config if config is not None else current_app.config
        self.resolver = resolver or TranslationResolver(
            fallback_language=self.config.get('TRANSLATIONS_FALLBACK_LANGUAGE')
        )
        self.cache = cache if cache is not None else get_resolution_cache()
        self.skip_pages = untranslated_pages(self.config)

    def rewrite_urls(self, text, translation):
        rewriter = self.config.get('TRANSLATIONS_URL_REWRITER')
        if rewriter:
            return rewriter(text, translation)
        return rewrite_pluginfile_urls(
            text,
            translation,
            self.config.get('TRANSLATIONS_WWWROOT', ''),
            self.config.get('TRANSLATIONS_SYSTEM_CONTEXT_ID', 1),
        )

    def filter(self, text, context):
        """Return ``text`` as it should be shown in ``context.language``."""
        # Already processed, or a page that is never translated
        if context.page in self.skip_pages or contains_marker(text):
            return text

        text, found_hash = extract_hash(text)
        generated_hash = compute_hash(text)
        key = cache_key(context.language, generated_hash, found_hash)

        if not context.inline_editing:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        if not text:
            translated = ''
        else:
            resolution = self.resolver.get_best_translation(
                context.language, generated_hash, found_hash, text
            )
            if resolution is None:
                translated = text
                translation_for_editing = None
            else:
                translation = resolution.translation
                context.used_translation_ids.add(translation.id)
                translated = self.rewrite_urls(translation.substitutetext, translation)
                translation_for_editing = translation if resolution.suggestable else None

            translated += self.inline_marker(context, text, generated_hash, found_hash, translation_for_editing)

        if not context.inline_editing:
            self.cache.set(key, translated)

        return translated

    def inline_marker(self, context, rawtext, generated_hash, found_hash, translation=None):
        if not context.inline_editing:
            return ''

        if translation is not None and translation.contextid:
            contextid = translation.contextid
        else:
            contextid = context.context_id

        entry = build_entry(rawtext, generated_hash, found_hash, contextid, translation)
        return context.markers.mark(entry)
