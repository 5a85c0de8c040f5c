"""Tests for the render pipeline."""

import pytest

from transfilter.services.cache import ApplicationBackend, ResolutionCache, cache_key
from transfilter.services.fingerprint import compute_hash, embed_hash
from transfilter.services.marker import decode_ids, encode_id
from transfilter.services.render_context import EDIT_CAPABILITY, RenderContext
from transfilter.services.translation_filter import TranslationFilter

TEXT = '<p>Welcome to the course</p>'
GENERATED = compute_hash(TEXT)
FOUND = 'a1' * 16


@pytest.fixture
def cache():
    return ResolutionCache(ApplicationBackend({}, 0))


@pytest.fixture
def make_filter(app, cache):
    def _make(**config):
        settings = dict(app.config)
        settings.update(config)
        return TranslationFilter(cache=cache, config=settings)
    return _make


def _reader(language='fr', **kwargs):
    return RenderContext(language=language, **kwargs)


def _editor(language='fr', **kwargs):
    return RenderContext.for_actor(language, capabilities=[EDIT_CAPABILITY], inline_toggle=True, **kwargs)


class TestFilter:

    def test_passes_through_without_translation(self, db_session, make_filter):
        assert make_filter().filter(embed_hash(TEXT, FOUND), _reader()) == TEXT

    def test_uses_translation_for_content_hash(self, db_session, make_filter, make_translation):
        make_translation('0' * 32, GENERATED, 'fr', '<p>Bienvenue</p>')
        assert make_filter().filter(TEXT, _reader()) == '<p>Bienvenue</p>'

    def test_found_hash_translation_wins(self, db_session, make_filter, make_translation):
        make_translation('0' * 32, GENERATED, 'fr', '<p>Par le texte</p>')
        make_translation(FOUND, 'f' * 32, 'fr', '<p>Par le marqueur</p>')
        assert make_filter().filter(embed_hash(TEXT, FOUND), _reader()) == '<p>Par le marqueur</p>'

    def test_records_used_translations(self, db_session, make_filter, make_translation):
        translation = make_translation(FOUND, GENERATED, 'fr')
        context = _reader()
        make_filter().filter(embed_hash(TEXT, FOUND), context)
        assert context.used_translation_ids == {translation.id}

    def test_already_marked_text_is_untouched(self, db_session, make_filter, make_translation):
        make_translation(FOUND, GENERATED, 'fr')
        text = embed_hash(TEXT, FOUND) + encode_id(1)
        assert make_filter().filter(text, _editor()) == text

    def test_untranslated_pages_are_skipped(self, db_session, make_filter, make_translation):
        make_translation(FOUND, GENERATED, 'fr')
        text = embed_hash(TEXT, FOUND)
        translation_filter = make_filter(TRANSLATIONS_UNTRANSLATED_PAGES='/admin/settings\n/login')
        assert translation_filter.filter(text, _reader(page='/login')) == text

    def test_empty_text(self, db_session, make_filter):
        assert make_filter().filter('', _editor()) == ''

    def test_rewrites_file_placeholders(self, db_session, make_filter, make_translation):
        translation = make_translation(FOUND, GENERATED, 'fr', '<img src="@@PLUGINFILE@@/a.png">')
        translation_filter = make_filter(TRANSLATIONS_WWWROOT='https://lms.example/', TRANSLATIONS_SYSTEM_CONTEXT_ID=1)
        assert translation_filter.filter(embed_hash(TEXT, FOUND), _reader()) == (
            f'<img src="https://lms.example/pluginfile.php/1/filter_translations/substitutetext/{translation.id}/a.png">'
        )

    def test_custom_url_rewriter(self, db_session, make_filter, make_translation):
        make_translation(FOUND, GENERATED, 'fr', 'Bonjour')
        translation_filter = make_filter(TRANSLATIONS_URL_REWRITER=lambda text, translation: text.upper())
        assert translation_filter.filter(embed_hash(TEXT, FOUND), _reader()) == 'BONJOUR'


class TestCaching:

    def test_result_is_cached_by_language_and_hash(self, db_session, make_filter, make_translation, cache):
        make_translation(FOUND, GENERATED, 'fr', 'Bonjour')
        make_filter().filter(embed_hash(TEXT, FOUND), _reader())
        assert cache.get(cache_key('fr', GENERATED)) == 'Bonjour'

    def test_cached_value_is_returned(self, db_session, make_filter, cache):
        cache.set(cache_key('fr', GENERATED), 'Depuis le cache')
        assert make_filter().filter(TEXT, _reader()) == 'Depuis le cache'

    def test_inline_editing_bypasses_cache(self, db_session, make_filter, cache):
        cache.set(cache_key('fr', GENERATED), 'Depuis le cache')
        rendered = make_filter().filter(TEXT, _editor())
        assert rendered.startswith(TEXT)
        assert decode_ids(rendered) == [1]
        assert cache.get(cache_key('fr', GENERATED)) == 'Depuis le cache'


class TestInlineMarkers:

    def test_no_markers_for_readers(self, db_session, make_filter):
        context = _reader(can_edit=False, inline_toggle=True)
        assert make_filter().filter(TEXT, context) == TEXT
        assert context.markers.payload() == {}

    def test_no_markers_until_toggled(self, db_session, make_filter):
        context = RenderContext.for_actor('fr', capabilities=[EDIT_CAPABILITY], inline_toggle=False)
        assert make_filter().filter(TEXT, context) == TEXT

    def test_marker_for_untranslated_fragment(self, db_session, make_filter):
        context = _editor(context_id=42)
        rendered = make_filter().filter(embed_hash(TEXT, FOUND), context)

        assert rendered.startswith(TEXT)
        assert decode_ids(rendered) == [1]
        entry = context.markers.get(1)
        assert entry['rawtext'] == TEXT
        assert entry['generatedhash'] == GENERATED
        assert entry['foundhash'] == FOUND
        assert entry['contextid'] == 42
        assert entry['notranslation'] is True

    def test_marker_points_at_stale_translation(self, db_session, make_filter, make_translation):
        translation = make_translation(FOUND, 'e' * 32, 'fr', 'Bonjour', contextid=9)
        context = _editor()
        rendered = make_filter().filter(embed_hash(TEXT, FOUND), context)

        assert rendered.startswith('Bonjour')
        entry = context.markers.get(decode_ids(rendered)[0])
        assert entry['translationid'] == translation.id
        assert entry['contextid'] == 9
        assert entry['staletranslation'] is True
        assert entry['goodtranslation'] is False

    def test_same_fragment_reuses_marker(self, db_session, make_filter):
        context = _editor()
        translation_filter = make_filter()
        first = translation_filter.filter(TEXT, context)
        second = translation_filter.filter(TEXT, context)
        assert first == second
        assert len(context.markers) == 1

    def test_fallback_language_is_not_offered_for_editing(self, db_session, make_filter, make_translation):
        make_translation(FOUND, GENERATED, 'en', 'Welcome!')
        context = _editor('fr')
        rendered = make_filter(TRANSLATIONS_FALLBACK_LANGUAGE='en').filter(embed_hash(TEXT, FOUND), context)

        assert rendered.startswith('Welcome!')
        entry = context.markers.get(1)
        assert entry['notranslation'] is True
        assert entry['translationid'] == ''
