"""Translation routes: rendering, inline editing toggle and translation records."""

import json
import logging

from flask import Blueprint, current_app, g, jsonify, request, session

from transfilter import db
from transfilter.models import Translation
from transfilter.services.cache import get_resolution_cache
from transfilter.services.fingerprint import compute_hash
from transfilter.services.render_context import RenderContext, can_edit_language
from transfilter.services.translation_filter import TranslationFilter
from transfilter.utils.auth import token_optional, token_required

logger = logging.getLogger(__name__)

translations_bp = Blueprint('translations', __name__)

INLINE_EDITING_KEY = 'translations_inline_editing'
USED_TRANSLATIONS_KEY = 'translations_used'


def _render_language(data):
    return (
        data.get('language')
        or request.args.get('lang')
        or current_app.config['TRANSLATIONS_SITE_LANGUAGE']
    )


def _remember_used_translations(translation_ids):
    """Keep ids of translations shown to this session so their files can be served."""
    if not translation_ids:
        return
    used = list(session.get(USED_TRANSLATIONS_KEY, []))
    for translation_id in sorted(translation_ids):
        if translation_id not in used:
            used.append(translation_id)
    session[USED_TRANSLATIONS_KEY] = used


@translations_bp.route('/render', methods=['POST'])
@token_optional
def render():
    """Render one or more fragments in the requested language.

    Body: ``{"text": "..."}`` or ``{"texts": [...]}`` plus optional
    ``language``, ``page`` and ``contextid``.
    """
    data = request.get_json(silent=True) or {}

    if 'texts' in data:
        texts = data['texts']
    elif 'text' in data:
        texts = [data['text']]
    else:
        return jsonify({'error': 'text or texts is required'}), 400

    if not isinstance(texts, list) or not all(isinstance(t, str) for t in texts):
        return jsonify({'error': 'texts must be a list of strings'}), 400

    config = current_app.config
    context = RenderContext.for_actor(
        _render_language(data),
        capabilities=g.capabilities,
        inline_toggle=session.get(INLINE_EDITING_KEY, False),
        site_language=config['TRANSLATIONS_SITE_LANGUAGE'],
        context_id=data.get('contextid') or config['TRANSLATIONS_SYSTEM_CONTEXT_ID'],
        page=data.get('page') or '',
    )

    translation_filter = TranslationFilter()
    rendered = [translation_filter.filter(text, context) for text in texts]
    _remember_used_translations(context.used_translation_ids)

    return jsonify({
        'language': context.language,
        'inline_editing': context.inline_editing,
        'rendered': rendered,
        'translations': json.loads(context.markers.to_json()),
    }), 200


@translations_bp.route('/inline-editing', methods=['POST'])
@token_required
def toggle_inline_editing():
    """Switch inline translation markers on or off for this session."""
    data = request.get_json(silent=True) or {}
    enabled = bool(data.get('enabled', True))
    session[INLINE_EDITING_KEY] = enabled
    return jsonify({'inline_editing': enabled}), 200


def _can_edit(language):
    return can_edit_language(g.capabilities, language, current_app.config['TRANSLATIONS_SITE_LANGUAGE'])


@translations_bp.route('', methods=['POST'])
@token_required
def create_translation():
    """Store a translation authored for a fragment.

    Either ``lastgeneratedhash`` or the fragment's ``rawtext`` must be given;
    ``md5key`` defaults to the generated hash when the fragment carried none.
    """
    data = request.get_json(silent=True) or {}

    language = data.get('targetlanguage')
    substitute = data.get('substitutetext')
    if not language or substitute is None:
        return jsonify({'error': 'targetlanguage and substitutetext are required'}), 400

    generated_hash = data.get('lastgeneratedhash')
    if not generated_hash and data.get('rawtext') is not None:
        generated_hash = compute_hash(data['rawtext'])
    if not generated_hash:
        return jsonify({'error': 'lastgeneratedhash or rawtext is required'}), 400

    if not _can_edit(language):
        return jsonify({'error': 'Not allowed to edit translations for this language'}), 403

    translation = Translation(
        md5key=data.get('md5key') or generated_hash,
        lastgeneratedhash=generated_hash,
        targetlanguage=language,
        substitutetext=substitute,
        contextid=data.get('contextid'),
    )
    try:
        db.session.add(translation)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Could not save translation: {e}")
        return jsonify({'error': 'Could not save translation'}), 500

    get_resolution_cache().invalidate(translation)
    return jsonify({'message': 'Translation created', 'translation': translation.to_dict()}), 201


@translations_bp.route('/<int:translation_id>', methods=['GET'])
@token_optional
def get_translation(translation_id):
    translation = db.session.get(Translation, translation_id)
    if not translation:
        return jsonify({'error': 'Translation not found'}), 404
    return jsonify(translation.to_dict()), 200


@translations_bp.route('/<int:translation_id>', methods=['PUT'])
@token_required
def update_translation(translation_id):
    """Replace a substitute, typically to refresh a stale translation.

    ``generatedhash`` (from the marker payload) names the fragment's current
    content hash so renders cached under it are dropped too.
    """
    translation = db.session.get(Translation, translation_id)
    if not translation:
        return jsonify({'error': 'Translation not found'}), 404

    if not _can_edit(translation.targetlanguage):
        return jsonify({'error': 'Not allowed to edit translations for this language'}), 403

    data = request.get_json(silent=True) or {}
    cache = get_resolution_cache()
    # Entries rendered from the old version go as well as the new ones
    cache.invalidate(translation)

    if 'substitutetext' in data:
        translation.substitutetext = data['substitutetext']
    if data.get('lastgeneratedhash'):
        translation.lastgeneratedhash = data['lastgeneratedhash']
    elif data.get('rawtext') is not None:
        translation.lastgeneratedhash = compute_hash(data['rawtext'])

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Could not update translation {translation_id}: {e}")
        return jsonify({'error': 'Could not save translation'}), 500

    cache.invalidate(translation, data.get('generatedhash'))
    return jsonify({'message': 'Translation updated', 'translation': translation.to_dict()}), 200
