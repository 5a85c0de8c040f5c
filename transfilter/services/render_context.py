"""Per-render state handed through the translation pipeline."""
from dataclasses import dataclass, field

from transfilter.services.marker import MarkerSession

EDIT_CAPABILITY = 'translations:edit'
EDIT_SITE_DEFAULT_CAPABILITY = 'translations:editsitedefault'


def can_edit_language(capabilities, language, site_language) -> bool:
    """Editors of the site language need their own capability."""
    capabilities = set(capabilities or ())
    if language == site_language:
        return EDIT_SITE_DEFAULT_CAPABILITY in capabilities
    return EDIT_CAPABILITY in capabilities


@dataclass
class RenderContext:
    """Who is rendering what, for one page.

    Attributes:
        language: Language being rendered.
        context_id: Host context the page belongs to, used for marker entries
            when the translation does not carry one.
        can_edit: Actor holds the edit capability for ``language``.
        inline_toggle: Actor switched inline editing on for their session.
        page: Path of the page being rendered, for the untranslated-pages list.
    """

    language: str
    context_id: int = 1
    can_edit: bool = False
    inline_toggle: bool = False
    page: str = ''
    markers: MarkerSession = field(default_factory=MarkerSession)
    used_translation_ids: set = field(default_factory=set)

    @property
    def inline_editing(self) -> bool:
        return self.can_edit and self.inline_toggle

    @classmethod
    def for_actor(cls, language, capabilities=None, inline_toggle=False, site_language='en', **kwargs):
        return cls(
            language=language,
            can_edit=can_edit_language(capabilities, language, site_language),
            inline_toggle=bool(inline_toggle),
            **kwargs,
        )
