"""Translation model keyed by content fingerprint."""
from datetime import datetime
from transfilter import db


class Translation(db.Model):
    """A substitute text for one piece of content in one language.

    ``md5key`` is the hash the translation is filed under (normally the hash
    embedded in the content when the translation was created) and
    ``lastgeneratedhash`` is the hash of the source text at the time the
    substitute was last written.
    """

    __tablename__ = 'filter_translations'

    id = db.Column(db.Integer, primary_key=True)
    md5key = db.Column(db.String(32), nullable=False, index=True)
    lastgeneratedhash = db.Column(db.String(32), nullable=False, index=True)
    targetlanguage = db.Column(db.String(30), nullable=False)
    substitutetext = db.Column(db.Text, nullable=False, default='')
    contextid = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def copy(self, **overrides):
        """Return an unsaved copy of this translation with some fields replaced."""
        fields = {
            'md5key': self.md5key,
            'lastgeneratedhash': self.lastgeneratedhash,
            'targetlanguage': self.targetlanguage,
            'substitutetext': self.substitutetext,
            'contextid': self.contextid,
        }
        fields.update(overrides)
        return Translation(**fields)

    def to_dict(self):
        """Convert translation to dictionary."""
        return {
            'id': self.id,
            'md5key': self.md5key,
            'lastgeneratedhash': self.lastgeneratedhash,
            'targetlanguage': self.targetlanguage,
            'substitutetext': self.substitutetext,
            'contextid': self.contextid,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Translation {self.id}: {self.md5key} [{self.targetlanguage}]>'
