"""Translation storage backed by the SQLAlchemy session."""
import logging

from sqlalchemy import or_

from transfilter import db
from transfilter.models import Translation

logger = logging.getLogger(__name__)


class SqlTranslationStore:
    """Query and insert translations through ``db.session``.

    The store never commits; callers own the transaction.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def find_matching(self, found_hash, generated_hash) -> list:
        """All translations filed under ``found_hash`` or written for ``generated_hash``.

        Rows come back in ascending ``md5key`` order (then ``id``), which is the
        order bucketing relies on.
        """
        criteria = []
        if found_hash:
            criteria.append(Translation.md5key == found_hash)
        if generated_hash:
            criteria.append(Translation.lastgeneratedhash == generated_hash)
        if not criteria:
            return []

        return (
            self.session.query(Translation)
            .filter(or_(*criteria))
            .order_by(Translation.md5key.asc(), Translation.id.asc())
            .all()
        )

    def get(self, translation_id):
        return self.session.get(Translation, translation_id)

    def insert(self, translation) -> int:
        """Add a translation and flush so its id is assigned."""
        self.session.add(translation)
        self.session.flush()
        logger.debug(f"Inserted translation {translation.id} ({translation.md5key}, {translation.targetlanguage})")
        return translation.id
