"""Batch copy of translations onto the hash embedded in stored content.

Content keeps the hash it was given when it was first translated, but editing
it changes the hash of its text. Translations written later against the new
text end up filed under that newer hash, so the fragment's own hash group is
missing them. A reconciliation run walks every translatable column, finds
translations recorded for a row's current text but missing under its embedded
hash, and copies them across. Existing translations under the embedded hash are
never overwritten.
"""
import json
import logging
from dataclasses import dataclass, field

import sqlalchemy as sa

from transfilter import db
from transfilter.services.fingerprint import compute_hash, extract_hash, has_hash_marker
from transfilter.services.resolver import bucket_by_language
from transfilter.services.store import SqlTranslationStore
from transfilter.services.translation_filter import PLUGINFILE_PLACEHOLDER

logger = logging.getLogger(__name__)

COLUMN_DEFINITION_ERROR = 'Column definition file is missing, unreadable or not valid JSON.'
UNKNOWN_COLUMN_ERROR = 'Unknown column or table.'

FORMAT_SUFFIX = 'format'
ANY = '*'


class ColumnDefinitionError(Exception):
    """The tables/columns document could not be read."""

    def __init__(self, message=COLUMN_DEFINITION_ERROR):
        super().__init__(message)


class UnknownColumnError(Exception):
    """A requested table or column is not a translatable column."""

    def __init__(self, table, column=None):
        self.table = table
        self.column = column
        super().__init__(f"{UNKNOWN_COLUMN_ERROR} ({table}.{column})" if column else f"{UNKNOWN_COLUMN_ERROR} ({table})")


def discover_columns(engine=None) -> dict:
    """Map each table to its rich-text columns.

    A column counts when the table also has a ``<column>format`` column.
    """
    inspector = sa.inspect(engine or db.engine)
    columns_by_table = {}
    for table in inspector.get_table_names():
        names = [column['name'] for column in inspector.get_columns(table)]
        translatable = [name for name in names if f"{name}{FORMAT_SUFFIX}" in names]
        if translatable:
            columns_by_table[table] = translatable
    return columns_by_table


def load_column_definition(path) -> dict:
    """Read a ``{"table": ["column", ...]}`` JSON document."""
    if not path:
        raise ColumnDefinitionError()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            definition = json.load(f)
    except (OSError, ValueError) as e:
        logger.debug(f"Column definition load failed: {e}")
        raise ColumnDefinitionError() from e

    if not isinstance(definition, dict):
        raise ColumnDefinitionError()
    for table, columns in definition.items():
        if not isinstance(columns, list) or not all(isinstance(c, str) for c in columns):
            raise ColumnDefinitionError()
    return definition


def validate_columns(columns_by_table, known_columns):
    for table, columns in columns_by_table.items():
        if table not in known_columns:
            raise UnknownColumnError(table)
        for column in columns:
            if column not in known_columns[table]:
                raise UnknownColumnError(table, column)


# ============ Render transforms ============

class RenderTransformRegistry:
    """Functions producing the rendered form of a column, keyed by table and column.

    A transform is called as ``transform(row, column, config)`` and returns the
    rendered text, or ``''`` to keep using the raw value. Lookups prefer an
    exact (table, column) match, then the table, then the column.
    """

    def __init__(self):
        self._transforms = {}

    def register(self, table=ANY, column=ANY):
        def decorator(func):
            self._transforms[(table, column)] = func
            return func
        return decorator

    def lookup(self, table, column):
        for key in ((table, column), (table, ANY), (ANY, column)):
            if key in self._transforms:
                return self._transforms[key]
        return None

    def render(self, table, column, row, config) -> str:
        transform = self.lookup(table, column)
        if transform is None:
            return ''
        return transform(row, column, config) or ''


render_transforms = RenderTransformRegistry()


def pluginfile_url(config, level, instance_id, component, filearea, itemid=None, modname=None):
    """Base URL replacing ``@@PLUGINFILE@@`` for one file area.

    ``TRANSLATIONS_CONTEXT_RESOLVER`` is called as
    ``resolve_context(level, instance_id, modname)`` and returns the context id;
    ``modname`` tells module instances of different types apart.
    """
    resolve_context = config.get('TRANSLATIONS_CONTEXT_RESOLVER')
    context_id = resolve_context(level, instance_id, modname) if resolve_context else instance_id
    wwwroot = (config.get('TRANSLATIONS_WWWROOT') or '').rstrip('/')
    url = f"{wwwroot}/pluginfile.php/{context_id}/{component}/{filearea}"
    if itemid is not None:
        url = f"{url}/{itemid}"
    return url


def _rewrite(text, base_url):
    if not text or PLUGINFILE_PLACEHOLDER not in text:
        return ''
    return text.replace(PLUGINFILE_PLACEHOLDER, base_url)


@render_transforms.register('course_sections', 'summary')
def course_section_summary(row, column, config):
    url = pluginfile_url(config, 'course', row['course'], 'course', 'section', row['id'])
    return _rewrite(row[column], url)


@render_transforms.register('book_chapters', 'content')
def book_chapter_content(row, column, config):
    url = pluginfile_url(config, 'module', row['bookid'], 'mod_book', 'chapter', row['id'], modname='book')
    return _rewrite(row[column], url)


@render_transforms.register('page', 'content')
def page_content(row, column, config):
    url = pluginfile_url(config, 'module', row['id'], 'mod_page', 'content', row['revision'], modname='page')
    return _rewrite(row[column], url)


@render_transforms.register(ANY, 'intro')
def module_intro(row, column, config):
    # Intros are always shown through the module renderer; their file area has no item id
    text = row[column]
    modname = row.get('_table', '')
    url = pluginfile_url(config, 'module', row['id'], f"mod_{modname}", 'intro', modname=modname)
    return _rewrite(text, url) or text


# ============ Reconciliation ============

@dataclass
class ProposedCopy:
    """One translation that is (or would be) copied to a found hash."""

    table: str
    column: str
    row_id: object
    source_id: int
    source_md5key: str
    language: str
    found_hash: str
    generated_hash: str
    inserted_id: int = None

    def to_dict(self):
        return {
            'table': self.table,
            'column': self.column,
            'row_id': self.row_id,
            'source_id': self.source_id,
            'source_md5key': self.source_md5key,
            'language': self.language,
            'found_hash': self.found_hash,
            'generated_hash': self.generated_hash,
            'inserted_id': self.inserted_id,
        }


@dataclass
class ReconciliationReport:
    dry_run: bool
    tables: list = field(default_factory=list)
    rows_scanned: int = 0
    rows_with_hash: int = 0
    copies: list = field(default_factory=list)

    def to_dict(self):
        return {
            'dry_run': self.dry_run,
            'tables': list(self.tables),
            'rows_scanned': self.rows_scanned,
            'rows_with_hash': self.rows_with_hash,
            'copies': [copy.to_dict() for copy in self.copies],
        }


class Reconciler:
    """Copy translations recorded for a row's current text onto its embedded hash.

    Args:
        dry_run: Only report the copies that would be made.
        session: SQLAlchemy session; defaults to ``db.session``.
        transforms: Render transform registry.
        config: Mapping read by the render transforms (usually ``app.config``).
        cache: Resolution cache purged after a committed run.
        echo: Callable receiving operator progress lines.
    """

    def __init__(self, dry_run=True, session=None, store=None, transforms=None,
                 config=None, cache=None, echo=None):
        self.dry_run = dry_run
        self.session = session or db.session
        self.store = store or SqlTranslationStore(self.session)
        self.transforms = transforms or render_transforms
        self.config = config or {}
        self.cache = cache
        self.echo = echo or logger.info

    def run(self, columns_by_table, known_columns=None) -> ReconciliationReport:
        """Reconcile every listed column in one transaction."""
        if known_columns is None:
            known_columns = discover_columns(self.session.get_bind())
        validate_columns(columns_by_table, known_columns)

        report = ReconciliationReport(dry_run=self.dry_run)
        try:
            for table, columns in columns_by_table.items():
                self.echo(f"Started processing table: {table}")
                for column in columns:
                    self.process_column(table, column, report)
                report.tables.append(table)
                self.echo(f"Finished processing table: {table}")
                self.echo('')

            if self.dry_run:
                self.session.rollback()
            else:
                self.session.commit()
        except BaseException:
            self.session.rollback()
            logger.error("Reconciliation aborted, all changes rolled back")
            raise

        if not self.dry_run and self.cache is not None:
            self.cache.purge()

        logger.info(
            f"Reconciliation {'dry run' if self.dry_run else 'run'} finished: "
            f"{len(report.copies)} copies over {report.rows_with_hash} rows"
        )
        return report

    def rows(self, table, column):
        reflected = sa.Table(table, sa.MetaData(), autoload_with=self.session.get_bind())
        target = reflected.c[column]
        query = sa.select(reflected).where(target.isnot(None), target != '')
        return self.session.execute(query).mappings()

    def process_column(self, table, column, report):
        # Materialize first so inserts do not interleave with an open cursor
        for row in list(self.rows(table, column)):
            report.rows_scanned += 1
            value = row[column]
            if not has_hash_marker(value):
                continue
            report.rows_with_hash += 1
            self.process_row(table, column, dict(row, _table=table), report)

    def process_row(self, table, column, row, report):
        rendered = self.transforms.render(table, column, row, self.config)

        stripped, found_hash = extract_hash(row[column])
        if not found_hash:
            logger.debug(f"Skipping {table}.{column} row {row.get('id')}: malformed hash marker")
            return

        if rendered:
            generated_hash = compute_hash(extract_hash(rendered)[0])
        else:
            generated_hash = compute_hash(stripped)

        translations = self.store.find_matching(found_hash, generated_hash)
        by_found_hash, by_generated_hash = bucket_by_language(translations, found_hash)

        if by_generated_hash:
            self.echo(f"foundhash: {found_hash}, content hash: {generated_hash}")

        for language, translation in by_generated_hash.items():
            if language in by_found_hash:
                continue

            self.echo(f"  + copying translation from md5key: {translation.md5key}, lang: {language}")
            copy = ProposedCopy(
                table=table,
                column=column,
                row_id=row.get('id'),
                source_id=translation.id,
                source_md5key=translation.md5key,
                language=language,
                found_hash=found_hash,
                generated_hash=generated_hash,
            )
            if not self.dry_run:
                copy.inserted_id = self.store.insert(translation.copy(md5key=found_hash))
            report.copies.append(copy)
