"""
Search, filter, sort and pagination shared by every resource list view.

A list view declares a ``ListQuery`` once (model, joins, searchable columns,
filters, sort column) and feeds it the normalised request arguments held by a
``ListParams``. The page of rows and the total count are both derived from the
one statement built by ``ListQuery.select``, so they always agree.
"""
from sqlalchemy import case, func, or_, select

from ellarises.extensions import db

DEFAULT_PAGE_SIZE = 15
# keeps OFFSET inside the database integer range
MAX_PAGE = 10 ** 6


def parse_page(value):
    """Page numbers start at 1; anything unusable means the first page."""
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    if page < 1:
        return 1
    return min(page, MAX_PAGE)


def normalize_search(value):
    if not isinstance(value, str):
        return ''
    return value.strip()


def normalize_sort(value):
    return 'asc' if value == 'asc' else 'desc'


def full_name(first, last):
    """SQL expression for ``first || ' ' || last`` that tolerates NULLs."""
    return func.coalesce(first, '') + ' ' + func.coalesce(last, '')


class ListParams:
    """Normalised list-view arguments: search, page, sort and raw filter tokens."""

    def __init__(self, search=None, page=None, sort=None, filters=None):
        self.search = normalize_search(search)
        self.page = parse_page(page)
        self.sort = normalize_sort(sort)
        self.filters = {name: normalize_search(value) for name, value in (filters or {}).items()}

    @classmethod
    def from_args(cls, args, filter_names=()):
        return cls(
            search=args.get('search'),
            page=args.get('page'),
            sort=args.get('dateSort'),
            filters={name: args.get(name, '') for name in filter_names},
        )

    def url_args(self, **overrides):
        """Query-string arguments that reproduce this listing (for links)."""
        args = {'search': self.search or None, 'dateSort': self.sort, 'page': self.page}
        args.update({name: value or None for name, value in self.filters.items()})
        args.update(overrides)
        return {key: value for key, value in args.items() if value is not None}

    def __repr__(self):
        return f'<ListParams search={self.search!r} page={self.page} sort={self.sort} filters={self.filters}>'


class EnumFilter:
    """
    Map a small set of recognised tokens to predicates.

    ``choices`` is a dict of token -> predicate, or a callable returning one
    when the tokens come from the database. Unknown tokens yield ``None``,
    which the caller treats as "no filter".
    """

    def __init__(self, choices):
        self.choices = choices

    def tokens(self):
        choices = self.choices() if callable(self.choices) else self.choices
        return choices

    def __call__(self, value):
        if not value:
            return None
        return self.tokens().get(value)


def equality_filter(column, allowed):
    """Filter on ``column == token`` for tokens in ``allowed`` (list or callable)."""
    def choices():
        values = allowed() if callable(allowed) else allowed
        return {str(value): column == value for value in values}
    return EnumFilter(choices)


class ListQuery:
    """Declarative list query for one resource."""

    def __init__(self, model, joins=(), options=(), search_columns=(), filters=None,
                 sort_column=None, tiebreakers=(), page_size=DEFAULT_PAGE_SIZE):
        self.model = model
        self.joins = tuple(joins)
        self.options = tuple(options)
        self.search_columns = tuple(search_columns)
        self.filters = dict(filters or {})
        self.sort_column = sort_column if sort_column is not None else model.id
        self.tiebreakers = tuple(tiebreakers)
        self.page_size = page_size

    def parse(self, args):
        return ListParams.from_args(args, self.filters.keys())

    def predicates(self, params):
        """The WHERE clauses for ``params``; shared by the page and the count."""
        clauses = []
        if params.search and self.search_columns:
            clauses.append(or_(*[column.icontains(params.search, autoescape=True)
                                 for column in self.search_columns]))
        for name, build in self.filters.items():
            clause = build(params.filters.get(name))
            if clause is not None:
                clauses.append(clause)
        return clauses

    def base(self):
        stmt = select(self.model)
        for target in self.joins:
            stmt = stmt.outerjoin(target)
        if self.options:
            stmt = stmt.options(*self.options)
        return stmt

    def select(self, params):
        direction = (lambda column: column.asc()) if params.sort == 'asc' else (lambda column: column.desc())
        return (
            self.base()
            .where(*self.predicates(params))
            .order_by(
                case((self.sort_column.is_(None), 1), else_=0),
                direction(self.sort_column),
                *self.tiebreakers,
                direction(self.model.id),
            )
        )

    def paginate(self, params):
        """Return a Flask-SQLAlchemy ``Pagination`` for ``params``."""
        return db.paginate(self.select(params), page=params.page, per_page=self.page_size,
                           error_out=False)
