"""Coerce hand-written frontmatter values into canonical types.

Authors edit frontmatter by hand, so the same field shows up as a real list,
a JSON-ish string or a plain comma separated string depending on who wrote
it. The functions here accept all of those and never reject a document for
its list syntax. Only dates fail loudly.
"""

import json
import re
from datetime import date, datetime

from dateutil import parser as date_parser

from portfolio.errors import InvalidDateError

LIST_FIELDS = ('tags', 'authors', 'collaborators')
BOOL_FIELDS = ('featured',)
EXCERPT_ALIASES = ('excerpt', 'summary', 'abstract')

# Missing components of free-form dates ("March 2024") fall on the 1st
_DATE_DEFAULT = datetime(2000, 1, 1)


def parse_date(value):
    """Return an ISO `YYYY-MM-DD` string, or None when the date is absent."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date().isoformat()
    except ValueError:
        pass

    try:
        return date_parser.parse(text, default=_DATE_DEFAULT).date().isoformat()
    except (ValueError, OverflowError) as e:
        raise InvalidDateError(value) from e


def parse_bool(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return False


def parse_int(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_list(value):
    """Normalize a list field.

    Tries, in order: an already structured sequence, a strict JSON parse of
    a bracketed string, a bracket/quote strip followed by a comma split, and
    a plain comma split.

    Quoted elements containing commas are only safe in the JSON form:
    `["a, b", "c"]` gives two items, `['a, b', 'c']` gives three.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    if not isinstance(value, str):
        return [str(value)]

    text = value.strip()
    if text.startswith('[') and text.endswith(']'):
        try:
            parsed = json.loads(text)
        except ValueError:
            text = re.sub(r'[\[\]"\']', '', text)
        else:
            if isinstance(parsed, list):
                return parse_list(parsed)
            text = re.sub(r'[\[\]"\']', '', text)

    return [part.strip() for part in text.split(',') if part.strip()]


def pick_excerpt(frontmatter):
    for key in EXCERPT_ALIASES:
        value = frontmatter.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ''


def normalize(frontmatter, kind='blog', default_author=''):
    """Map raw frontmatter onto canonical field values for one content kind.

    Unknown keys are kept as they are so templates can still read them.
    """
    fields = dict(frontmatter)

    fields['date'] = parse_date(frontmatter.get('date'))
    for key in BOOL_FIELDS:
        fields[key] = parse_bool(frontmatter.get(key))
    for key in LIST_FIELDS:
        if key in frontmatter:
            fields[key] = parse_list(frontmatter.get(key))
    fields['tags'] = fields.get('tags', [])

    order = parse_int(frontmatter.get('order'))
    if order is None:
        fields.pop('order', None)
    else:
        fields['order'] = order

    fields['excerpt'] = pick_excerpt(frontmatter)

    if kind == 'blog':
        author = frontmatter.get('author')
        fields['author'] = str(author).strip() if author and str(author).strip() else default_author
    elif kind == 'publication':
        if not fields.get('authors'):
            author = frontmatter.get('author')
            fields['authors'] = parse_list(author) if author else [default_author]
        fields.pop('author', None)
    elif kind == 'research':
        fields['collaborators'] = fields.get('collaborators', [])
    elif kind == 'event':
        fields['location'] = str(frontmatter.get('location') or '').strip()
        fields['type'] = str(frontmatter.get('type') or 'speaking').strip()

    return fields
