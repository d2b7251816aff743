"""Read side of the generated collections.

Loading never substitutes data on its own: `load_collection` returns a
`LoadResult` and the caller decides whether a fixture replaces a missing
file.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

from portfolio.errors import LoadError


@dataclass
class LoadResult:
    items: list = field(default_factory=list)
    error: LoadError | None = None

    @property
    def ok(self):
        return self.error is None

    def unwrap(self):
        if self.error is not None:
            raise self.error
        return self.items

    def unwrap_or(self, fallback):
        return self.items if self.ok else list(fallback)


def load_collection(path):
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        return LoadResult(error=LoadError(f"Collection not found: {path}"))
    except (OSError, ValueError) as e:
        return LoadResult(error=LoadError(f"Cannot read {path}: {e}"))

    if not isinstance(data, list):
        return LoadResult(error=LoadError(f"{path} does not contain a JSON array"))
    return LoadResult(items=data)


def get_by_slug(items, slug):
    for item in items:
        if item.get('slug') == slug:
            return item
    return None


def _year(item):
    date = item.get('date') or ''
    return date[:4] if len(date) >= 4 and date[:4].isdigit() else None


def filter_items(items, tag=None, featured=False, year=None, type=None, location=None):
    """Filter a collection the way the listing pages do."""
    result = list(items)
    if type:
        result = [item for item in result if item.get('type') == type]
    if year:
        result = [item for item in result if _year(item) == str(year)]
    if featured:
        result = [item for item in result if item.get('featured')]
    if tag:
        wanted = tag.lower()
        result = [item for item in result if any(t.lower() == wanted for t in item.get('tags', []))]
    if location:
        result = [item for item in result if location in (item.get('location') or '')]
    return result


def recent(items, count=5):
    dated = [item for item in items if item.get('date')]
    return sorted(dated, key=lambda item: item['date'], reverse=True)[:count]


def all_tags(items):
    return sorted({tag for item in items for tag in item.get('tags', [])})


def years(items):
    return sorted({int(y) for y in (_year(item) for item in items) if y}, reverse=True)


def locations(items):
    return sorted({item['location'] for item in items if item.get('location')})


SEARCH_FIELDS = ('title', 'excerpt', 'rawContent')


def search(items, query, fields=SEARCH_FIELDS):
    """Case-insensitive substring search over text fields and tags."""
    if not query:
        return []
    needle = query.lower()
    matches = []
    for item in items:
        text_hit = any(needle in str(item.get(name) or '').lower() for name in fields)
        tag_hit = any(needle in tag.lower() for tag in item.get('tags', []))
        if text_hit or tag_hit:
            matches.append(item)
    return matches
