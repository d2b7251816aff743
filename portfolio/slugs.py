import re
import time
import unicodedata

MIN_SLUG_LENGTH = 5
MAX_TAGS = 5
DEFAULT_TAG = 'AI'

# keyword (lowercase, searched in the body) -> canonical tag
KEYWORD_TAGS = {
    'retail': 'Retail',
    'machine learning': 'Machine Learning',
    'generative ai': 'Generative AI',
    'analytics': 'Analytics',
    'data': 'Data',
    'innovation': 'Innovation',
    'business': 'Business',
    'ethics': 'Ethics',
}

SLUG_PATTERN = re.compile(r'^[a-z0-9-]+$')


def slugify(text):
    if not text:
        return ''
    folded = unicodedata.normalize('NFKD', str(text)).encode('ascii', 'ignore').decode('ascii')
    slug = re.sub(r'[^a-z0-9\s-]', '', folded.lower())
    slug = re.sub(r'\s+', '-', slug.strip())
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')


def date_suffix(date_key):
    """`2024-03-15` -> `2024-03`."""
    return date_key[:7] if date_key else ''


def derive_slug(candidates, date_key=None, category='item'):
    """Pick the first candidate that slugifies to at least 5 characters.

    `date_key` is the normalized ISO date of the document; its year-month is
    appended to keep documents with the same title apart.
    """
    slug = ''
    for candidate in candidates:
        slug = slugify(candidate)
        if len(slug) >= MIN_SLUG_LENGTH:
            break
    else:
        return f"{slugify(category) or 'item'}-{date_key or 'undated'}-{int(time.time() * 1000)}"

    suffix = date_suffix(date_key)
    return f"{slug}-{suffix}" if suffix else slug


def dedupe_tags(tags, max_tags=MAX_TAGS):
    seen = set()
    unique = []
    for tag in tags:
        if not isinstance(tag, str):
            continue
        tag = tag.strip()
        if tag and tag not in seen:
            seen.add(tag)
            unique.append(tag)
    return unique[:max_tags]


def derive_tags(body, explicit_tags=None, max_tags=MAX_TAGS):
    if explicit_tags:
        return dedupe_tags(explicit_tags, max_tags)

    tags = [DEFAULT_TAG]
    lowered = (body or '').lower()
    for keyword, tag in KEYWORD_TAGS.items():
        if keyword in lowered:
            tags.append(tag)
    return dedupe_tags(tags, max_tags)


def is_valid_slug(slug):
    return bool(slug) and bool(SLUG_PATTERN.match(slug))
