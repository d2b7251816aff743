"""Split a single conferences page into one markdown file per talk.

The source page looks like:

    ## 2024
    ### AI Summit – Toronto (Mar 15)
    **Talk:** *Generative AI in Retail*
    **Abstract:**
    How retailers use machine learning...

Each talk becomes `<slug>.md` with frontmatter the events collection reads.
"""

import re
from pathlib import Path

import frontmatter

from portfolio.logger import logger
from portfolio.renderer import EXCERPT_LENGTH
from portfolio.slugs import derive_slug, derive_tags

YEAR_RE = re.compile(r'^##\s+(\d{4})\s*$', re.MULTILINE)
HEADER_RE = re.compile(r'^(?P<name>.+?)\s*\((?P<date>[^()]+)\)\s*$')
SEPARATOR_RE = re.compile(r'\s+[–—-]\s+')
TALK_LABELS = ('Talk', 'Session', 'Talk/Role', 'Format')
LABEL_RE = re.compile(r'^\*\*(?P<label>[^*:]+?):?\*\*:?\s*(?:\([^)]*\))?\s*:?\s*(?P<value>.*)$')

MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}
FEATURED_SINCE = 2024


def talk_date(year, date_text):
    """`('2024', 'Mar 15-16')` -> `2024-03-15`; unknown months fall on Jan 1st."""
    lowered = date_text.lower()
    for abbr, month in MONTHS.items():
        if abbr in lowered:
            day = re.search(r'(\d{1,2})', date_text)
            return f"{year}-{month:02d}-{int(day.group(1)) if day else 1:02d}"
    return f"{year}-01-01"


def _label(line):
    match = LABEL_RE.match(line.strip())
    if not match:
        return None, ''
    return match.group('label').strip(), match.group('value').strip().strip('*').strip()


def parse_talk(block, year):
    lines = block.strip().splitlines()
    if not lines:
        return None

    header = HEADER_RE.match(lines[0].strip())
    if not header:
        logger.warning(f"⚠️ Could not parse conference header: {lines[0]}")
        return None

    parts = SEPARATOR_RE.split(header.group('name').strip(), maxsplit=1)
    event = parts[0].strip()
    location = parts[1].strip() if len(parts) > 1 else ''
    date_text = header.group('date').strip()

    title = ''
    abstract_lines = None
    for line in lines[1:]:
        label, value = _label(line)
        if abstract_lines is not None:
            if line.startswith('##') or label == 'Talk':
                break
            abstract_lines.append(line.strip())
            continue
        if label == 'Abstract':
            abstract_lines = [value] if value else []
        elif label in TALK_LABELS and not title:
            title = value

    if abstract_lines is None:
        logger.warning(f"⚠️ No abstract found for conference: {event}")
        return None

    abstract = ' '.join(line for line in abstract_lines if line).strip()
    title = title or f"Conference Talk at {event}"
    date = talk_date(year, date_text)
    tags = derive_tags(abstract)

    return {
        'title': title,
        'date': date,
        'location': location,
        'event': event,
        'type': 'speaking',
        'slug': derive_slug([event, title, location], date, category='conference'),
        'excerpt': abstract if len(abstract) <= EXCERPT_LENGTH else abstract[:EXCERPT_LENGTH] + '...',
        'tags': tags,
        'featured': int(year) >= FEATURED_SINCE,
        'abstract': abstract,
    }


def parse_conferences(text):
    """Return one dict per talk found in the page, in page order."""
    talks = []
    matches = list(YEAR_RE.finditer(text))
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
        section = text[match.end():end]
        for block in re.split(r'^###\s+', section, flags=re.MULTILINE)[1:]:
            talk = parse_talk(block, match.group(1))
            if talk:
                talks.append(talk)
    return talks


def talk_markdown(talk):
    """Render one talk as a markdown file with flow-style frontmatter."""
    metadata = {key: value for key, value in talk.items() if key != 'abstract'}
    topics = '\n'.join(f"- {tag}" for tag in talk['tags'])
    body = (
        f"# {talk['event']} – {talk['location']} ({talk['date'][:4]})\n\n"
        f"## Talk: *{talk['title']}*\n\n"
        f"{talk['abstract']}\n\n"
        f"## Topics Covered\n\n{topics}\n"
    )
    post = frontmatter.Post(body, **metadata)
    # Flow style and no line wrapping keep every value on a single line
    return frontmatter.dumps(post, default_flow_style=None, width=100000, sort_keys=False) + '\n'


def convert_conferences(source_file, output_dir):
    source_file = Path(source_file)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    talks = parse_conferences(source_file.read_text(encoding='utf-8'))
    logger.info(f"📋 Extracted {len(talks)} conferences from {source_file}")

    written = []
    for talk in talks:
        path = output_dir / f"{talk['slug']}.md"
        if path in written:
            logger.warning(f"⚠️ Duplicate talk slug {talk['slug']}, overwriting")
        path.write_text(talk_markdown(talk), encoding='utf-8')
        written.append(path)
        logger.info(f"✅ Created: {path}")
    return written
