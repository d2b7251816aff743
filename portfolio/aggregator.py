"""Batch run: markdown directory -> one JSON collection per content type."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from portfolio.errors import MissingSourceDirectoryError, WriteFailure
from portfolio.highlighter import Highlighter
from portfolio.logger import logger
from portfolio.models import model_for
from portfolio.normalizer import normalize
from portfolio.parser import FrontmatterParser
from portfolio.renderer import MarkdownRenderer, excerpt
from portfolio.slugs import derive_slug, derive_tags, slugify

MARKDOWN_SUFFIXES = ('.md',)


@dataclass
class AggregationReport:
    name: str
    output: Path | None = None
    item_count: int = 0
    processed: int = 0
    skipped: list = field(default_factory=list)
    warnings: list = field(default_factory=list)
    error: str | None = None

    @property
    def failed(self):
        return self.error is not None


def sort_items(items):
    """Newest first when every item is dated, otherwise by `order`.

    Python's sort is stable, so ties keep the order files were read in.
    """
    items = list(items)
    if items and all(item.date for item in items):
        items.sort(key=lambda item: (item.order is None, item.order or 0))
        items.sort(key=lambda item: item.date, reverse=True)
    elif any(item.order is not None for item in items):
        items.sort(key=lambda item: (item.order is None, item.order or 0))
    return items


def write_collection(items, output_path):
    output_path = Path(output_path)
    payload = json.dumps([item.to_json() for item in items], indent=2, ensure_ascii=False)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(payload + '\n', encoding='utf-8')
    except OSError as e:
        raise WriteFailure(output_path, str(e)) from e


class ContentAggregator:
    def __init__(self, config, renderer=None, parser=None):
        self.config = config
        self.renderer = renderer or MarkdownRenderer(Highlighter(theme=config.highlight_theme))
        self.parser = parser or FrontmatterParser()

    def build_item(self, filename, raw_text, kind='blog', category='item',
                   slug_fields=(), taken=()):
        """Run one document through parse -> normalize -> render -> derive.

        Returns `(item, explicit_slug)`. Raises on anything that should drop
        the document from its collection.
        """
        doc = self.parser.parse(raw_text)
        fields = normalize(doc.frontmatter, kind, self.config.default_author)

        stem = Path(filename).stem
        title = str(fields.get('title') or '').strip() or stem.replace('-', ' ').title()
        content = self.renderer.render(doc.body)

        explicit_slug = slugify(doc.frontmatter.get('slug'))
        if explicit_slug:
            slug = explicit_slug
        else:
            candidates = [fields.get(name) for name in slug_fields] + [title, stem]
            base = derive_slug(candidates, fields['date'], category=category)
            slug = base
            counter = 2
            while slug in taken:
                slug = f"{base}-{counter}"
                counter += 1

        data = dict(fields)
        data.pop('rawContent', None)
        data.update(
            slug=slug,
            title=title,
            excerpt=fields['excerpt'] or excerpt(content),
            tags=derive_tags(doc.body, fields['tags'], self.config.max_tags),
            content=content,
            raw_content=doc.body,
        )
        return model_for(kind).model_validate(data), bool(explicit_slug)

    def aggregate_directory(self, source, output, kind='blog', name=None, slug_fields=()):
        source = Path(source)
        output = Path(output)
        name = name or source.name
        report = AggregationReport(name=name, output=output)

        if not source.is_dir():
            raise MissingSourceDirectoryError(source)

        logger.info(f"📂 Processing {name} from {source}")
        files = sorted(p for p in source.iterdir() if p.is_file() and p.suffix.lower() in MARKDOWN_SUFFIXES)

        collection = {}
        for path in files:
            try:
                raw_text = path.read_text(encoding='utf-8')
                item, explicit = self.build_item(
                    path.name, raw_text, kind=kind, category=name,
                    slug_fields=slug_fields, taken=collection,
                )
            except Exception as e:
                logger.warning(f"⚠️ Skipping {path.name}: {e}")
                report.skipped.append((path.name, str(e)))
                continue

            report.processed += 1
            if explicit and item.slug in collection:
                message = f"Duplicate slug '{item.slug}' in {name}, {path.name} replaces the earlier entry"
                logger.warning(f"⚠️ {message}")
                report.warnings.append(message)
                del collection[item.slug]
            collection[item.slug] = item

        items = sort_items(collection.values())
        write_collection(items, output)

        report.item_count = len(items)
        logger.info(f"✅ Generated {report.item_count} {name} items -> {output}")
        return report

    def aggregate(self, content_type):
        return self.aggregate_directory(
            self.config.source_dir(content_type),
            self.config.output_path(content_type),
            kind=content_type.kind,
            name=content_type.name,
            slug_fields=content_type.slug_fields,
        )


def build_all(config, names=None):
    """Build every configured content type (or only `names`).

    Returns the reports; a missing directory skips its type, a write failure
    marks its report as failed and the remaining types still run.
    """
    # One highlighter for the whole run
    renderer = MarkdownRenderer(Highlighter(theme=config.highlight_theme))
    aggregator = ContentAggregator(config, renderer=renderer)

    content_types = config.content_types
    if names:
        content_types = [config.get_content_type(name) for name in names]

    reports = []
    for content_type in content_types:
        try:
            report = aggregator.aggregate(content_type)
        except MissingSourceDirectoryError as e:
            logger.warning(f"⚠️ {e}, skipping {content_type.name}")
            report = AggregationReport(name=content_type.name)
        except WriteFailure as e:
            logger.error(f"❌ {e}")
            report = AggregationReport(name=content_type.name, output=e.path, error=str(e))
        reports.append(report)

    log_summary(reports)
    return reports


def log_summary(reports):
    logger.info("📋 Build summary")
    for report in reports:
        status = "FAILED" if report.failed else f"{report.item_count} items"
        logger.info(f"  {report.name}: processed {report.processed}, skipped {len(report.skipped)}, {status}")
        for filename, reason in report.skipped:
            logger.info(f"    - {filename}: {reason}")
    total = sum(report.item_count for report in reports)
    logger.info(f"  total items: {total}")
