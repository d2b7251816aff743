import argparse
import logging
import sys

from portfolio.aggregator import build_all
from portfolio.config import load_config
from portfolio.conferences import convert_conferences
from portfolio.highlighter import Highlighter
from portfolio.logger import setup_logger
from portfolio.seo import generate_seo_files

logger = logging.getLogger("portfolio")


def build_parser():
    parser = argparse.ArgumentParser(
        description="Content pipeline for the portfolio site",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rebuild every collection (blog, publications, research, events)
  python main.py --build

  # Rebuild only the blog
  python main.py --build --type blog

  # Rebuild and refresh sitemap.xml, rss.xml and robots.txt
  python main.py --build --sitemap

  # Split a single conferences page into one file per talk
  python main.py --convert-conferences conferences-content.md --out src/content/conferences
        """
    )

    parser.add_argument('--config', '-c', type=str,
                        help='Path to config.json (default: $PORTFOLIO_CONFIG or ./config.json)')
    parser.add_argument('--list', '-l', action='store_true',
                        help='List the configured content types')
    parser.add_argument('--type', '-t', action='append', dest='types',
                        help='Content type to build (repeatable, default: all)')

    parser.add_argument('--build', '-b', action='store_true',
                        help='Generate the JSON collections')
    parser.add_argument('--sitemap', action='store_true',
                        help='Generate sitemap.xml, rss.xml and robots.txt from the collections')
    parser.add_argument('--css', type=str,
                        help='Write the syntax highlighting stylesheet to this path')
    parser.add_argument('--convert-conferences', type=str, metavar='FILE',
                        help='Split a conferences markdown page into one file per talk')
    parser.add_argument('--out', type=str,
                        help='Output directory for --convert-conferences')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        setup_logger()
        logger.error(str(e))
        return 1

    setup_logger(config.log_file, logging.DEBUG if args.verbose else logging.INFO)

    if args.list:
        print("\n📋 Content types in config:")
        for i, content_type in enumerate(config.content_types, 1):
            print(f"  {i}. {content_type.name} ({config.source_dir(content_type)} -> {config.output_path(content_type)})")
        return 0

    if not (args.build or args.sitemap or args.css or args.convert_conferences):
        parser.print_help()
        return 0

    exit_code = 0

    if args.convert_conferences:
        out = args.out
        if not out:
            events = next((ct for ct in config.content_types if ct.kind == 'event'), None)
            if events is None:
                logger.error("❌ --out is required when no event content type is configured")
                return 1
            out = config.source_dir(events)
        try:
            convert_conferences(args.convert_conferences, out)
        except OSError as e:
            logger.error(f"❌ Conference conversion failed: {e}")
            return 1

    if args.build:
        try:
            reports = build_all(config, args.types)
        except ValueError as e:
            logger.error(str(e))
            return 1
        if any(report.failed for report in reports):
            exit_code = 1

    if args.sitemap:
        try:
            generate_seo_files(config)
        except OSError as e:
            logger.error(f"❌ SEO files failed: {e}")
            exit_code = 1

    if args.css:
        try:
            with open(args.css, 'w', encoding='utf-8') as f:
                f.write(Highlighter(theme=config.highlight_theme).stylesheet())
            logger.info(f"✅ Stylesheet written to {args.css}")
        except OSError as e:
            logger.error(f"❌ Cannot write stylesheet: {e}")
            exit_code = 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
