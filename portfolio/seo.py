import os
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from portfolio.loader import load_collection
from portfolio.logger import logger

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
TEMPLATES_DIR = Path(__file__).resolve().parent / 'templates'


def _url(base_url, *parts):
    path = '/'.join(p.strip('/') for p in parts if p and p.strip('/'))
    return f"{base_url.rstrip('/')}/{path}" if path else base_url.rstrip('/')


def _rfc822(date_str):
    date = datetime.fromisoformat(date_str).replace(tzinfo=timezone.utc)
    return format_datetime(date)


def load_site_collections(config):
    """Read every generated collection, skipping the ones not built yet."""
    collections = {}
    for content_type in config.content_types:
        result = load_collection(config.output_path(content_type))
        if not result.ok:
            logger.warning(f"⚠️ {result.error}")
            continue
        collections[content_type.name] = result.items
    return collections


def generate_sitemap(config, collections, output_dir=None):
    """
    Build sitemap.xml from the static pages and every generated item.
    """
    output_dir = output_dir or config.static_root
    os.makedirs(output_dir, exist_ok=True)
    today = datetime.now().strftime("%Y-%m-%d")

    urlset = ET.Element("urlset", xmlns=SITEMAP_NS)

    for page in config.static_pages:
        url = ET.SubElement(urlset, "url")
        ET.SubElement(url, "loc").text = _url(config.site_url, page)
        ET.SubElement(url, "lastmod").text = today
        ET.SubElement(url, "changefreq").text = "daily" if not page else "monthly"

    for content_type in config.content_types:
        for item in collections.get(content_type.name, []):
            url = ET.SubElement(urlset, "url")
            ET.SubElement(url, "loc").text = _url(config.site_url, content_type.route, item['slug'])
            ET.SubElement(url, "lastmod").text = item.get('date') or today
            ET.SubElement(url, "changefreq").text = "weekly"

    path = os.path.join(output_dir, "sitemap.xml")
    ET.ElementTree(urlset).write(path, encoding='utf-8', xml_declaration=True)
    logger.info(f"✅ sitemap.xml generated ({len(urlset)} urls)")
    return path


def generate_rss(config, posts, output_dir=None, route='blog', limit=20):
    """
    Build rss.xml for the newest dated posts.
    """
    output_dir = output_dir or config.static_root
    os.makedirs(output_dir, exist_ok=True)

    rss = ET.Element("rss", version="2.0")
    channel = ET.SubElement(rss, "channel")

    ET.SubElement(channel, "title").text = config.site_title
    ET.SubElement(channel, "link").text = config.site_url
    ET.SubElement(channel, "description").text = config.site_description
    ET.SubElement(channel, "lastBuildDate").text = format_datetime(datetime.now(timezone.utc))

    dated = [post for post in posts if post.get('date')]
    for post in dated[:limit]:
        item = ET.SubElement(channel, "item")
        link = _url(config.site_url, route, post['slug'])
        ET.SubElement(item, "title").text = post['title']
        ET.SubElement(item, "link").text = link
        ET.SubElement(item, "guid").text = link
        ET.SubElement(item, "description").text = post.get('excerpt', '')
        ET.SubElement(item, "pubDate").text = _rfc822(post['date'])

    path = os.path.join(output_dir, "rss.xml")
    ET.ElementTree(rss).write(path, encoding='utf-8', xml_declaration=True)
    logger.info(f"✅ rss.xml generated ({len(dated[:limit])} posts)")
    return path


def generate_robots(config, output_dir=None):
    output_dir = output_dir or config.static_root
    os.makedirs(output_dir, exist_ok=True)

    env = Environment(loader=FileSystemLoader(TEMPLATES_DIR), trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)
    content = env.get_template('robots.txt.j2').render(
        sitemap_url=_url(config.site_url, 'sitemap.xml'),
        disallow=['/api/'],
    )
    path = os.path.join(output_dir, "robots.txt")
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
    logger.info("✅ robots.txt generated")
    return path


def generate_seo_files(config, output_dir=None):
    collections = load_site_collections(config)
    generate_sitemap(config, collections, output_dir)
    blog = next((ct for ct in config.content_types if ct.kind == 'blog'), None)
    if blog is not None:
        generate_rss(config, collections.get(blog.name, []), output_dir, route=blog.route)
    generate_robots(config, output_dir)
