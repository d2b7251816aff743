import json
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_CONFIG_FILE = 'config.json'

ContentKind = Literal['blog', 'publication', 'research', 'event']


class ContentTypeConfig(BaseModel):
    name: str
    kind: ContentKind = 'blog'
    source: str
    output: str
    # Public route prefix used by the sitemap, e.g. "blog" -> /blog/<slug>
    route: str = ''
    # Frontmatter fields tried before the title when deriving a slug
    slug_fields: list[str] = Field(default_factory=list)


class SiteConfig(BaseModel):
    site_url: str = 'https://example.com'
    site_title: str = 'Portfolio'
    site_description: str = ''
    default_author: str = ''
    content_root: Path = Path('src/content')
    output_root: Path = Path('src/lib/generated')
    static_root: Path = Path('static')
    max_tags: int = 5
    highlight_theme: str = 'monokai'
    log_file: str | None = None
    static_pages: list[str] = Field(default_factory=lambda: [
        '', 'about', 'publications', 'blog', 'research', 'events', 'contact', 'search',
    ])
    content_types: list[ContentTypeConfig] = Field(default_factory=list)

    def source_dir(self, content_type):
        return self.content_root / content_type.source

    def output_path(self, content_type):
        return self.output_root / content_type.output

    def get_content_type(self, name):
        for content_type in self.content_types:
            if content_type.name.lower() == name.lower():
                return content_type
        raise ValueError(f"❌ Content type '{name}' not found in config")

    def list_content_types(self):
        return [content_type.name for content_type in self.content_types]


def load_config(config_file=None):
    """Load the site configuration from JSON.

    The path comes from the argument, then PORTFOLIO_CONFIG, then config.json.
    """
    config_file = config_file or os.getenv('PORTFOLIO_CONFIG') or DEFAULT_CONFIG_FILE
    if not os.path.exists(config_file):
        raise FileNotFoundError(f"❌ Config file not found: {config_file}")

    with open(config_file, 'r', encoding='utf-8') as f:
        data = json.load(f)

    # Relative content paths are resolved against the config file
    base = Path(config_file).resolve().parent
    config = SiteConfig.model_validate(data)
    for attr in ('content_root', 'output_root', 'static_root'):
        path = getattr(config, attr)
        if not path.is_absolute():
            setattr(config, attr, base / path)
    return config
