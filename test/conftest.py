import pytest

from portfolio.config import ContentTypeConfig, SiteConfig
from portfolio.highlighter import Highlighter
from portfolio.renderer import MarkdownRenderer


@pytest.fixture(scope="session")
def highlighter():
    return Highlighter()


@pytest.fixture
def renderer(highlighter):
    return MarkdownRenderer(highlighter)


@pytest.fixture
def site_config(tmp_path):
    return SiteConfig(
        site_url="https://example.com",
        site_title="Example",
        default_author="Fatih Nayebi",
        content_root=tmp_path / "content",
        output_root=tmp_path / "generated",
        static_root=tmp_path / "static",
        content_types=[
            ContentTypeConfig(name="blog", kind="blog", source="blog", output="blog-posts.json", route="blog"),
            ContentTypeConfig(name="research", kind="research", source="research",
                              output="research-areas.json", route="research"),
            ContentTypeConfig(name="events", kind="event", source="conferences", output="events.json",
                              route="events", slug_fields=["event", "title", "location"]),
        ],
    )


@pytest.fixture
def write_md():
    def _write(directory, name, text):
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write
