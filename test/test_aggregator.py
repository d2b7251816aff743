"""Tests for the content aggregation batch run."""

import json

import pytest

from portfolio.aggregator import ContentAggregator, build_all, sort_items
from portfolio.errors import MissingSourceDirectoryError, WriteFailure
from portfolio.models import ContentItem
from portfolio.slugs import is_valid_slug


def post(title, date, extra=""):
    return f'---\ntitle: "{title}"\ndate: {date}\n{extra}---\nBody of {title}.\n'


@pytest.fixture
def aggregator(site_config, renderer):
    return ContentAggregator(site_config, renderer=renderer)


@pytest.fixture
def blog_dir(site_config):
    return site_config.content_root / "blog"


def read_output(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestAggregateDirectory:
    """Batch behaviour of a single content type."""

    def test_builds_content_item(self, aggregator, blog_dir, tmp_path, write_md):
        write_md(blog_dir, "hello.md", '---\ntitle: "Hello World"\ndate: 2024-03-15\n'
                                      'tags: machine learning, ai, retail\nfeatured: "true"\n---\n'
                                      '# Hi\n\nSome *text*.\n')
        output = tmp_path / "out" / "blog.json"

        report = aggregator.aggregate_directory(blog_dir, output, kind="blog")
        items = read_output(output)

        assert report.item_count == 1
        item = items[0]
        assert item["title"] == "Hello World"
        assert item["date"] == "2024-03-15"
        assert item["tags"] == ["machine learning", "ai", "retail"]
        assert item["featured"] is True
        assert item["author"] == "Fatih Nayebi"
        assert '<h1 id="hi">Hi</h1>' in item["content"]
        assert "<em>text</em>" in item["content"]
        assert item["rawContent"] == "# Hi\n\nSome *text*.\n"
        assert item["slug"] == "hello-world-2024-03"
        assert item["excerpt"] == "Hi Some text."

    def test_fault_isolation(self, aggregator, blog_dir, tmp_path, write_md):
        for i in range(9):
            write_md(blog_dir, f"post-{i}.md", post(f"Post number {i}", f"2024-01-0{i + 1}"))
        write_md(blog_dir, "broken.md", post("Broken post", "banana"))
        output = tmp_path / "blog.json"

        report = aggregator.aggregate_directory(blog_dir, output, kind="blog")

        assert report.item_count == 9
        assert len(read_output(output)) == 9
        assert [name for name, _ in report.skipped] == ["broken.md"]
        assert "banana" in report.skipped[0][1]

    def test_non_markdown_files_ignored(self, aggregator, blog_dir, tmp_path, write_md):
        write_md(blog_dir, "post.md", post("Only post", "2024-01-01"))
        write_md(blog_dir, "notes.txt", "not markdown")
        write_md(blog_dir, "image.png", "binary-ish")

        report = aggregator.aggregate_directory(blog_dir, tmp_path / "blog.json")

        assert report.item_count == 1
        assert report.skipped == []

    def test_sorted_newest_first(self, aggregator, blog_dir, tmp_path, write_md):
        write_md(blog_dir, "a.md", post("Oldest post", "2022-05-01"))
        write_md(blog_dir, "b.md", post("Newest post", "2024-05-01"))
        write_md(blog_dir, "c.md", post("Middle post", "2023-05-01"))
        output = tmp_path / "blog.json"

        aggregator.aggregate_directory(blog_dir, output)

        assert [item["title"] for item in read_output(output)] == ["Newest post", "Middle post", "Oldest post"]

    def test_undated_items_sorted_by_order(self, aggregator, site_config, tmp_path, write_md):
        research = site_config.content_root / "research"
        write_md(research, "a.md", '---\ntitle: "Third area"\norder: 3\n---\n')
        write_md(research, "b.md", '---\ntitle: "First area"\norder: 1\nicon: lightbulb\n---\n')
        write_md(research, "c.md", '---\ntitle: "Unordered area"\n---\n')
        write_md(research, "d.md", '---\ntitle: "Second area"\norder: 2\n---\n')
        output = tmp_path / "research.json"

        aggregator.aggregate_directory(research, output, kind="research")
        items = read_output(output)

        assert [item["title"] for item in items] == ["First area", "Second area", "Third area", "Unordered area"]
        assert items[0]["icon"] == "lightbulb"
        assert items[0]["collaborators"] == []
        assert "date" not in items[0]

    def test_same_title_same_month_get_distinct_slugs(self, aggregator, blog_dir, tmp_path, write_md):
        write_md(blog_dir, "a.md", post("AI Talk", "2024-03-01"))
        write_md(blog_dir, "b.md", post("AI Talk", "2024-03-20"))
        output = tmp_path / "blog.json"

        aggregator.aggregate_directory(blog_dir, output)
        slugs = sorted(item["slug"] for item in read_output(output))

        assert slugs == ["ai-talk-2024-03", "ai-talk-2024-03-2"]

    def test_explicit_slug_collision_last_write_wins(self, aggregator, blog_dir, tmp_path, write_md):
        write_md(blog_dir, "a.md", post("First", "2024-01-01", "slug: shared\n"))
        write_md(blog_dir, "b.md", post("Second", "2024-02-01", "slug: shared\n"))
        output = tmp_path / "blog.json"

        report = aggregator.aggregate_directory(blog_dir, output)
        items = read_output(output)

        assert len(items) == 1
        assert items[0]["title"] == "Second"
        assert len(report.warnings) == 1

    def test_title_defaults_to_filename(self, aggregator, blog_dir, tmp_path, write_md):
        write_md(blog_dir, "getting-started.md", "No frontmatter at all.\n")
        output = tmp_path / "blog.json"

        aggregator.aggregate_directory(blog_dir, output)
        item = read_output(output)[0]

        assert item["title"] == "Getting Started"
        assert item["slug"] == "getting-started"
        assert item["tags"] == ["AI"]

    def test_invariants_hold(self, aggregator, blog_dir, tmp_path, write_md):
        write_md(blog_dir, "a.md", post("Ünïcödé!!! title", "2024-01-01", 'tags: ["a", "b", "a", "c", "d", "e", "f"]\n'))
        write_md(blog_dir, "b.md", post("x", "2024-01-02"))
        write_md(blog_dir, "c.md", "---\ntitle: Retail data and business ethics\n---\nRetail data business ethics analytics innovation")
        output = tmp_path / "blog.json"

        aggregator.aggregate_directory(blog_dir, output)

        for item in read_output(output):
            assert is_valid_slug(item["slug"])
            assert len(item["tags"]) <= 5
            assert len(set(item["tags"])) == len(item["tags"])

    def test_idempotent_output(self, aggregator, blog_dir, tmp_path, write_md):
        write_md(blog_dir, "a.md", post("Alpha post", "2024-01-01", "tags: [x, y]\n") + "\n```python\nprint('hi')\n```\n")
        write_md(blog_dir, "b.md", post("Beta post", "2024-01-01"))
        output = tmp_path / "blog.json"

        aggregator.aggregate_directory(blog_dir, output)
        first = output.read_bytes()
        aggregator.aggregate_directory(blog_dir, output)

        assert output.read_bytes() == first

    def test_pretty_printed_and_overwritten(self, aggregator, blog_dir, tmp_path, write_md):
        output = tmp_path / "nested" / "dir" / "blog.json"
        output.parent.mkdir(parents=True)
        output.write_text("stale", encoding="utf-8")
        write_md(blog_dir, "a.md", post("Alpha post", "2024-01-01"))

        aggregator.aggregate_directory(blog_dir, output)
        text = output.read_text(encoding="utf-8")

        assert text.startswith('[\n  {\n    "slug"')
        assert "stale" not in text

    def test_empty_directory_writes_empty_array(self, aggregator, blog_dir, tmp_path):
        blog_dir.mkdir(parents=True)
        output = tmp_path / "blog.json"

        report = aggregator.aggregate_directory(blog_dir, output)

        assert report.item_count == 0
        assert output.read_text(encoding="utf-8") == "[]\n"

    def test_missing_directory_raises(self, aggregator, tmp_path):
        with pytest.raises(MissingSourceDirectoryError):
            aggregator.aggregate_directory(tmp_path / "nope", tmp_path / "out.json")

    def test_unwritable_output_raises(self, aggregator, blog_dir, tmp_path, write_md):
        write_md(blog_dir, "a.md", post("Alpha post", "2024-01-01"))
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory", encoding="utf-8")

        with pytest.raises(WriteFailure):
            aggregator.aggregate_directory(blog_dir, blocker / "blog.json")


class TestEvents:
    def test_event_slug_prefers_event_name(self, aggregator, site_config, write_md):
        events = site_config.content_root / "conferences"
        write_md(events, "talk.md", '---\ntitle: "Retail AI"\nevent: "NRF Big Show"\nlocation: "New York"\n'
                                    'date: "2024-01-14"\n---\nHow retail uses machine learning.\n')

        report = aggregator.aggregate(site_config.get_content_type("events"))
        item = json.loads(report.output.read_text(encoding="utf-8"))[0]

        assert item["slug"] == "nrf-big-show-2024-01"
        assert item["type"] == "speaking"
        assert item["tags"] == ["AI", "Retail", "Machine Learning"]


class TestSortItems:
    def test_ties_keep_encounter_order_and_use_order_field(self):
        items = [
            ContentItem(slug="a", title="A", date="2024-01-01"),
            ContentItem(slug="b", title="B", date="2024-01-01", order=2),
            ContentItem(slug="c", title="C", date="2024-01-01", order=1),
            ContentItem(slug="d", title="D", date="2024-02-01"),
        ]

        assert [item.slug for item in sort_items(items)] == ["d", "c", "b", "a"]


class TestBuildAll:
    def test_missing_directories_are_warnings(self, site_config, write_md):
        write_md(site_config.content_root / "blog", "a.md", post("Alpha post", "2024-01-01"))

        reports = build_all(site_config)

        by_name = {report.name: report for report in reports}
        assert by_name["blog"].item_count == 1
        assert by_name["research"].item_count == 0
        assert not any(report.failed for report in reports)
        assert (site_config.output_root / "blog-posts.json").exists()
        assert not (site_config.output_root / "research-areas.json").exists()

    def test_write_failure_does_not_stop_other_types(self, site_config, write_md):
        write_md(site_config.content_root / "blog", "a.md", post("Alpha post", "2024-01-01"))
        write_md(site_config.content_root / "research", "r.md", '---\ntitle: "Area one"\n---\n')
        site_config.output_root.mkdir(parents=True)
        (site_config.output_root / "blog-posts.json").mkdir()

        reports = build_all(site_config)

        by_name = {report.name: report for report in reports}
        assert by_name["blog"].failed
        assert by_name["research"].item_count == 1

    def test_only_selected_types(self, site_config, write_md):
        write_md(site_config.content_root / "blog", "a.md", post("Alpha post", "2024-01-01"))

        reports = build_all(site_config, ["blog"])

        assert [report.name for report in reports] == ["blog"]
