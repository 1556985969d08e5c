from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from folio.html_utils import (
    absolutize_html_urls,
    escape_html,
    join_root_url,
    strip_html,
)
from folio.utils import (
    content_stem,
    ensure_clean_dir,
    extract_date_from_name,
    is_html,
    is_markdown,
    is_template,
    normalize_date,
    slugify,
    titleize,
    truncate_text,
)


def test_slugify_drops_date_prefix_and_punctuation():
    assert slugify("2024-01-15-Hello World") == "hello-world"
    assert slugify("C++ & Rust!") == "c-rust"
    assert slugify("---") == "index"
    assert slugify("_2024-01-15-draft-post") == "draft-post"


def test_titleize():
    assert titleize("2024-01-15-hello-world.md") == "Hello World"
    assert titleize("my_notes.html") == "My Notes"
    assert titleize("2024-01-15-.md") == "Untitled"


def test_extract_date_from_name():
    assert extract_date_from_name("2024-01-15-hello") == datetime(2024, 1, 15)
    assert extract_date_from_name("2024-01-15") == datetime(2024, 1, 15)
    assert extract_date_from_name("_2024-01-15-draft") == datetime(2024, 1, 15)
    assert extract_date_from_name("2024-13-40-bad") is None
    assert extract_date_from_name("hello") is None


def test_normalize_date_variants():
    aware = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert normalize_date(aware) == datetime(2024, 1, 1, 10, 0)
    assert normalize_date(date(2024, 1, 2)) == datetime(2024, 1, 2)
    assert normalize_date("2024-03-05") == datetime(2024, 3, 5)
    assert normalize_date("2024-03-05 08:30:00") == datetime(2024, 3, 5, 8, 30)
    assert normalize_date("not a date") is None
    assert normalize_date("  ") is None
    assert normalize_date(42) is None


def test_truncate_text_backs_off_to_word_boundary():
    assert truncate_text("The quick brown fox", 12) == "The quick..."
    assert truncate_text("hello world", 5) == "hello..."
    assert truncate_text("abcdefghij", 4) == "abcd..."
    assert truncate_text("short", 12) == "short"
    assert truncate_text("a   b\n c", 20) == "a b c"
    assert truncate_text("one two three", 7, end=" [more]") == "one two [more]"


def test_path_classification():
    assert is_markdown(Path("post.md"))
    assert is_markdown(Path("post.MARKDOWN"))
    assert is_template(Path("index.html.jinja"))
    assert is_template(Path("feed.jinja"))
    assert not is_template(Path("index.html"))
    assert is_html(Path("about.html"))
    assert not is_html(Path("about.html.jinja"))


def test_content_stem():
    assert content_stem(Path("index.html.jinja")) == "index"
    assert content_stem(Path("2024-01-01-hello.md")) == "2024-01-01-hello"
    assert content_stem(Path("about.html")) == "about"
    assert content_stem(Path("notes.txt")) == "notes"


def test_ensure_clean_dir(tmp_path):
    target = tmp_path / "out"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "old.html").write_text("x", encoding="utf-8")
    ensure_clean_dir(target)
    assert target.exists()
    assert list(target.iterdir()) == []


def test_escape_html():
    assert escape_html('<a href="x">Tom & Jerry</a>') == (
        "&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&lt;/a&gt;"
    )


def test_strip_html_drops_scripts_comments_and_entities():
    html = "<p>Hi<script>alert(1)</script> <!-- note --> &amp; <b>bye</b></p>"
    assert strip_html(html) == "Hi & bye"
    assert strip_html("") == ""


def test_join_root_url():
    assert join_root_url("https://example.com/", "about") == "https://example.com/about"
    assert join_root_url("https://example.com", "/about/") == "https://example.com/about/"
    assert join_root_url("", "/about/") == "/about/"


def test_absolutize_html_urls_skips_external_links():
    html = (
        '<a href="/about/">About</a><img src="/me.png">'
        '<a href="https://other.org/">x</a><a href="#top">top</a>'
        '<a href="mailto:me@example.com">mail</a>'
    )
    result = absolutize_html_urls(html, "http://localhost:4000")
    assert 'href="http://localhost:4000/about/"' in result
    assert 'src="http://localhost:4000/me.png"' in result
    assert 'href="https://other.org/"' in result
    assert 'href="#top"' in result
    assert 'href="mailto:me@example.com"' in result
    assert absolutize_html_urls(html, "") == html
