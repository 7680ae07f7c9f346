from __future__ import annotations

from impactdeck.crawl.about import (
    ABOUT_TEXT_CAP,
    discover_about_content,
    find_about_link,
    page_text,
)

NAV_HTML = """
<html><body>
  <header>
    <nav>
      <a href="#main">Skip</a>
      <a href="https://facebook.com/about">Facebook</a>
      <a href="/programs">Programs</a>
      <a href="/who-we-are/">Team</a>
    </nav>
  </header>
</body></html>
"""

LONG = "We serve 4,500 families every year across the county. " * 10


def test_find_about_link_matches_hyphenated_href_on_same_domain():
    link = find_about_link(NAV_HTML, "https://www.example.org", "example.org")
    assert link == "https://www.example.org/who-we-are/"


def test_find_about_link_handles_protocol_relative_hrefs():
    html = '<nav><a href="//example.org/our-story">Our Story</a></nav>'
    assert find_about_link(html, "https://example.org", "example.org") == "https://example.org/our-story"


def test_find_about_link_none_when_missing():
    assert find_about_link("<nav><a href='/donate'>Give</a></nav>", "https://a.org", "a.org") is None


def test_page_text_strips_chrome_and_collapses_whitespace():
    html = """
    <html><head><style>body{}</style><script>var x = 1;</script></head>
    <body><nav>Menu</nav><main><h1>Our   Mission</h1>
    <p>Feeding\nneighbors.</p></main><footer>Copyright</footer></body></html>
    """
    assert page_text(html) == "Our Mission Feeding neighbors."


def test_discovery_uses_nav_link_and_appends_homepage():
    pages = {
        "https://example.org/who-we-are/": "About us. " + LONG,
        "https://example.org": "Home. " + LONG,
    }
    content = discover_about_content(
        "https://example.org",
        "example.org",
        "https://example.org",
        page_loader=lambda url: (url, NAV_HTML.replace("www.", "")),
        text_loader=pages.get,
    )
    assert content.startswith("=== ABOUT PAGE (https://example.org/who-we-are/) ===\nAbout us.")
    assert "\n\n=== HOMEPAGE IMPACT DATA ===\nHome." in content


def test_discovery_falls_back_to_conventional_paths():
    requested: list[str] = []

    def text_loader(url):
        requested.append(url)
        return LONG if url == "https://example.org/about-us" else None

    content = discover_about_content(
        "https://example.org",
        "example.org",
        "https://example.org",
        page_loader=lambda url: (None, None),
        text_loader=text_loader,
    )
    assert content.startswith("=== ABOUT PAGE (https://example.org/about-us) ===")
    assert requested[:3] == [
        "https://example.org/about",
        "https://example.org/about/",
        "https://example.org/about-us",
    ]


def test_discovery_homepage_only_and_caps():
    content = discover_about_content(
        "https://example.org",
        "example.org",
        "https://example.org",
        page_loader=lambda url: (None, None),
        text_loader=lambda url: "x" * (ABOUT_TEXT_CAP * 2) if url == "https://example.org" else None,
    )
    assert content.startswith("=== HOMEPAGE ===\n")
    assert len(content) == len("=== HOMEPAGE ===\n") + 6000


def test_discovery_short_pages_yield_empty_text():
    content = discover_about_content(
        "https://example.org",
        "example.org",
        "https://example.org",
        page_loader=lambda url: (None, None),
        text_loader=lambda url: "too short",
    )
    assert content == ""
