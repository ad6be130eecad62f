# tests/test_crawl.py
from modules.headhunter.lib.browser import RenderedPage
from modules.headhunter.lib.enrichment.crawl import crawl_contacts, link_priority, rank_contact_links
from modules.headhunter.lib.models import ContactRecord

HOME = "https://www.acme.com.tw/"

HOME_HTML = """
<html><body>
  <nav>
    <a href="/news">最新消息</a>
    <a href="/about-us">關於我們</a>
    <a href="https://acme.com.tw/contact">聯絡我們</a>
    <a href="/careers">人才招募</a>
    <a href="https://www.facebook.com/acme">Contact us on Facebook</a>
    <a href="/">首頁</a>
    <a href="#top">top</a>
  </nav>
  <p>Acme 智慧科技</p>
</body></html>
"""


def test_link_priority_order():
    assert link_priority("聯絡我們", "/x") == 3
    assert link_priority("", "https://a.com/contact-us") == 3
    assert link_priority("About", "/x") == 2
    assert link_priority("人才招募", "/x") == 1
    assert link_priority("最新消息", "/news") == 0


def test_rank_contact_links_same_site_contact_first():
    page = RenderedPage(url=HOME, html=HOME_HTML)
    assert rank_contact_links(page, limit=2) == [
        "https://acme.com.tw/contact",
        "https://www.acme.com.tw/about-us",
    ]
    assert rank_contact_links(page, limit=5)[-1] == "https://www.acme.com.tw/careers"


def test_merge_keeps_contact_page_phone_and_about_page_email(fake_renderer):
    # Contact page yields a phone only; about page yields phone + email
    fake_renderer.pages.update({
        HOME: HOME_HTML,
        "https://acme.com.tw/contact": "<html><body><p>電話 02-2345-6789</p></body></html>",
        "https://www.acme.com.tw/about-us": (
            "<html><body><p>總機 03-555-1234</p><p>hr@acme.com.tw</p></body></html>"
        ),
    })

    visited = crawl_contacts(fake_renderer, HOME)

    assert [v.url for v in visited] == [HOME, "https://acme.com.tw/contact", "https://www.acme.com.tw/about-us"]
    merged = ContactRecord.merged(v.record for v in visited)
    assert merged.phone == "02-2345-6789"
    assert merged.email == "hr@acme.com.tw"


def test_crawl_stops_early_once_phone_and_email_known(fake_renderer):
    fake_renderer.pages[HOME] = HOME_HTML.replace(
        "<p>Acme 智慧科技</p>", "<footer>TEL 02-2345-6789 | info@acme.com.tw</footer>"
    )
    visited = crawl_contacts(fake_renderer, HOME)
    assert len(visited) == 1
    assert fake_renderer.calls == [HOME]


def test_failed_page_does_not_stop_the_crawl(fake_renderer):
    fake_renderer.pages.update({
        HOME: HOME_HTML,
        # contact page missing -> RenderError
        "https://www.acme.com.tw/about-us": "<html><body><a href='mailto:service@acme.com.tw'>mail</a></body></html>",
    })
    visited = crawl_contacts(fake_renderer, HOME)

    assert len(visited) == 3
    assert visited[1].error and visited[1].record == ContactRecord()
    assert visited[2].record.email == "service@acme.com.tw"


def test_unreachable_homepage_yields_single_empty_record(fake_renderer):
    visited = crawl_contacts(fake_renderer, "https://down.example.tw/")
    assert len(visited) == 1
    assert visited[0].record == ContactRecord()
    assert visited[0].error
