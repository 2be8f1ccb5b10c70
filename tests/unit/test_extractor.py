from chainabuse_monitor.core.extraction.extractor import extract, extract_report_id

REPORT_ID = "3f1c2d4e-aaaa-bbbb-cccc-1234567890ab"
EVM_ADDRESS = "0x52908400098527886E0F7030069857D2E4169EE7"

LISTING_HTML = f"""
<html><body>
<div class="reports">
  <div class="create-ScamReportCard">
    <div class="create-ScamReportCard__category-section"><p>Phishing Scam</p></div>
    <p>Fake airdrop site drained my wallet</p>
    <div>Submitted by <span>bob</span> <span>3 minutes ago</span></div>
    <div>Amount lost <span>1,200 USD</span></div>
    <div>Reported Address <span>{EVM_ADDRESS}</span></div>
    <a href="/report/{REPORT_ID}?context=browse-all">View</a>
  </div>
  <div class="create-ScamReportCard">
    <div class="create-ScamReportCard__category-section"><p>Rug Pull Scam</p></div>
    <p>Token team removed liquidity overnight</p>
    <div>Submitted by <span>carol</span> <span>2 hours ago</span></div>
    <div>Reported Domain <span>moon-token.io</span></div>
  </div>
</div>
</body></html>
"""


def test_cards_are_extracted_in_page_order():
    items = extract(LISTING_HTML)
    assert [item.position for item in items] == [0, 1]
    assert [item.category for item in items] == ["Phishing Scam", "Rug Pull Scam"]


def test_card_fields():
    first, second = extract(LISTING_HTML)

    assert first.recency_phrase == "3 minutes ago"
    assert first.author == "bob"
    assert first.monetary_amount == "1,200 USD"
    assert first.addresses == (EVM_ADDRESS,)
    assert first.detail_id == REPORT_ID
    assert first.body.startswith("Fake airdrop site drained my wallet")
    assert "bob" not in first.body

    assert second.recency_phrase == "2 hours ago"
    assert second.author == "carol"
    assert second.domain == "moon-token.io"
    assert second.detail_id is None
    assert second.addresses == ()


def test_plain_text_fallback_splits_on_blank_lines():
    page = (
        "Phishing Scam\nFake airdrop drained wallet\nSubmitted by bob 2 minutes ago\n\n"
        "Rug Pull Scam\nToken liquidity removed\nSubmitted by carol 10 minutes ago\n\n"
        "Footer text without report markers"
    )
    items = extract(page)
    assert len(items) == 2
    assert items[0].recency_phrase == "2 minutes ago"
    assert items[0].category == "Phishing Scam"
    assert items[1].position == 1
    assert items[1].category == "Rug Pull Scam"
    assert items[1].author == "carol"


def test_empty_page():
    assert extract("") == []
    assert extract("   \n ") == []


def test_page_without_reports():
    assert extract("<html><body><p>Maintenance</p></body></html>") == []


def test_extract_report_id():
    assert extract_report_id(f"https://www.chainabuse.com/report/{REPORT_ID}") == REPORT_ID
    assert extract_report_id("/reports?sort=newest") is None
    assert extract_report_id(None) is None
