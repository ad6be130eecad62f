# tests/test_normalize.py
import pytest

from modules.headhunter.lib import normalize
from modules.headhunter.lib.models import EXPORT_FIELDS, ContactRecord, JobPosting


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("月薪40,000~60,000元", 40000),
        ("月薪 45K~60K", 45000),
        ("年薪 120萬", 1200000),
        ("時薪 3千", 3000),
        ("面議", None),
        ("", None),
    ],
)
def test_salary_floor_reads_first_number_as_thousands(text, expected):
    assert normalize.salary_floor(text) == expected


def test_min_salary_filter_keeps_unparseable_and_drops_lower():
    assert normalize.passes_min_salary("面議（經常性薪資達4萬元或以上）", 50000) is False
    assert normalize.passes_min_salary("待遇面議", 50000) is True
    assert normalize.passes_min_salary("月薪 45K", 50000) is False
    assert normalize.passes_min_salary("月薪 55K", 50000) is True
    assert normalize.passes_min_salary("月薪 1K", 0) is True


def test_format_salary_range():
    assert normalize.format_salary_range(40000, 60000, "TWD", "per_month") == "40000-60000 TWD/月"
    assert normalize.format_salary_range(800000, None, "TWD", "per_year") == "800000+ TWD/年"
    assert normalize.format_salary_range(200, 200, "TWD", "per_hour") == "200+ TWD/時"
    assert normalize.format_salary_range(None, 60000) == normalize.NEGOTIABLE


def test_iso_date_variants():
    assert normalize.iso_date("2025-03-04T10:00:00Z") == "2025-03-04"
    assert normalize.iso_date(1735689600) == "2025-01-01"
    assert normalize.iso_date(1735689600000) == "2025-01-01"
    assert normalize.iso_date(" 3/12 ") == "3/12"
    assert normalize.iso_date(None) == ""


def test_make_posting_cleans_truncates_and_defaults():
    raw = {
        "company": " 新創 科技 ",
        "title": "AI  工程師",
        "link": " https://www.104.com.tw/job/abc ",
        "salary": "",
        "description": "x" * 500,
        "contact_person": "王小姐",
    }
    p = normalize.make_posting("104", raw, description_max_chars=300)
    assert p.company == "新創 科技"
    assert p.title == "AI 工程師"
    assert p.link == "https://www.104.com.tw/job/abc"
    assert p.salary_range == normalize.NEGOTIABLE
    assert len(p.description) == 300
    assert p.platform == p.source_platform == "104"
    assert (p.contact_person, p.contact_phone, p.contact_email) == ("王小姐", "", "")


def test_make_posting_without_title_raises():
    with pytest.raises(ValueError):
        normalize.make_posting("cake", {"company": "Acme", "title": "  "})


# ----------------------------------------------------------------------
# Models
# ----------------------------------------------------------------------
def test_contact_merge_first_non_empty_wins_in_rank_order():
    merged = ContactRecord.merged([
        ContactRecord(phone="02-2345-6789"),
        ContactRecord(phone="0912-345-678", email="hr@acme.com.tw"),
        ContactRecord(person="陳經理", email="info@acme.com.tw"),
    ])
    assert merged == ContactRecord(person="陳經理", phone="02-2345-6789", email="hr@acme.com.tw")


def test_with_contact_fills_only_missing_fields():
    p = JobPosting(source_platform="104", company="Acme", title="T", contact_person="王小姐")
    filled = p.with_contact(ContactRecord(person="Someone Else", phone="02-2345-6789"))
    assert filled.contact_person == "王小姐"
    assert filled.contact_phone == "02-2345-6789"
    assert filled.contact_email == ""
    assert filled.needs_contact


def test_to_row_follows_export_field_order():
    p = JobPosting(
        source_platform="cake",
        company="Acme",
        title="ML Engineer",
        link="https://www.cake.me/companies/acme/jobs/ml",
        salary_range="40000-60000 TWD/月",
        location="台北市",
        experience="2-5年",
        description="desc",
        last_updated="2025-01-01",
        contact_email="hr@acme.com",
    )
    row = p.to_row()
    assert len(row) == len(EXPORT_FIELDS) == 11
    assert row[0] == "Acme"
    assert row[2] == "40000-60000 TWD/月"
    assert row[8] == "hr@acme.com"
    assert row[9] == "https://www.cake.me/companies/acme/jobs/ml"
    assert row[10] == "2025-01-01"
