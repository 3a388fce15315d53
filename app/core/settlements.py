"""Settlement hierarchy for the defense module: region -> company -> settlements."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Company:
    name: str
    settlements: tuple[str, ...]


@dataclass(frozen=True)
class Region:
    name: str
    companies: tuple[Company, ...]


REGIONS: tuple[Region, ...] = (
    Region(
        name="ארץ בנימין",
        companies=(
            Company("פלוגת מבוא שילה", ("כוכב השחר", "רימונים", "מלאכי השלום")),
            Company("פלוגת עטרת", ("עטרת",)),
            Company("פלוגת עפרה", ("עפרה",)),
            Company("פלוגת בית אל", ("בית אל", "גבעת אסף")),
        ),
    ),
    Region(
        name="גבעת בנימין",
        companies=(
            Company("פלוגת כוכב יעקב", ("כוכב יעקב", "פסגות")),
            Company("פלוגת רמה", ("מעלה מכמש", "מצפה דני", "מגרון", "נווה ארז", "מצפה חגית")),
            Company("פלוגת ענתות", ("אדם", "בני אדם")),
        ),
    ),
    Region(
        name="טלמונים",
        companies=(
            Company("פלוגת נווה יאיר", ("נווה צוף",)),
            Company(
                "פלוגת חורש ירון",
                ("נחליאל", "חרשה", "טלמון", "דולב", "נריה", "כרם רעים", "שדה אפרים"),
            ),
            Company("פלוגת רנתיס", ("נעלה", "נילי", "עופרים", "בית אריה")),
        ),
    ),
)

ALL_SETTLEMENTS: tuple[str, ...] = tuple(
    settlement
    for region in REGIONS
    for company in region.companies
    for settlement in company.settlements
)


def get_company(settlement: str) -> str | None:
    """Return the company responsible for a settlement, or None if unknown."""
    for region in REGIONS:
        for company in region.companies:
            if settlement in company.settlements:
                return company.name
    return None


def get_region(settlement: str) -> str | None:
    """Return the region containing a settlement, or None if unknown."""
    for region in REGIONS:
        for company in region.companies:
            if settlement in company.settlements:
                return region.name
    return None


def is_known_settlement(settlement: str) -> bool:
    return settlement in ALL_SETTLEMENTS


def list_settlements(region: str | None = None, company: str | None = None) -> list[str]:
    """List settlements, optionally narrowed to a region and/or company."""
    result: list[str] = []
    for r in REGIONS:
        if region and r.name != region:
            continue
        for c in r.companies:
            if company and c.name != company:
                continue
            result.extend(c.settlements)
    return result
