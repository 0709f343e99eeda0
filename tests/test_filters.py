from datetime import datetime, timedelta

from bucketlist.filters import (
    DestinationFilter,
    collation_key,
    compute_stats,
    filter_destinations,
    is_visible,
    matches,
    percent,
    sort_destinations,
)


BASE = datetime(2024, 1, 1, 12, 0, 0)


def record(id, title="Lima", country="Peru", status="to-visit", description="", minutes=0, **extra):
    data = {
        "id": id,
        "title": title,
        "country": country,
        "status": status,
        "description": description,
        "createdAt": BASE + timedelta(minutes=minutes),
    }
    data.update(extra)
    return data


DESTINATIONS = [
    record("a1", "Machu Picchu", "Peru", "visited", "Inca citadel", minutes=1),
    record("a2", "Cusco", "Peru", "to-visit", "Old capital", minutes=2),
    record("a3", "Atacama", "Chile", "visited", "Driest desert", minutes=3),
    record("a4", "Kyoto", "Japan", "to-visit", "Temples and PERUVIAN food", minutes=4),
]


def expected(records, status="all", country="", search=""):
    q = search.lower()
    return {
        r["id"]
        for r in records
        if (status == "all" or r["status"] == status)
        and (country == "" or r["country"] == country)
        and (
            q == ""
            or q in r["title"].lower()
            or q in r["country"].lower()
            or q in r["description"].lower()
        )
    }


def test_filters_match_reference_definition():
    for status in ("all", "visited", "to-visit"):
        for country in ("", "Peru", "Chile", "Nowhere"):
            for search in ("", "peru", "DESERT", "cus", "zzz"):
                criteria = DestinationFilter(search=search, status=status, country=country)
                got = {r["id"] for r in filter_destinations(DESTINATIONS, criteria)}
                assert got == expected(DESTINATIONS, status, country, search)


def test_search_checks_title_country_and_description():
    assert matches(DESTINATIONS[0], DestinationFilter(search="machu"))
    assert matches(DESTINATIONS[2], DestinationFilter(search="chile"))
    assert matches(DESTINATIONS[3], DestinationFilter(search="peruvian"))
    assert not matches(DESTINATIONS[1], DestinationFilter(search="desert"))


def test_missing_description_does_not_break_search():
    rec = record("b1", "Oslo", "Norway", description=None)
    assert not matches(rec, DestinationFilter(search="fjord"))
    assert matches(rec, DestinationFilter(search="osl"))


def test_newest_and_oldest_are_inverse():
    records = DESTINATIONS + [record("a0", "Twin", minutes=2)]
    newest = [r["id"] for r in sort_destinations(records, "newest")]
    oldest = [r["id"] for r in sort_destinations(records, "oldest")]
    assert newest == list(reversed(oldest))
    assert newest[0] == "a4"


def test_unknown_sort_falls_back_to_newest():
    assert sort_destinations(DESTINATIONS, "bogus") == sort_destinations(DESTINATIONS, "newest")


def test_sort_accepts_iso_strings():
    records = [
        record("s1", createdAt="2024-01-02T00:00:00"),
        record("s2", createdAt="2024-01-03T00:00:00Z"),
    ]
    assert [r["id"] for r in sort_destinations(records, "newest")] == ["s2", "s1"]


def test_alphabetical_ignores_case_and_accents():
    records = [
        record("t1", "banana"),
        record("t2", "Éclair"),
        record("t3", "Apple"),
        record("t4", "cherry"),
    ]
    titles = [r["title"] for r in sort_destinations(records, "alphabetical")]
    assert titles == ["Apple", "banana", "cherry", "Éclair"]
    assert collation_key("a") < collation_key("B")


def test_visibility_scope():
    own = record("v1", userId="u1")
    other = record("v2", userId="u2")
    admin = record("v3", userId="u9", isAdminCreated=True)
    assert all(is_visible(r, None) for r in (own, other, admin))
    assert is_visible(own, "u1")
    assert not is_visible(other, "u1")
    assert is_visible(admin, "u1")


def test_stats_of_empty_set():
    assert compute_stats([]) == {
        "total": 0,
        "visited": 0,
        "toVisit": 0,
        "countries": 0,
        "progress": 0,
    }


def test_stats_example():
    stats = compute_stats(
        [
            {"country": "Peru", "status": "visited"},
            {"country": "Peru", "status": "to-visit"},
            {"country": "Chile", "status": "visited"},
        ]
    )
    assert stats == {"total": 3, "visited": 2, "toVisit": 1, "countries": 2, "progress": 67}


def test_stats_totals_add_up():
    stats = compute_stats(DESTINATIONS)
    assert stats["total"] == stats["visited"] + stats["toVisit"]
    assert stats["countries"] == 3


def test_percent_rounds_half_up():
    assert percent(1, 8) == 13  # 12.5
    assert percent(1, 3) == 33
    assert percent(2, 3) == 67
    assert percent(1, 200) == 1  # 0.5
    assert percent(0, 5) == 0
    assert percent(5, 5) == 100
    assert percent(0, 0) == 0
