import random

from nearby_search.models import POIRecord
from nearby_search.ranking.merger import ResultMerger, merge_results
from nearby_search.ranking.ranker import DistanceRanker


def make_record(id, name="Venue", lat=51.5, lng=-0.07, distance_km=1.0, **extra):
    return POIRecord(id=id, name=name, lat=lat, lng=lng, distance_km=distance_km, **extra)


def test_merge_keeps_first_seen_on_id_collision():
    strict = make_record("p1", name="Halal Grill", cuisine="grill")
    category = make_record("p1", name="Halal Grill", cuisine="kebab")

    merged = merge_results([strict], [category])

    assert len(merged) == 1
    assert merged[0] is strict


def test_merge_dedups_same_venue_with_different_ids():
    strict = make_record("geo-1", name="Noor Kitchen", lat=51.51231, lng=-0.07111)
    category = make_record("geo-2", name="  noor KITCHEN", lat=51.51234, lng=-0.07109)

    assert merge_results([strict], [category]) == [strict]


def test_merge_keeps_distinct_nearby_venues():
    a = make_record("a", name="Noor Kitchen", lat=51.5120, lng=-0.0710)
    b = make_record("b", name="Noor Kitchen", lat=51.5130, lng=-0.0710)  # ~110m away
    c = make_record("c", name="Other Place", lat=51.5120, lng=-0.0710)

    assert merge_results([a], [b, c]) == [a, b, c]


def test_merge_appends_without_reordering():
    existing = [make_record("z", name="Z", distance_km=9), make_record("a", name="A", distance_km=1)]
    incoming = [make_record("m", name="M", lat=1, lng=1, distance_km=5), existing[0]]

    merged = merge_results(existing, incoming)

    assert [r.id for r in merged] == ["z", "a", "m"]


def test_merge_drops_duplicates_within_one_tier():
    merger = ResultMerger()
    accepted = merger.add([make_record("x"), make_record("x")])
    assert accepted == 1
    assert len(merger) == 1


def test_rank_sorts_by_distance():
    records = [
        make_record(str(i), name=f"V{i}", lat=i, lng=i, distance_km=d)
        for i, d in enumerate([3.2, 0.4, 7.7, 1.1, 0.0, 2.5])
    ]
    random.Random(7).shuffle(records)

    ranked = DistanceRanker().rank(records)

    distances = [r.distance_km for r in ranked]
    assert distances == sorted(distances)


def test_rank_is_stable_for_ties():
    first = make_record("strict", name="S", lat=1, lng=1, distance_km=2.0)
    second = make_record("category", name="C", lat=2, lng=2, distance_km=2.0)
    nearer = make_record("cuisine", name="K", lat=3, lng=3, distance_km=1.0)

    ranked = DistanceRanker().rank([first, second, nearer])

    assert [r.id for r in ranked] == ["cuisine", "strict", "category"]
