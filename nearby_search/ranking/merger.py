from typing import Dict, Iterable, List

from nearby_search.models import POIRecord
from nearby_search.recall.normalizer import content_key


class ResultMerger:
    """
    Append-then-dedup accumulator for POIs coming from several strategy tiers.

    Records live in a flat list; two maps point from identity keys (provider id,
    and normalized name + rounded location) to their index. A record whose id
    or content key was already seen is dropped, so the first tier to report a
    venue wins and accepted records never move.
    """

    def __init__(self, records: Iterable[POIRecord] = ()):
        self.records: List[POIRecord] = []
        self._by_id: Dict[str, int] = {}
        self._by_content: Dict[tuple, int] = {}
        self.add(records)

    def __len__(self) -> int:
        return len(self.records)

    def add(self, incoming: Iterable[POIRecord]) -> int:
        accepted = 0
        for record in incoming:
            # 1. ID Dedup
            if record.id in self._by_id:
                continue
            # 2. Content Dedup (same venue, different ids across tiers)
            key = content_key(record.name, record.lat, record.lng)
            if key in self._by_content:
                continue

            index = len(self.records)
            self.records.append(record)
            self._by_id[record.id] = index
            self._by_content[key] = index
            accepted += 1
        return accepted


def merge_results(existing: List[POIRecord], incoming: List[POIRecord]) -> List[POIRecord]:
    merger = ResultMerger(existing)
    merger.add(incoming)
    return merger.records
