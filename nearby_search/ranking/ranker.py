from typing import List

from nearby_search.models import POIRecord


class DistanceRanker:
    def rank(self, records: List[POIRecord]) -> List[POIRecord]:
        # sorted() is stable: equal distances keep tier precedence from the merge.
        return sorted(records, key=lambda r: r.distance_km)


ranker = DistanceRanker()
