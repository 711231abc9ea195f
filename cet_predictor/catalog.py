import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import pandas as pd
from pydantic import ValidationError

from .models import CourseOffering, Institution

logger = logging.getLogger(__name__)


def _general_cutoff(institution: Institution) -> float:
    if institution.cutoff is None or institution.cutoff.general is None:
        return 0.0
    return institution.cutoff.general


SORT_KEYS = {
    "cutoff": (_general_cutoff, True),
    "fees": (lambda inst: inst.fees.annual, False),
    "placement": (lambda inst: inst.placements.average_package.amount, True),
    "name": (lambda inst: inst.name.lower(), False),
}


class Catalog:
    """
    Read-only snapshot of institutions and their course offerings.

    The prediction engine only reads from it; records are built once at
    load time and never mutated afterwards.
    """

    def __init__(self, institutions: Sequence[Institution]):
        unique: Dict[str, Institution] = {}
        for institution in institutions:
            if institution.name in unique:
                logger.warning(f"Duplicate institution '{institution.name}' ignored")
                continue
            unique[institution.name] = institution
        self._institutions: Tuple[Institution, ...] = tuple(unique.values())
        self._by_name = {name.lower(): inst for name, inst in unique.items()}

    @classmethod
    def from_records(cls, records: List[Dict[str, Any]]) -> "Catalog":
        """Validate raw records one by one, skipping the malformed ones."""
        institutions = []
        for index, record in enumerate(records):
            try:
                institutions.append(Institution.model_validate(record))
            except ValidationError as e:
                name = record.get("name", f"#{index}") if isinstance(record, dict) else f"#{index}"
                logger.warning(f"Skipping malformed catalog record {name}: {e.error_count()} error(s)")
        return cls(institutions)

    def __len__(self) -> int:
        return len(self._institutions)

    @property
    def institutions(self) -> Tuple[Institution, ...]:
        return self._institutions

    def active_institutions(self) -> Iterator[Institution]:
        return (inst for inst in self._institutions if inst.is_active)

    def iter_offerings(self) -> Iterator[Tuple[Institution, CourseOffering]]:
        for institution in self.active_institutions():
            for offering in institution.courses:
                yield institution, offering

    def find_courses_by_name_fragment(self, fragment: str) -> List[Tuple[Institution, CourseOffering]]:
        needle = fragment.strip().lower()
        if not needle:
            return []
        return [
            (institution, offering)
            for institution, offering in self.iter_offerings()
            if needle in offering.name.lower()
        ]

    def get(self, name: str) -> Optional[Institution]:
        return self._by_name.get(name.strip().lower())

    def search(
        self,
        search: Optional[str] = None,
        institution_type: Optional[str] = None,
        city: Optional[str] = None,
        course: Optional[str] = None,
        min_cutoff: Optional[float] = None,
        max_cutoff: Optional[float] = None,
        featured: Optional[bool] = None,
        sort: str = "featured",
        limit: int = 20,
        page: int = 1,
    ) -> Dict[str, Any]:
        """
        Filter, sort and paginate the active institutions.

        Returns:
            Dict with the page of institutions and pagination counters
        """
        matches = list(self.active_institutions())

        if search:
            term = search.lower()
            matches = [
                inst for inst in matches
                if term in inst.name.lower() or term in inst.location.lower() or term in inst.city.lower()
            ]
        if institution_type and institution_type != "All":
            matches = [inst for inst in matches if inst.type.value == institution_type]
        if city:
            matches = [inst for inst in matches if city.lower() in inst.city.lower()]
        if course:
            term = course.lower()
            matches = [inst for inst in matches if any(term in c.name.lower() for c in inst.courses)]
        if min_cutoff is not None:
            matches = [inst for inst in matches if _general_cutoff(inst) >= min_cutoff]
        if max_cutoff is not None:
            matches = [inst for inst in matches if _general_cutoff(inst) <= max_cutoff]
        if featured:
            matches = [inst for inst in matches if inst.featured]

        if sort in SORT_KEYS:
            key, reverse = SORT_KEYS[sort]
            matches.sort(key=key, reverse=reverse)
        else:
            matches.sort(key=lambda inst: (not inst.featured, -_general_cutoff(inst)))

        limit = max(limit, 1)
        page = max(page, 1)
        start = (page - 1) * limit
        total = len(matches)
        return {
            "colleges": matches[start:start + limit],
            "pagination": {
                "current": page,
                "total": -(-total // limit),
                "count": len(matches[start:start + limit]),
                "totalRecords": total,
            },
        }

    def stats(self) -> Dict[str, Any]:
        active = list(self.active_institutions())
        if not active:
            return {
                "colleges": {"total": 0, "byType": {}},
                "courses": 0,
                "placements": {"avgPackage": 0.0, "maxPackage": 0.0, "avgPlacementRate": 0.0},
            }

        df = pd.DataFrame([
            {
                "type": inst.type.value,
                "courses": len(inst.courses),
                "average_package": inst.placements.average_package.amount,
                "highest_package": inst.placements.highest_package.amount,
                "placement_rate": inst.placements.placement_rate,
            }
            for inst in active
        ])
        return {
            "colleges": {
                "total": int(len(df)),
                "byType": {k: int(v) for k, v in df["type"].value_counts().items()},
            },
            "courses": int(df["courses"].sum()),
            "placements": {
                "avgPackage": round(float(df["average_package"].mean()), 2),
                "maxPackage": float(df["highest_package"].max()),
                "avgPlacementRate": round(float(df["placement_rate"].mean()), 2),
            },
        }
