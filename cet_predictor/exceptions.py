from typing import List


class NoEligibleColleges(Exception):
    """No requested course produced a single eligible college."""

    def __init__(self, percentile: float, window: float, courses: List[str]):
        self.percentile = percentile
        self.window = window
        self.courses = list(courses)
        super().__init__(
            f"No colleges found for {', '.join(self.courses)}: no historical cutoff lies between "
            f"{percentile:.2f} and {percentile + window:.2f} percentile. "
            f"Try other courses or enable ladies/TFWS seats if applicable."
        )
