import json
import logging
import os
from typing import Any, Dict, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objs as go

from .catalog import Catalog
from .config import CATALOG_PATH
from .cutoffs import effective_rounds
from .models import PredictionResult

logger = logging.getLogger(__name__)

# Global catalog snapshot, loaded once
CATALOG_DATA: Optional[Catalog] = None

FRAME_COLUMNS = [
    'Rank',
    'Course',
    'College',
    'City',
    'Type',
    'Seat Type',
    'Best Round',
    'Cutoff',
    'Gap',
    'Admission Chance (%)',
    'Probability',
]


def load_data(path: str = CATALOG_PATH) -> Catalog:
    """
    Load the college catalog snapshot from JSON

    Args:
        path (str): Path to a JSON list of institution records

    Returns:
        Catalog: Read-only catalog; empty if the file is missing or unreadable
    """
    global CATALOG_DATA
    try:
        logger.info(f"Attempting to load catalog from: {path}")

        if not os.path.exists(path):
            logger.error(f"Catalog file not found at: {path}")
            raise FileNotFoundError(f"Catalog file not found at: {path}")

        with open(path, encoding="utf-8") as f:
            records = json.load(f)
        if isinstance(records, dict):
            records = records.get("colleges", [])

        catalog = Catalog.from_records(records)
        CATALOG_DATA = catalog
        logger.info(f"Catalog loaded successfully. Total colleges: {len(catalog)}")
        return catalog

    except (OSError, ValueError) as e:
        logger.error(f"Error in load_data: {e}")
        return Catalog([])


def get_catalog() -> Catalog:
    global CATALOG_DATA
    if CATALOG_DATA is None:
        logger.warning("CATALOG_DATA is None, attempting to load data...")
        CATALOG_DATA = load_data()
    return CATALOG_DATA


def predictions_to_frame(result: PredictionResult) -> pd.DataFrame:
    """Tabulate the combined predictions, one row per college and course."""
    rows = [
        {
            'Rank': record.rank,
            'Course': record.course,
            'College': record.college,
            'City': record.city,
            'Type': record.type.value,
            'Seat Type': record.seat_type,
            'Best Round': record.best_matching_round,
            'Cutoff': record.cutoff_for_category,
            'Gap': record.difference,
            'Admission Chance (%)': record.admission_chance,
            'Probability': record.probability,
        }
        for record in result.predictions
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def chance_distribution_plot(frame: pd.DataFrame) -> Optional[go.Figure]:
    if frame.empty:
        return None

    fig = px.histogram(
        frame,
        x='Admission Chance (%)',
        color='Course',
        title='Admission Chance Distribution',
        labels={'Admission Chance (%)': 'Admission Chance', 'count': 'Number of Colleges'},
        nbins=20,
    )
    fig.update_layout(
        xaxis_title="Admission Chance (%)",
        yaxis_title="Number of Colleges",
    )
    return fig


def get_college_details(catalog: Catalog, institute: str) -> Dict[str, Any]:
    """
    Retrieve detailed information about a specific college

    Args:
        catalog (Catalog): Catalog snapshot
        institute (str): Name of the institute (case-insensitive)

    Returns:
        Dict containing college details, or an "error" key
    """
    institution = catalog.get(institute)
    if institution is None:
        return {"error": "College not found"}

    courses = []
    for offering in institution.courses:
        rounds = effective_rounds(institution, offering)
        courses.append({
            "name": offering.name,
            "seats": offering.seats,
            "duration": offering.duration,
            "trend": {
                "rounds": [rnd.number for rnd in rounds],
                "general": [rnd.cutoff.general if rnd.cutoff else None for rnd in rounds],
                "tfws": [rnd.cutoff.tfws if rnd.cutoff else None for rnd in rounds],
                "ladies": [
                    rnd.cutoff.ladies.general if rnd.cutoff and rnd.cutoff.ladies else None
                    for rnd in rounds
                ],
            },
        })

    details = institution.model_dump(by_alias=True, mode="json", exclude={"courses"})
    details["totalSeats"] = sum(offering.seats or 0 for offering in institution.courses)
    details["courses"] = courses
    return details
