# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from typing import Dict, Optional, Tuple

# Third-Party Imports
import numpy as np
import pandas as pd

# ================================== LOCAL IMPORTS =================================== #

from amplicon_eda import constants
from amplicon_eda.errors import AlignmentError, EmptyResultError

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("amplicon_eda")

# ============================== OBSERVATION FILTERING =============================== #

def remove_organelles(
    tidy: pd.DataFrame,
    organelle_filters: Optional[Dict[str, str]] = None,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN
) -> pd.DataFrame:
    """Drop observations assigned to mitochondria or chloroplasts.

    Args:
        tidy:              Long-format observation table.
        organelle_filters: {taxonomy column: value} pairs; a row matching any
                           pair exactly (case-sensitive) is removed. Defaults to
                           Family == 'mitochondria' or Class == 'Chloroplast'.
        feature_id_col:    OTU ID column.

    Returns:
        New observation table without organelle-derived rows.

    Raises:
        AlignmentError: If a filtered taxonomy column is absent.
    """
    if organelle_filters is None:
        organelle_filters = constants.DEFAULT_ORGANELLE_FILTERS

    mask = pd.Series(False, index=tidy.index)
    for col, value in organelle_filters.items():
        if col not in tidy.columns:
            raise AlignmentError(
                f"Taxonomy column '{col}' not found; cannot apply '{value}' filter"
            )
        # NaN never matches
        mask |= tidy[col].eq(value)

    if mask.any():
        logger.info(
            f"Removed {int(mask.sum())} organelle observations "
            f"({tidy.loc[mask, feature_id_col].nunique()} OTUs)"
        )
    return tidy.loc[~mask].reset_index(drop=True)


def add_depth(
    tidy: pd.DataFrame,
    sample_id_col: str = constants.DEFAULT_SAMPLE_ID_COLUMN,
    value_col: str = constants.DEFAULT_VALUE_COLUMN
) -> pd.DataFrame:
    """Add per-sample sequencing depth (sum of counts) to every observation.

    Args:
        tidy:          Long-format observation table.
        sample_id_col: Sample ID column.
        value_col:     Read count column.

    Returns:
        New observation table with a `Depth` column; row count is unchanged.
    """
    tidy = tidy.copy()
    tidy[constants.DEPTH_COLUMN] = (
        tidy.groupby(sample_id_col, sort=False)[value_col].transform('sum')
    )

    empty = tidy.loc[tidy[constants.DEPTH_COLUMN] == 0, sample_id_col].unique()
    if len(empty):
        logger.warning(f"{len(empty)} sample(s) have zero depth: {list(empty)}")
    return tidy


def add_prevalence(
    tidy: pd.DataFrame,
    threshold: float = constants.DEFAULT_PREVALENCE_THRESHOLD,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN,
    value_col: str = constants.DEFAULT_VALUE_COLUMN,
    ra_scale: float = constants.DEFAULT_RA_SCALE
) -> pd.DataFrame:
    """Annotate observations with OTU prevalence, relative abundance and status.

    - `prev`:   fraction of the OTU's rows with a positive count
    - `RA`:     count / Depth × `ra_scale` (per mille by default)
    - `Status`: 'Keep' if prev ≥ `threshold`, else 'Discard'

    Args:
        tidy:           Observation table with a `Depth` column.
        threshold:      Minimum prevalence for an OTU to be kept.
        feature_id_col: OTU ID column.
        value_col:      Read count column.
        ra_scale:       Relative abundance multiplier.

    Returns:
        New observation table; row count is unchanged.
    """
    tidy = tidy.copy()
    detected = tidy[value_col].gt(0).astype(float)
    tidy[constants.PREVALENCE_COLUMN] = (
        detected.groupby(tidy[feature_id_col], sort=False).transform('mean')
    )
    tidy[constants.RA_COLUMN] = (
        tidy[value_col] / tidy[constants.DEPTH_COLUMN] * ra_scale
    )
    tidy[constants.STATUS_COLUMN] = np.where(
        tidy[constants.PREVALENCE_COLUMN] >= threshold,
        constants.STATUS_KEEP,
        constants.STATUS_DISCARD
    )
    return tidy


def prevalence_summary(
    tidy: pd.DataFrame,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN
) -> pd.DataFrame:
    """One row per OTU: mean relative abundance, prevalence and status."""
    return (
        tidy.groupby(feature_id_col, sort=False)
        .agg(**{
            constants.MEAN_RA_COLUMN: (constants.RA_COLUMN, 'mean'),
            constants.PREVALENCE_COLUMN: (constants.PREVALENCE_COLUMN, 'first'),
            constants.STATUS_COLUMN: (constants.STATUS_COLUMN, 'first'),
        })
        .reset_index()
    )


def check_not_empty(tidy: pd.DataFrame, stage: str) -> pd.DataFrame:
    """Raise EmptyResultError if `tidy` has no rows."""
    if tidy.empty:
        raise EmptyResultError(f"No observations remain after {stage}")
    return tidy


def filter_prevalence(
    tidy: pd.DataFrame,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN,
    raise_on_empty: bool = False
) -> pd.DataFrame:
    """Keep only observations whose `Status` is 'Keep'.

    Args:
        tidy:           Observation table annotated by `add_prevalence`.
        feature_id_col: OTU ID column.
        raise_on_empty: Raise EmptyResultError instead of returning an empty
                        table when every OTU is discarded.

    Returns:
        New observation table with the same columns.
    """
    keep = tidy[constants.STATUS_COLUMN] == constants.STATUS_KEEP
    filtered = tidy.loc[keep].reset_index(drop=True)

    n_otus = tidy[feature_id_col].nunique()
    n_discarded = n_otus - filtered[feature_id_col].nunique()
    logger.info(f"Discarded {n_discarded} of {n_otus} OTUs below prevalence threshold")

    if filtered.empty:
        if raise_on_empty:
            check_not_empty(filtered, "prevalence filtering")
        logger.warning("All OTUs were discarded by the prevalence filter")
    return filtered


def filter_tidy(
    tidy: pd.DataFrame,
    threshold: float = constants.DEFAULT_PREVALENCE_THRESHOLD,
    organelle_filters: Optional[Dict[str, str]] = None,
    sample_id_col: str = constants.DEFAULT_SAMPLE_ID_COLUMN,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN,
    value_col: str = constants.DEFAULT_VALUE_COLUMN,
    ra_scale: float = constants.DEFAULT_RA_SCALE,
    raise_on_empty: bool = False
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Organelle removal, depth, prevalence annotation and prevalence filtering.

    Depth is computed once, after organelle removal, and is not refreshed
    after prevalence filtering.

    Returns:
        (annotated table before discarding, filtered table)
    """
    tidy = remove_organelles(tidy, organelle_filters, feature_id_col)
    tidy = add_depth(tidy, sample_id_col, value_col)
    annotated = add_prevalence(tidy, threshold, feature_id_col, value_col, ra_scale)
    filtered = filter_prevalence(annotated, feature_id_col, raise_on_empty)
    return annotated, filtered
