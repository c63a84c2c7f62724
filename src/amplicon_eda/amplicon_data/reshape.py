# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging

# Third‑Party Imports
import pandas as pd

# Local Imports
from amplicon_eda import constants
from amplicon_eda.errors import AlignmentError

# ========================== INITIALISATION & CONFIGURATION ========================== #

logger = logging.getLogger("amplicon_eda")

# ==================================== FUNCTIONS ===================================== #

def align_metadata(
    table: pd.DataFrame,
    metadata: pd.DataFrame,
    sample_id_col: str = constants.DEFAULT_SAMPLE_ID_COLUMN
) -> pd.DataFrame:
    """Reorder metadata rows to match the abundance table's sample columns.

    Args:
        table:         OTUs × samples count table.
        metadata:      Sample metadata with a unique `sample_id_col`.
        sample_id_col: Metadata column holding sample IDs.

    Returns:
        A new metadata DataFrame, one row per table column, in column order.

    Raises:
        AlignmentError: If any table column has no metadata row.
    """
    sample_ids = metadata[sample_id_col].astype(str)
    missing = [s for s in table.columns if s not in set(sample_ids)]
    if missing:
        raise AlignmentError(
            f"{len(missing)} sample(s) in the abundance table have no metadata "
            f"row: {missing}"
        )

    aligned = (
        metadata.assign(**{sample_id_col: sample_ids})
        .set_index(sample_id_col)
        .loc[list(table.columns)]
        .reset_index()
    )
    n_extra = len(metadata) - len(aligned)
    if n_extra:
        logger.debug(f"{n_extra} metadata rows have no abundance data")
    return aligned


def melt_table(
    table: pd.DataFrame,
    metadata: pd.DataFrame,
    sample_id_col: str = constants.DEFAULT_SAMPLE_ID_COLUMN,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN,
    value_col: str = constants.DEFAULT_VALUE_COLUMN
) -> pd.DataFrame:
    """Pivot the wide table to one row per (sample, OTU) with sample metadata.

    `metadata` must already be aligned to the table's columns.
    """
    # Sample-major: every OTU of the first sample, then the next sample
    long_df = (
        table.rename_axis(index=feature_id_col)
        .reset_index()
        .melt(id_vars=feature_id_col, var_name=sample_id_col, value_name=value_col)
    )
    return metadata.merge(long_df, on=sample_id_col, how='inner', sort=False)


def join_taxonomy(
    tidy: pd.DataFrame,
    taxonomy: pd.DataFrame,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN
) -> pd.DataFrame:
    """Inner-join taxonomy onto observations; OTUs without taxonomy are dropped."""
    taxonomy = taxonomy.drop_duplicates(subset=feature_id_col)
    joined = tidy.merge(taxonomy, on=feature_id_col, how='inner', sort=False)

    n_otus = tidy[feature_id_col].nunique()
    n_dropped = n_otus - joined[feature_id_col].nunique()
    if n_dropped:
        logger.info(f"Dropped {n_dropped} of {n_otus} OTUs with no taxonomy assignment")
    return joined


def check_column_clashes(
    metadata: pd.DataFrame,
    taxonomy: pd.DataFrame,
    sample_id_col: str = constants.DEFAULT_SAMPLE_ID_COLUMN,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN,
    value_col: str = constants.DEFAULT_VALUE_COLUMN
) -> None:
    """Raise AlignmentError if the tables share column names other than the join keys.

    Shared names would be suffixed by the merges (e.g. `Class_x`, `Class_y`)
    and hide the taxonomy ranks the organelle filter looks up.
    """
    meta_cols = set(metadata.columns) - {sample_id_col}
    tax_cols = set(taxonomy.columns) - {feature_id_col}
    clashes = {
        'metadata and taxonomy': meta_cols & tax_cols,
        'metadata and reserved': meta_cols & {feature_id_col, value_col},
        'taxonomy and reserved': tax_cols & {sample_id_col, value_col},
    }
    found = {k: sorted(map(str, v)) for k, v in clashes.items() if v}
    if found:
        details = "; ".join(f"{k}: {v}" for k, v in found.items())
        raise AlignmentError(f"Column names clash between tables ({details})")


def tidy_table(
    table: pd.DataFrame,
    metadata: pd.DataFrame,
    taxonomy: pd.DataFrame,
    sample_id_col: str = constants.DEFAULT_SAMPLE_ID_COLUMN,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN,
    value_col: str = constants.DEFAULT_VALUE_COLUMN
) -> pd.DataFrame:
    """Build the long-format observation table from the three input tables.

    Args:
        table:    OTUs × samples count table.
        metadata: Sample metadata.
        taxonomy: Taxonomy lookup keyed by `feature_id_col`.

    Returns:
        One row per (sample, OTU) for every OTU present in `taxonomy`, carrying
        all metadata and taxonomy columns.

    Raises:
        AlignmentError: If samples lack metadata or column names clash.
    """
    check_column_clashes(metadata, taxonomy, sample_id_col, feature_id_col, value_col)
    aligned = align_metadata(table, metadata, sample_id_col)
    tidy = melt_table(table, aligned, sample_id_col, feature_id_col, value_col)
    tidy = join_taxonomy(tidy, taxonomy, feature_id_col)
    logger.info(
        f"Reshaped to {len(tidy)} observations "
        f"({tidy[sample_id_col].nunique()} samples × "
        f"{tidy[feature_id_col].nunique()} OTUs)"
    )
    return tidy
