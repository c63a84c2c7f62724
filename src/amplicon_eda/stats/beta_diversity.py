# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from typing import Optional, Sequence

# Third-Party Imports
import numpy as np
import pandas as pd
from skbio.diversity import beta_diversity
from skbio.stats.distance import DistanceMatrix
from skbio.stats.ordination import OrdinationResults, pcoa as PCoA, pcoa_biplot
from sklearn.metrics import pairwise_distances

# Local Imports
from amplicon_eda import constants
from amplicon_eda.errors import DegenerateDistanceError

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger('amplicon_eda')

# =============================== HELPER FUNCTIONS ==================================== #

def validate_min_samples(df: pd.DataFrame, min_samples: int = 2) -> None:
    """Validate that the input contains sufficient samples for analysis.

    Args:
        df: Input data as pandas DataFrame with samples as rows and OTUs as columns
        min_samples: Minimum required number of samples (default: 2)

    Raises:
        ValueError: If number of samples is less than required minimum
    """
    if len(df) < min_samples:
        raise ValueError(f"At least {min_samples} samples required, got {len(df)}")

# ============================== TABLE TRANSFORMATION ================================= #

def log_transform(
    tidy: pd.DataFrame,
    base: float = constants.DEFAULT_LOG_BASE,
    pseudocount: float = constants.DEFAULT_PSEUDOCOUNT
) -> pd.DataFrame:
    """Add `logRA` = log_base(RA + pseudocount) to every observation."""
    tidy = tidy.copy()
    tidy[constants.LOG_RA_COLUMN] = (
        np.log(tidy[constants.RA_COLUMN] + pseudocount) / np.log(base)
    )
    return tidy


def tidy_to_matrix(
    tidy: pd.DataFrame,
    value_col: str = constants.LOG_RA_COLUMN,
    sample_id_col: str = constants.DEFAULT_SAMPLE_ID_COLUMN,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN,
    fill_value: float = constants.DEFAULT_FILL_VALUE
) -> pd.DataFrame:
    """Pivot observations back to a samples × OTUs matrix.

    Sample/OTU combinations with no observation are set to `fill_value`.
    Rows and columns keep their order of first appearance.
    """
    matrix = tidy.pivot_table(
        index=sample_id_col,
        columns=feature_id_col,
        values=value_col,
        aggfunc='sum',
        fill_value=fill_value,
        sort=False
    )
    matrix.index.name = None
    matrix.columns.name = None
    return matrix

# =============================== CORE FUNCTIONALITY ================================== #

def validate_distance_matrix(data: np.ndarray, ids: Sequence[str]) -> DistanceMatrix:
    """Perform comprehensive validation of a pairwise distance array.

    Validates and cleans distances before building the DistanceMatrix by:
    1. Handling NaN values through symmetric imputation
    2. Ensuring matrix symmetry
    3. Checking for degeneracy (all identical values)
    4. Ensuring diagonal is exactly zero

    Args:
        data: Square array of pairwise distances
        ids: Sample IDs, in row order

    Returns:
        Validated and cleaned DistanceMatrix

    Raises:
        ValueError: For invalid distance matrices that cannot be cleaned
        DegenerateDistanceError: If every pairwise distance is identical
    """
    dm_data = np.array(data, dtype=float)

    # Step 1: Handle NaNs symmetrically
    # (Bray-Curtis between two all-zero samples is 0/0)
    if np.isnan(dm_data).any():
        if np.isnan(dm_data).all():
            raise ValueError("Distance matrix is all NaNs")
        logger.warning("Distance matrix contains NaNs; imputing")
        total_mean = np.nanmean(dm_data)

        diagonal = np.diag(dm_data).copy()
        diagonal[np.isnan(diagonal)] = 0.0
        np.fill_diagonal(dm_data, diagonal)

        n = dm_data.shape[0]
        for i in range(n):
            for j in range(i + 1, n):  # Only process upper triangle
                upper, lower = dm_data[i, j], dm_data[j, i]
                if np.isnan(upper) and np.isnan(lower):
                    dm_data[i, j] = dm_data[j, i] = total_mean
                elif np.isnan(upper):
                    dm_data[i, j] = lower
                elif np.isnan(lower):
                    dm_data[j, i] = upper

    # Step 2: Check symmetry and enforce if nearly symmetric
    if not np.allclose(dm_data, dm_data.T, atol=1e-8):
        raise ValueError("Distance matrix is not symmetric")
    dm_data = (dm_data + dm_data.T) / 2

    # Step 3: Check for degeneracy (only for matrices larger than 1x1)
    if dm_data.size > 1 and np.allclose(dm_data, dm_data.flat[0]):
        raise DegenerateDistanceError(
            "Distance matrix is degenerate (all values identical)"
        )

    # Step 4: Ensure diagonal is exactly 0
    np.fill_diagonal(dm_data, 0.0)

    return DistanceMatrix(dm_data, ids=list(ids))


def distance_matrix(
    df: pd.DataFrame,
    metric: str = constants.DEFAULT_METRIC
) -> DistanceMatrix:
    """Compute the validated pairwise distance matrix between samples.

    Args:
        df: Samples × OTUs matrix
        metric: Distance metric to use (default: constants.DEFAULT_METRIC)

    Returns:
        DistanceMatrix object containing pairwise distances between samples

    Raises:
        ValueError: For invalid input data containing NaN or infinite values
    """
    validate_min_samples(df, min_samples=2)
    sample_ids = [str(i) for i in df.index]
    data = df.values.astype(float)

    if np.isnan(data).any():
        raise ValueError("Input data contains NaN values")
    if np.isinf(data).any():
        raise ValueError("Input data contains infinite values")

    # Compositional metric needs scikit-bio
    if metric == 'aitchison':
        dist_array = beta_diversity('aitchison', data, ids=sample_ids).data
    else:
        with np.errstate(invalid='ignore', divide='ignore'):
            dist_array = pairwise_distances(data, metric=metric)

    return validate_distance_matrix(dist_array, sample_ids)


def pcoa(
    df: pd.DataFrame,
    metric: str = constants.DEFAULT_METRIC,
    n_dimensions: Optional[int] = constants.DEFAULT_N_PCOA,
    method: str = constants.DEFAULT_PCOA_METHOD,
    random_state: int = constants.DEFAULT_RANDOM_STATE
) -> OrdinationResults:
    """PCoA of a samples × OTUs matrix, with OTU loadings.

    Args:
        df: Samples × OTUs matrix (e.g. logRA values)
        metric: Distance metric to use (default: constants.DEFAULT_METRIC)
        n_dimensions: Number of axes to keep; defaults to n_samples - 1
        method: 'eigh' (exact) or 'fsvd' (randomised, seeded by `random_state`)
        random_state: Seed for the randomised method

    Returns:
        OrdinationResults with:
        - samples: sample coordinates, columns PCo1..PCoN
        - proportion_explained: explained variance per axis
        - feature_loadings: OTU loadings on each axis

    Raises:
        ValueError: For insufficient samples or invalid distance matrices
    """
    validate_min_samples(df, min_samples=2)

    dm = distance_matrix(df, metric=metric)

    max_dims = dm.shape[0] - 1
    n_dimensions = min(n_dimensions, max_dims) if n_dimensions else max_dims

    if method == 'fsvd':
        np.random.seed(random_state)
    pcoa_result = PCoA(dm, method, n_dimensions)

    ordination_biplot = pcoa_biplot(pcoa_result, df.set_axis(dm.ids, axis=0))

    comp_names = [f"PCo{i+1}" for i in range(pcoa_result.samples.shape[1])]
    pcoa_result.samples.columns = comp_names
    pcoa_result.proportion_explained.index = comp_names
    pcoa_result.eigvals.index = comp_names

    pcoa_result.feature_loadings = ordination_biplot.features
    pcoa_result.feature_loadings.columns = comp_names

    logger.info(
        f"PCoA ({metric}) on {dm.shape[0]} samples: "
        + ", ".join(
            f"{name} {prop:.1%}"
            for name, prop in pcoa_result.proportion_explained.head(3).items()
        )
    )
    return pcoa_result


def ordinate(
    tidy: pd.DataFrame,
    metric: str = constants.DEFAULT_METRIC,
    n_dimensions: Optional[int] = constants.DEFAULT_N_PCOA,
    method: str = constants.DEFAULT_PCOA_METHOD,
    random_state: int = constants.DEFAULT_RANDOM_STATE,
    value_col: str = constants.LOG_RA_COLUMN
) -> OrdinationResults:
    """Pivot log-transformed observations to a samples × OTUs matrix and run PCoA."""
    matrix = tidy_to_matrix(tidy, value_col=value_col)
    return pcoa(matrix, metric, n_dimensions, method, random_state)
