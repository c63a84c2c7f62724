# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from pathlib import Path
from typing import Tuple, Union

# Third-Party Imports
import numpy as np
import pandas as pd
from biom import load_table

# Local Imports
from amplicon_eda import constants
from amplicon_eda.errors import MissingFileError, ParseError
from amplicon_eda.utils.table_conversion import table_to_df
from amplicon_eda.utils.taxonomy_utils import Taxonomy

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger('amplicon_eda')

# ================================= FILE VALIDATION ================================== #

def check_file(path: Union[str, Path], label: str) -> Path:
    """Return `path` as a Path, raising MissingFileError if it is not a file."""
    path = Path(path)
    if not path.is_file():
        raise MissingFileError(f"{label} file not found: {path}")
    return path


def count_fields(path: Path, label: str, allow_row_label_gap: bool = False) -> bool:
    """Check that every line of a tab-delimited file has the same number of fields.

    Args:
        path:                Tab-delimited text file.
        label:               Name of the table, used in error messages.
        allow_row_label_gap: Accept a header with one field fewer than the body
                             (row-label column left unnamed, as R writes it).

    Returns:
        True if the header omits the row-label column.

    Raises:
        ParseError: If the file is not valid UTF-8 text, or has an empty
                    or ragged layout.
    """
    try:
        with open(path, 'r', encoding='utf-8') as fh:
            lines = [
                (line_no, line.rstrip('\r\n').split('\t'))
                for line_no, line in enumerate(fh, start=1)
                if line.strip()
            ]
    except UnicodeDecodeError as e:
        raise ParseError(f"{label} is not valid UTF-8: {path}") from e
    if not lines:
        raise ParseError(f"{label} is empty: {path}")

    n_header = len(lines[0][1])
    body = lines[1:]
    n_body = len(body[0][1]) if body else n_header
    implicit_index = allow_row_label_gap and n_body == n_header + 1
    expected = n_body if implicit_index else n_header

    for line_no, fields in body:
        if len(fields) != expected:
            raise ParseError(
                f"{label} line {line_no} has {len(fields)} fields, "
                f"expected {expected}: {path}"
            )
    return implicit_index

# ================================= ABUNDANCE TABLE ================================== #

def validate_counts(df: pd.DataFrame, source: Union[str, Path]) -> pd.DataFrame:
    """Coerce an OTUs × samples table to non-negative integer counts.

    Raises:
        ParseError: For duplicate IDs, or cells that are not finite,
                    non-negative whole numbers.
    """
    df = df.copy()
    df.index = df.index.astype(str)
    df.columns = df.columns.astype(str)

    for axis_name, ids in (('OTU', df.index), ('sample', df.columns)):
        duplicated = ids[ids.duplicated()]
        if len(duplicated):
            raise ParseError(
                f"Duplicate {axis_name} IDs in {source}: {list(duplicated.unique())}"
            )

    numeric = df.apply(pd.to_numeric, errors='coerce')
    bad = ~np.isfinite(numeric) | (numeric < 0) | (numeric % 1 != 0)
    if bad.values.any():
        otu_id = bad.any(axis=1).idxmax()
        sample_id = bad.loc[otu_id].idxmax()
        raise ParseError(
            f"Invalid count '{df.loc[otu_id, sample_id]}' for OTU '{otu_id}' in "
            f"sample '{sample_id}' ({source}); counts must be non-negative integers"
        )
    return numeric.astype(np.int64)


def import_table_tsv(tsv_path: Union[str, Path]) -> pd.DataFrame:
    """
    Load a tab-delimited OTU abundance table (OTUs × samples).

    The first column holds OTU IDs and the header row holds sample IDs. The
    header may or may not name the OTU ID column.

    Args:
        tsv_path: Path to the abundance table.

    Returns:
        Integer count DataFrame indexed by OTU ID with one column per sample.
    """
    tsv_path = check_file(tsv_path, "Abundance table")
    implicit_index = count_fields(tsv_path, "Abundance table", allow_row_label_gap=True)
    try:
        df = pd.read_csv(
            tsv_path, sep="\t", index_col=None if implicit_index else 0, dtype=str
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ParseError(f"Failed to parse abundance table {tsv_path}: {e}") from e
    df.index.name = None
    return validate_counts(df, tsv_path)


def import_table_biom(biom_path: Union[str, Path]) -> pd.DataFrame:
    """
    Load a BIOM feature table as an OTUs × samples DataFrame.

    Args:
        biom_path: Path to the BIOM file.

    Returns:
        Integer count DataFrame indexed by OTU ID with one column per sample.
    """
    biom_path = check_file(biom_path, "Abundance table")
    try:
        table = load_table(str(biom_path))
    except (TypeError, ValueError, OSError) as e:
        raise ParseError(f"Failed to parse BIOM table {biom_path}: {e}") from e
    return validate_counts(table_to_df(table), biom_path)


def import_abundance_table(path: Union[str, Path]) -> pd.DataFrame:
    """Load the abundance table, dispatching on file extension."""
    path = Path(path)
    if path.suffix.lower() in constants.BIOM_SUFFIXES:
        df = import_table_biom(path)
    else:
        df = import_table_tsv(path)
    logger.info(
        f"Loaded abundance table {path.name}: {df.shape[0]} OTUs × {df.shape[1]} samples"
    )
    return df

# ==================================== METADATA ====================================== #

def import_metadata_tsv(
    tsv_path: Union[str, Path],
    sample_id_col: str = constants.DEFAULT_SAMPLE_ID_COLUMN
) -> pd.DataFrame:
    """
    Load a sample metadata TSV file.

    Args:
        tsv_path:      Path to metadata TSV file.
        sample_id_col: Column holding unique sample IDs.

    Returns:
        Metadata DataFrame with a default index, one row per sample.

    Raises:
        MissingFileError: If specified path doesn't exist.
        ParseError:       For ragged rows, a missing or non-unique ID column.
    """
    tsv_path = check_file(tsv_path, "Metadata")
    count_fields(tsv_path, "Metadata")
    try:
        df = pd.read_csv(tsv_path, sep='\t', dtype={sample_id_col: str})
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ParseError(f"Failed to parse metadata {tsv_path}: {e}") from e

    if sample_id_col not in df.columns:
        raise ParseError(f"Metadata {tsv_path} has no '{sample_id_col}' column")
    duplicated = df[sample_id_col][df[sample_id_col].duplicated()]
    if not duplicated.empty:
        raise ParseError(
            f"Duplicate sample IDs in metadata {tsv_path}: {list(duplicated.unique())}"
        )
    logger.info(f"Loaded metadata {tsv_path.name}: {len(df)} samples")
    return df

# ==================================== TAXONOMY ====================================== #

def validate_taxonomy(
    df: pd.DataFrame,
    source: Union[str, Path],
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN
) -> pd.DataFrame:
    """Ensure the taxonomy lookup has an OTU ID column and the ranks filtered on."""
    if feature_id_col not in df.columns:
        # OTU IDs stored as the index
        df = df.rename_axis(feature_id_col).reset_index()
    missing = [c for c in constants.REQUIRED_TAXONOMY_COLUMNS if c not in df.columns]
    if missing:
        raise ParseError(f"Taxonomy {source} is missing columns: {missing}")
    df = df.copy()
    df[feature_id_col] = df[feature_id_col].astype(str)
    return df


def import_taxonomy(
    path: Union[str, Path],
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN
) -> pd.DataFrame:
    """
    Load the taxonomy lookup table.

    A pickled pandas DataFrame is loaded as-is. A QIIME 2 taxonomy TSV
    ('Feature ID', 'Taxon') is parsed into rank columns.

    Args:
        path:           Pickled DataFrame or taxonomy TSV.
        feature_id_col: Name of the OTU ID column.

    Returns:
        Taxonomy DataFrame with an OTU ID column and rank columns.
    """
    path = check_file(path, "Taxonomy")
    if path.suffix.lower() in constants.TABLE_SUFFIXES:
        count_fields(path, "Taxonomy")
        try:
            df = Taxonomy(path, feature_id_col=feature_id_col).taxonomy
        except (pd.errors.ParserError, KeyError) as e:
            raise ParseError(f"Failed to parse taxonomy {path}: {e}") from e
    else:
        try:
            df = pd.read_pickle(path)
        except Exception as e:
            raise ParseError(f"Failed to unpickle taxonomy {path}: {e}") from e
        if not isinstance(df, pd.DataFrame):
            raise ParseError(
                f"Taxonomy {path} holds a {type(df).__name__}, expected a DataFrame"
            )
    df = validate_taxonomy(df, path, feature_id_col)
    logger.info(f"Loaded taxonomy {path.name}: {len(df)} OTUs")
    return df

# ================================== ALL INPUTS ====================================== #

def load_inputs(
    table_path: Union[str, Path],
    metadata_path: Union[str, Path],
    taxonomy_path: Union[str, Path],
    sample_id_col: str = constants.DEFAULT_SAMPLE_ID_COLUMN,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Load the abundance table, sample metadata and taxonomy lookup.

    All paths are checked before anything is parsed.

    Returns:
        (abundance table, metadata, taxonomy)
    """
    check_file(table_path, "Abundance table")
    check_file(metadata_path, "Metadata")
    check_file(taxonomy_path, "Taxonomy")

    table = import_abundance_table(table_path)
    metadata = import_metadata_tsv(metadata_path, sample_id_col=sample_id_col)
    taxonomy = import_taxonomy(taxonomy_path, feature_id_col=feature_id_col)
    return table, metadata, taxonomy
