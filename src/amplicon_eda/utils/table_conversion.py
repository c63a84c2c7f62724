# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging

# Third-Party Imports
import pandas as pd
from biom import Table

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("amplicon_eda")

# ================================ TABLE CONVERSION ================================== #

def table_to_df(table: Table) -> pd.DataFrame:
    """Convert a BIOM Table to a dense OTUs × samples DataFrame.
    
    Args:
        table: BIOM Table; observations are already rows.
        
    Returns:
        DataFrame in OTUs × samples orientation.
        
    Raises:
        TypeError: For unsupported input types
    """
    if not isinstance(table, Table):
        raise TypeError(f"Expected a BIOM Table, got {type(table).__name__}")
    df = table.to_dataframe(dense=True)
    logger.debug(f"Converted BIOM table to DataFrame: {df.shape}")
    return df
