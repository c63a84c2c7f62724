# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from pathlib import Path
from typing import Optional, Union

# Third-Party Imports
import pandas as pd

# Local Imports
from amplicon_eda import constants

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger('amplicon_eda')

# ================================== TAXONOMY CLASS ================================== #

class Taxonomy:
    """
    Handler for QIIME 2 taxonomic classification data.
    
    Attributes:
        taxonomy (pd.DataFrame): Parsed taxonomy data with columns:
            - variable:           OTU ID
            - taxonomy:           Raw taxonomy string
            - confidence:         Classification confidence score
            - taxstring:          Cleaned taxonomy string
            - [Kingdom..Species]: Taxonomic ranks
    """
    
    def __init__(
        self, 
        tsv_path: Union[str, Path],
        feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN
    ) -> None:
        self.feature_id_col = feature_id_col
        self.taxonomy: pd.DataFrame = self._import_taxonomy_tsv(tsv_path)
        
    def _import_taxonomy_tsv(self, tsv_path: Union[str, Path]) -> pd.DataFrame:
        """
        Parse taxonomy TSV into structured DataFrame.
        
        Args:
            tsv_path: Path to taxonomy TSV file.
        
        Returns:
            Structured taxonomy DataFrame, one row per OTU.
        """
        df = pd.read_csv(Path(tsv_path), sep='\t', dtype=str)
        df = df.rename(columns={
            'Feature ID': self.feature_id_col, 
            'Taxon': 'taxonomy', 
            'Confidence': 'confidence',
            'Consensus': 'confidence'
        })
        df['taxonomy'] = df['taxonomy'].fillna('Unassigned')
        df['taxstring'] = df['taxonomy'].str.replace(r' *[dkpcofgs]__', '', regex=True)
        
        for prefix, rank in constants.TAXONOMY_PREFIXES.items():
            values = df['taxonomy'].apply(lambda x: self._extract_level(x, prefix))
            # 'd__' and 'k__' both map to Kingdom
            df[rank] = values if rank not in df else df[rank].fillna(values)

        ranks = [self.feature_id_col] + constants.TAXONOMY_RANKS
        return df[ranks + [c for c in df.columns if c not in ranks]]
        
    def _extract_level(
        self, 
        taxonomy: str, 
        level: str
    ) -> Optional[str]:
        """
        Extract specific taxonomic level from taxonomy string.
        
        Args:
            taxonomy: Raw taxonomy string.
            level:    Taxonomic level prefix (d/k/p/c/o/f/g/s).
        
        Returns:
            Taxonomic name for specified level, or None if not found.
        """
        prefix = level + '__'
        if not taxonomy or taxonomy in ['Unassigned', 'Unclassified']:
            return 'Unclassified'
        
        for part in taxonomy.split(';'):
            part = part.strip()
            if part.startswith(prefix):
                return part[len(prefix):] or None
        return None
