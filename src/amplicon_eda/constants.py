from pathlib import Path

# ==================================================================================== #
# SETTINGS
# ==================================================================================== #
# Go up two levels
DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "references" / "config.yaml"
DEFAULT_PROJECT_DIR = "output"

# ==================================================================================== #
# INPUT TABLES
# ==================================================================================== #
DEFAULT_SAMPLE_ID_COLUMN: str = 'SampleID'
DEFAULT_FEATURE_ID_COLUMN: str = 'variable'
DEFAULT_VALUE_COLUMN: str = 'value'

TABLE_SUFFIXES = {'.tsv', '.txt', '.tab'}
BIOM_SUFFIXES = {'.biom'}

TAXONOMY_RANKS = [
    'Kingdom', 'Phylum', 'Class', 'Order', 'Family', 'Genus', 'Species'
]
# QIIME 2 rank prefixes
TAXONOMY_PREFIXES = {
    'd': 'Kingdom', 
    'k': 'Kingdom', 
    'p': 'Phylum', 
    'c': 'Class', 
    'o': 'Order', 
    'f': 'Family', 
    'g': 'Genus', 
    's': 'Species'
}
REQUIRED_TAXONOMY_COLUMNS = ['Family', 'Class']

# ==================================================================================== #
# FILTERING
# ==================================================================================== #
# Observations matching any of these (column, value) pairs are dropped
DEFAULT_ORGANELLE_FILTERS = {
    'Family': 'mitochondria',
    'Class': 'Chloroplast'
}
DEFAULT_PREVALENCE_THRESHOLD: float = 0.05
# Relative abundance is reported per mille
DEFAULT_RA_SCALE: float = 1000

STATUS_KEEP: str = 'Keep'
STATUS_DISCARD: str = 'Discard'

# Derived observation columns
DEPTH_COLUMN: str = 'Depth'
PREVALENCE_COLUMN: str = 'prev'
RA_COLUMN: str = 'RA'
STATUS_COLUMN: str = 'Status'
LOG_RA_COLUMN: str = 'logRA'
MEAN_RA_COLUMN: str = 'mean_RA'

# ==================================================================================== #
# BETA DIVERSITY
# ==================================================================================== #
DEFAULT_LOG_BASE: float = 2
DEFAULT_PSEUDOCOUNT: float = 1
DEFAULT_FILL_VALUE: float = 0

DEFAULT_METRIC = 'braycurtis'
DEFAULT_N_PCOA = None
DEFAULT_PCOA_METHOD = 'eigh'
DEFAULT_RANDOM_STATE = 0

# ==================================================================================== #
# FIGURES
# ==================================================================================== #
DEFAULT_HEIGHT = 800
DEFAULT_WIDTH = 900
DEFAULT_SAVE_AS = ['html']

DEFAULT_STATUS_COLORS = {
    STATUS_KEEP: '#1f77b4',
    STATUS_DISCARD: '#d62728'
}
DEFAULT_MARKER_SIZE = 8
DEFAULT_OPACITY = 0.7
