# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

# Third‑Party Imports
import pandas as pd
import plotly.graph_objects as go
from skbio.stats.ordination import OrdinationResults

# ================================== LOCAL IMPORTS =================================== #

from amplicon_eda import constants
from amplicon_eda.amplicon_data.filtering import filter_tidy, prevalence_summary
from amplicon_eda.amplicon_data.reshape import tidy_table
from amplicon_eda.errors import DegenerateDistanceError
from amplicon_eda.figures.beta_diversity import pcoa_plot
from amplicon_eda.figures.prevalence import prevalence_plot
from amplicon_eda.stats.beta_diversity import log_transform, ordinate
from amplicon_eda.utils.io import load_inputs

# ========================== INITIALISATION & CONFIGURATION ========================== #

logger = logging.getLogger("amplicon_eda")

# ==================================== CLASSES ======================================= #

class AmpliconEDA:
    """Load → reshape → filter → ordinate, keeping every intermediate table.

    Attributes:
        matrix:       OTUs × samples counts as loaded.
        metadata:     Sample metadata as loaded.
        taxonomy:     Taxonomy lookup as loaded.
        tidy:         Long observation table after the taxonomy join.
        annotated:    Observations after organelle removal, with Depth, prev,
                      RA and Status.
        filtered:     `annotated` restricted to Status == 'Keep', with logRA.
        prevalence:   One row per OTU: mean RA, prev, Status.
        ordination:   skbio OrdinationResults, or None if fewer than two
                      samples remain or all distances are identical.
        coordinates:  Per-sample PCoA coordinates.
        figures:      Plotly figures keyed by name.
    """

    def __init__(
        self,
        table: Union[str, Path],
        metadata: Union[str, Path],
        taxonomy: Union[str, Path],
        prevalence_threshold: float = constants.DEFAULT_PREVALENCE_THRESHOLD,
        organelle_filters: Optional[Dict[str, str]] = None,
        metric: str = constants.DEFAULT_METRIC,
        n_dimensions: Optional[int] = constants.DEFAULT_N_PCOA,
        pcoa_method: str = constants.DEFAULT_PCOA_METHOD,
        random_state: int = constants.DEFAULT_RANDOM_STATE,
        color_col: Optional[str] = None,
        figure_dir: Optional[Union[str, Path]] = None,
        save_as: List[str] = constants.DEFAULT_SAVE_AS,
        make_figures: bool = True,
        raise_on_empty: bool = False
    ):
        self.paths = {'table': table, 'metadata': metadata, 'taxonomy': taxonomy}
        self.prevalence_threshold = prevalence_threshold
        self.organelle_filters = organelle_filters
        self.metric = metric
        self.n_dimensions = n_dimensions
        self.pcoa_method = pcoa_method
        self.random_state = random_state
        self.color_col = color_col
        self.figure_dir = Path(figure_dir) if figure_dir else None
        self.save_as = save_as
        self.make_figures = make_figures
        self.raise_on_empty = raise_on_empty

        self.ordination: Optional[OrdinationResults] = None
        self.coordinates: Optional[pd.DataFrame] = None
        self.figures: Dict[str, go.Figure] = {}

        logger.info("Running amplicon exploratory analysis...")
        self._execute_pipeline()

    # Type hints
    matrix: pd.DataFrame
    metadata: pd.DataFrame
    taxonomy: pd.DataFrame
    tidy: pd.DataFrame
    annotated: pd.DataFrame
    filtered: pd.DataFrame
    prevalence: pd.DataFrame

    def _execute_pipeline(self) -> None:
        self._load()
        self._reshape()
        self._filter()
        self._ordinate()

    def _figure_path(self, name: str) -> Optional[Path]:
        return self.figure_dir / name if self.figure_dir else None

    def _load(self) -> None:
        self.matrix, self.metadata, self.taxonomy = load_inputs(
            self.paths['table'], self.paths['metadata'], self.paths['taxonomy']
        )

    def _reshape(self) -> None:
        self.tidy = tidy_table(self.matrix, self.metadata, self.taxonomy)

    def _filter(self) -> None:
        self.annotated, filtered = filter_tidy(
            self.tidy,
            threshold=self.prevalence_threshold,
            organelle_filters=self.organelle_filters,
            raise_on_empty=self.raise_on_empty
        )
        self.filtered = log_transform(filtered)
        self.prevalence = prevalence_summary(self.annotated)

        if self.make_figures:
            self.figures['prevalence'] = prevalence_plot(
                self.prevalence,
                threshold=self.prevalence_threshold,
                output_path=self._figure_path('prevalence'),
                save_as=self.save_as
            )

    def _ordinate(self) -> None:
        n_samples = self.filtered[constants.DEFAULT_SAMPLE_ID_COLUMN].nunique()
        if n_samples < 2:
            logger.warning(
                f"Skipping ordination: {n_samples} sample(s) remain after filtering"
            )
            return

        try:
            self.ordination = ordinate(
                self.filtered,
                metric=self.metric,
                n_dimensions=self.n_dimensions,
                method=self.pcoa_method,
                random_state=self.random_state
            )
        except DegenerateDistanceError as e:
            logger.warning(f"Skipping ordination: {e}")
            return
        self.coordinates = self.ordination.samples

        if self.make_figures:
            self.figures['pcoa'] = pcoa_plot(
                self.ordination,
                metadata=self.metadata,
                color_col=self.color_col,
                metric=self.metric,
                output_path=self._figure_path(f'pcoa.{self.metric}'),
                save_as=self.save_as
            )
