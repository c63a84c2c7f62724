# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

# Third Party Imports
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from skbio.stats.ordination import OrdinationResults

# Local Imports
from amplicon_eda import constants
from amplicon_eda.figures.figures import create_colordict, plotly_show_and_save

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger('amplicon_eda')

# ==================================== FUNCTIONS ===================================== #

def pcoa_plot(
    ordination: OrdinationResults,
    metadata: Optional[pd.DataFrame] = None,
    color_col: Optional[str] = None,
    sample_id_col: str = constants.DEFAULT_SAMPLE_ID_COLUMN,
    dimensions: Tuple[int, int] = (1, 2),
    metric: str = constants.DEFAULT_METRIC,
    output_path: Optional[Union[str, Path]] = None,
    save_as=constants.DEFAULT_SAVE_AS,
    show: bool = False
) -> go.Figure:
    """
    Scatter of sample coordinates on two PCoA axes.

    Args:
        ordination:    Result of `pcoa`.
        metadata:      Sample metadata; joined on `sample_id_col` for hover and color.
        color_col:     Metadata column used to color samples.
        sample_id_col: Metadata sample ID column.
        dimensions:    Axes to plot (1-based).
        metric:        Distance metric, shown in the title.
        output_path:   Base path to save the figure to.
        save_as:       Formats passed to `plotly_show_and_save`.
        show:          Display the figure.

    Returns:
        The Plotly figure.
    """
    coords = ordination.samples
    x_dim, y_dim = dimensions
    x_col, y_col = f"PCo{x_dim}", f"PCo{y_dim}"
    if y_col not in coords.columns:
        # A single axis is all two samples can give
        y_col = x_col

    data = coords.rename_axis(sample_id_col).reset_index()
    data[sample_id_col] = data[sample_id_col].astype(str)
    if metadata is not None:
        meta = metadata.assign(**{sample_id_col: metadata[sample_id_col].astype(str)})
        data = data.merge(meta, on=sample_id_col, how='left')

    color_kwargs = {}
    if color_col:
        if color_col not in data.columns:
            raise ValueError(f"Color column '{color_col}' not found in metadata")
        data[color_col] = data[color_col].astype(str)
        color_kwargs = dict(
            color=color_col, 
            color_discrete_map=create_colordict(data[color_col])
        )

    fig = px.scatter(
        data, 
        x=x_col, 
        y=y_col, 
        hover_data=[sample_id_col], 
        template="amplicon_eda",
        **color_kwargs
    )
    fig.update_traces(marker=dict(size=constants.DEFAULT_MARKER_SIZE * 1.5))

    explained = ordination.proportion_explained
    fig.update_layout(
        title=dict(text=f"PCoA: {metric}"),
        xaxis_title=f"{x_col} ({explained[x_col] * 100:.1f}%)",
        yaxis_title=f"{y_col} ({explained[y_col] * 100:.1f}%)",
        showlegend=bool(color_col)
    )

    plotly_show_and_save(fig, show=show, output_path=output_path, save_as=save_as)
    return fig
