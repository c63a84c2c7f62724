# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from pathlib import Path
from typing import Dict, Optional, Union

# Third Party Imports
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

# Local Imports
from amplicon_eda import constants
from amplicon_eda.figures.figures import plotly_show_and_save

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger('amplicon_eda')

# ==================================== FUNCTIONS ===================================== #

def prevalence_plot(
    summary: pd.DataFrame,
    threshold: Optional[float] = constants.DEFAULT_PREVALENCE_THRESHOLD,
    feature_id_col: str = constants.DEFAULT_FEATURE_ID_COLUMN,
    color_map: Optional[Dict[str, str]] = None,
    output_path: Optional[Union[str, Path]] = None,
    save_as=constants.DEFAULT_SAVE_AS,
    show: bool = False
) -> go.Figure:
    """
    Scatter of OTU prevalence against mean relative abundance.

    One point per OTU at (mean RA, prevalence), x on a log10 scale, colored
    by Keep/Discard status. OTUs with a mean RA of zero cannot be placed on
    the log axis and are left out of the plot.

    Args:
        summary:        Output of `prevalence_summary`.
        threshold:      Prevalence cutoff, drawn as a dashed line if given.
        feature_id_col: OTU ID column, shown on hover.
        color_map:      Status → color mapping.
        output_path:    Base path to save the figure to.
        save_as:        Formats passed to `plotly_show_and_save`.
        show:           Display the figure.

    Returns:
        The Plotly figure.
    """
    color_map = color_map or constants.DEFAULT_STATUS_COLORS
    data = summary[summary[constants.MEAN_RA_COLUMN] > 0]
    n_hidden = len(summary) - len(data)
    if n_hidden:
        logger.debug(f"{n_hidden} OTUs with zero mean RA omitted from the log-scale plot")

    fig = px.scatter(
        data,
        x=constants.MEAN_RA_COLUMN,
        y=constants.PREVALENCE_COLUMN,
        color=constants.STATUS_COLUMN,
        color_discrete_map=color_map,
        category_orders={
            constants.STATUS_COLUMN: [constants.STATUS_KEEP, constants.STATUS_DISCARD]
        },
        hover_data=[feature_id_col],
        log_x=True,
        opacity=constants.DEFAULT_OPACITY,
        template="amplicon_eda",
    )
    fig.update_traces(marker=dict(size=constants.DEFAULT_MARKER_SIZE))
    if threshold is not None:
        fig.add_hline(y=threshold, line_dash="dash", line_color="grey")
    fig.update_layout(
        title=dict(text="OTU prevalence vs. mean relative abundance"),
        xaxis_title="Mean relative abundance (‰, log10)",
        yaxis_title="Prevalence",
        yaxis_range=[-0.02, 1.02],
        legend_title_text="Status"
    )

    plotly_show_and_save(fig, show=show, output_path=output_path, save_as=save_as)
    return fig
