# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

# Third Party Imports
import colorcet as cc
import pandas as pd
import plotly.graph_objects as go
import plotly.io as pio

# Local Imports
from amplicon_eda import constants

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger('amplicon_eda')

# ================================= GLOBAL VARIABLES ================================= #

largecolorset = list(
  cc.glasbey + cc.glasbey_light + cc.glasbey_warm + cc.glasbey_cool + cc.glasbey_dark
)

# Define the plot template
pio.templates["amplicon_eda"] = go.layout.Template(
  layout={
    'height': constants.DEFAULT_HEIGHT,
    'width': constants.DEFAULT_WIDTH,
    'title': {
      'font': {
        'family': 'HelveticaNeue-CondensedBold, Helvetica, Sans-serif',
        'size': 28,
        'color': '#000' # Black
      }
    },
    'title_x': 0.5,
    'font': {
      'family': 'Helvetica Neue, Helvetica, Sans-serif',
      'size': 18,
      'color' : '#000'
    },
    'paper_bgcolor': 'rgba(0, 0, 0, 0)', # Transparent
    'plot_bgcolor': '#fff', # White
    'colorway': largecolorset,
    'xaxis': {
      'showgrid': False,
      'zeroline': False,
      'showline': True,
      'linewidth': 2,
      'linecolor': 'black',
      'automargin': True,
      'mirror': True
    },
    'yaxis': {
      'showgrid': False,
      'zeroline': False,
      'showline': True,
      'linewidth': 2,
      'linecolor': 'black',
      'automargin': True,
      'mirror': True
    }
  }
)

# ==================================== FUNCTIONS ===================================== #

def create_colordict(values: pd.Series) -> Dict[str, str]:
    """Map each distinct value (in order of appearance) to a color."""
    categories = pd.unique(values.astype(str))
    return {
        category: largecolorset[i % len(largecolorset)] 
        for i, category in enumerate(categories)
    }


def plotly_show_and_save(
    fig: go.Figure,
    show: bool = False,
    output_path: Optional[Union[str, Path]] = None,
    save_as: List[str] = constants.DEFAULT_SAVE_AS,
    scale: int = 3,
    verbose: bool = False,
    **write_kwargs
) -> List[Path]:
    """
    Save a Plotly figure to static and/or HTML formats and optionally display it.
    
    Args:
        fig:            Plotly Figure object to be saved/displayed.
        show:           Whether to display the figure (default: False).
        output_path:    Base output path for files. Format-specific extensions are 
                        appended (.png, .html, .json). Directory will be created 
                        if needed.
        save_as:        List of formats to save ('png', 'svg', 'pdf', 'html', 'json').
        scale:          DPI‑like scale factor for raster outputs.
        verbose:        If True, logs success messages; errors are always logged.
        **write_kwargs: Extra args forwarded to `fig.write_image` / `fig.write_html`.
    
    Returns:
        Paths of the files written.

    Notes:
        - Saving static images requires kaleido: install with `pip install -U kaleido`.
    """
    written: List[Path] = []
    if output_path:
        output_path = Path(output_path).expanduser().resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)

        log_ok = (lambda msg: logger.info(msg)) if verbose else (lambda msg: logger.debug(msg))

        static_exts = {"png", "jpg", "jpeg", "pdf", "svg", "eps"}
        stem = str(output_path)
        for ext in list(static_exts) + ['html', 'json']:
            stem = stem.removesuffix(f'.{ext}')
        
        for ext in [e for e in save_as if e in static_exts]:
            target = Path(f"{stem}.{ext}")
            try:
                fig.write_image(str(target), format=ext, scale=scale, **write_kwargs)
                written.append(target)
                log_ok(f"Saved figure to '{target}'.")
            except (ValueError, RuntimeError, ImportError) as e:
                logger.error(
                    f"Failed to save figure: {str(e)}. "
                    "Make sure the export engine is installed "
                    "(e.g. `pip install -U kaleido`)."
                )
        
        if 'html' in save_as:
            target = Path(f"{stem}.html")
            fig.write_html(str(target), include_plotlyjs="cdn", **write_kwargs)
            written.append(target)
            log_ok(f"Saved figure to '{target}'.")

        if 'json' in save_as:
            target = Path(f"{stem}.json")
            fig.write_json(str(target))
            written.append(target)
            log_ok(f"Saved figure to '{target}'.")

    if show:
        fig.show()
    return written
