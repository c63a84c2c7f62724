"""
Amplicon Exploratory Analysis
----------------------------------------------------------------------------------------
Loads an OTU abundance table, sample metadata and a taxonomy lookup, reshapes them 
into a long observation table, removes organelle and low-prevalence OTUs, and 
ordinates samples by PCoA on log-transformed relative abundance.
"""
# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import argparse
import sys
import traceback
from pathlib import Path

# Third-Party Imports
import pandas as pd

# Local Imports
parent_dir = Path(__file__).resolve().parents[0]
sys.path.append(str(parent_dir))

from amplicon_eda import constants
from amplicon_eda.amplicon_data.analysis import AmpliconEDA
from amplicon_eda.config import get_config, get_section
from amplicon_eda.errors import WorkflowError
from amplicon_eda.logger import setup_logging

# ========================== INITIALIZATION & CONFIGURATION ========================== #

pd.set_option('display.max_colwidth', None)

# =================================== MAIN WORKFLOW ================================== #

class AmpliconWorkflow:
    def __init__(self, config_path: Path = constants.DEFAULT_CONFIG) -> None:
        self.config = get_config(config_path)
        project_dir = get_section(self.config, "project").get(
            "dir_path", constants.DEFAULT_PROJECT_DIR
        )
        self.project_dir = Path(project_dir)
        self.logs_dir = self.project_dir / "logs"
        self.figures_dir = self.project_dir / "figures"
        self.tables_dir = self.project_dir / "tables"
        self.logger = setup_logging(self.logs_dir)
        self.analysis = None

    def run(self) -> AmpliconEDA:
        """Execute the workflow based on configuration settings."""
        try:
            self.analysis = self._execute_analysis()
            self._write_tables()
        except Exception as e:
            self.logger.error(f"Workflow execution failed: {e}\n"
                              f"Traceback: {traceback.format_exc()}")
            raise WorkflowError("Workflow aborted due to errors") from e
        self.logger.info("Analysis completed")
        return self.analysis

    def _execute_analysis(self) -> AmpliconEDA:
        inputs = get_section(self.config, "inputs")
        filtering = get_section(self.config, "filtering")
        ordination = get_section(self.config, "ordination")
        figures = get_section(self.config, "figures")

        missing = [k for k in ("table", "metadata", "taxonomy") if not inputs.get(k)]
        if missing:
            raise WorkflowError(f"Config 'inputs' is missing: {missing}")

        return AmpliconEDA(
            table=inputs["table"],
            metadata=inputs["metadata"],
            taxonomy=inputs["taxonomy"],
            prevalence_threshold=filtering.get(
                "prevalence_threshold", constants.DEFAULT_PREVALENCE_THRESHOLD
            ),
            organelle_filters=filtering.get("organelles"),
            metric=ordination.get("metric", constants.DEFAULT_METRIC),
            n_dimensions=ordination.get("n_dimensions", constants.DEFAULT_N_PCOA),
            pcoa_method=ordination.get("method", constants.DEFAULT_PCOA_METHOD),
            random_state=ordination.get("random_state", constants.DEFAULT_RANDOM_STATE),
            color_col=figures.get("color_col"),
            figure_dir=self.figures_dir,
            save_as=figures.get("save_as", constants.DEFAULT_SAVE_AS),
            make_figures=figures.get("enabled", True),
        )

    def _write_tables(self) -> None:
        self.tables_dir.mkdir(parents=True, exist_ok=True)
        filtered_path = self.tables_dir / "filtered_observations.tsv"
        self.analysis.filtered.to_csv(filtered_path, sep="\t", index=False)
        self.logger.info(f"Wrote filtered observations to '{filtered_path}'")

        if self.analysis.coordinates is not None:
            coords_path = self.tables_dir / "pcoa_coordinates.tsv"
            self.analysis.coordinates.to_csv(coords_path, sep="\t", index_label="SampleID")
            self.logger.info(f"Wrote PCoA coordinates to '{coords_path}'")
            

def main(config_path: Path = constants.DEFAULT_CONFIG) -> AmpliconEDA:
    """Run the entire workflow."""    
    workflow = AmpliconWorkflow(config_path)
    return workflow.run()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run amplicon exploratory analysis.")
    parser.add_argument(
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG,
        help="Path to the configuration file.",
    )
    args = parser.parse_args()
    main(args.config)
