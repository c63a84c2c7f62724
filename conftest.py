"""Shared test data: small OTU tables, metadata and taxonomy lookups."""

import pandas as pd
import pytest
from biom import Table


def make_table() -> pd.DataFrame:
    """3 OTUs × 2 samples."""
    return pd.DataFrame(
        [[10, 0], [0, 5], [5, 5]],
        index=['OTU1', 'OTU2', 'OTU3'],
        columns=['Sample1', 'Sample2'],
    )


def make_metadata(sample_ids=('Sample1', 'Sample2')) -> pd.DataFrame:
    return pd.DataFrame({
        'SampleID': list(sample_ids),
        'Compartment': ['root' if i % 2 == 0 else 'leaf' for i in range(len(sample_ids))],
    })


def make_taxonomy(otu_ids=('OTU1', 'OTU2', 'OTU3'), **overrides) -> pd.DataFrame:
    """Bacterial taxonomy for every OTU; `overrides` maps OTU ID to {rank: value}."""
    rows = []
    for otu_id in otu_ids:
        row = {
            'variable': otu_id,
            'Kingdom': 'Bacteria',
            'Phylum': 'Proteobacteria',
            'Class': 'Alphaproteobacteria',
            'Order': 'Rhizobiales',
            'Family': 'Rhizobiaceae',
            'Genus': 'Rhizobium',
            'Species': None,
        }
        row.update(overrides.get(otu_id, {}))
        rows.append(row)
    return pd.DataFrame(rows)


def make_community(n_samples: int = 6) -> pd.DataFrame:
    """Distinct, non-degenerate profiles over 5 OTUs, including one organelle OTU."""
    counts = {
        f'S{i}': [10 + 7 * i, (3 * i) % 11, 40 - 5 * i, 1 if i == 1 else 0, 2 + i * i]
        for i in range(1, n_samples + 1)
    }
    return pd.DataFrame(counts, index=['OTU1', 'OTU2', 'OTU3', 'OTU4', 'OTU5'])


def make_biom(table: pd.DataFrame) -> Table:
    """BIOM Table with the same OTUs × samples layout as `table`."""
    return Table(
        table.values,
        observation_ids=[str(i) for i in table.index],
        sample_ids=[str(i) for i in table.columns],
    )


def write_inputs(directory, table, metadata, taxonomy):
    """Write the three inputs as TSV / TSV / pickle; return their paths."""
    table_path = directory / 'otu_table.tsv'
    metadata_path = directory / 'metadata.tsv'
    taxonomy_path = directory / 'taxonomy.pkl'
    table.to_csv(table_path, sep='\t', index_label='OTU')
    metadata.to_csv(metadata_path, sep='\t', index=False)
    taxonomy.to_pickle(taxonomy_path)
    return table_path, metadata_path, taxonomy_path


@pytest.fixture
def table():
    return make_table()


@pytest.fixture
def metadata():
    return make_metadata()


@pytest.fixture
def taxonomy():
    return make_taxonomy()


@pytest.fixture
def input_paths(tmp_path, table, metadata, taxonomy):
    return write_inputs(tmp_path, table, metadata, taxonomy)
