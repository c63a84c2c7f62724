"""Reshaping the wide count table into the long observation table."""

import pandas as pd
import pytest

from amplicon_eda.amplicon_data.reshape import (
    align_metadata, join_taxonomy, melt_table, tidy_table
)
from amplicon_eda.errors import AlignmentError

from conftest import make_metadata, make_taxonomy


def test_example_produces_one_row_per_sample_and_otu(table, metadata, taxonomy):
    tidy = tidy_table(table, metadata, taxonomy)
    assert len(tidy) == 6
    assert set(tidy.columns) >= {'SampleID', 'variable', 'value', 'Compartment', 'Family'}
    counts = tidy.set_index(['variable', 'SampleID'])['value']
    assert counts[('OTU1', 'Sample1')] == 10
    assert counts[('OTU2', 'Sample1')] == 0
    assert counts[('OTU3', 'Sample2')] == 5


def test_otus_without_taxonomy_are_dropped(table, metadata):
    taxonomy = make_taxonomy(otu_ids=('OTU1', 'OTU3', 'OTU99'))
    tidy = tidy_table(table, metadata, taxonomy)
    # columns × OTUs shared with the taxonomy table
    assert len(tidy) == 2 * 2
    assert set(tidy['variable']) == {'OTU1', 'OTU3'}


def test_align_metadata_reorders_to_table_columns(table):
    metadata = pd.DataFrame({
        'SampleID': ['Sample2', 'Extra', 'Sample1'],
        'Compartment': ['leaf', 'soil', 'root'],
    })
    aligned = align_metadata(table, metadata)
    assert list(aligned['SampleID']) == ['Sample1', 'Sample2']
    assert list(aligned['Compartment']) == ['root', 'leaf']
    # input untouched
    assert list(metadata['SampleID']) == ['Sample2', 'Extra', 'Sample1']


def test_align_metadata_missing_sample(table):
    metadata = make_metadata(sample_ids=('Sample1',))
    with pytest.raises(AlignmentError, match='Sample2'):
        align_metadata(table, metadata)


def test_align_metadata_numeric_sample_ids():
    table = pd.DataFrame({'1': [1], '2': [2]}, index=['OTU1'])
    metadata = pd.DataFrame({'SampleID': [2, 1], 'site': ['b', 'a']})
    aligned = align_metadata(table, metadata)
    assert list(aligned['site']) == ['a', 'b']


def test_melt_table_is_sample_major(table, metadata):
    long_df = melt_table(table, align_metadata(table, metadata))
    assert list(long_df['SampleID']) == ['Sample1'] * 3 + ['Sample2'] * 3
    assert list(long_df['variable']) == ['OTU1', 'OTU2', 'OTU3'] * 2
    assert list(long_df['value']) == [10, 0, 5, 0, 5, 5]


def test_join_taxonomy_ignores_duplicate_taxonomy_rows(table, metadata, taxonomy):
    long_df = melt_table(table, align_metadata(table, metadata))
    doubled = pd.concat([taxonomy, taxonomy], ignore_index=True)
    assert len(join_taxonomy(long_df, doubled)) == 6


def test_metadata_rank_column_clashes_with_taxonomy(table, taxonomy):
    metadata = make_metadata().assign(Class=['Magnoliopsida', 'Liliopsida'])
    with pytest.raises(AlignmentError, match='Class'):
        tidy_table(table, metadata, taxonomy)


@pytest.mark.parametrize('column', ['value', 'variable'])
def test_metadata_reserved_column_clashes(table, taxonomy, column):
    metadata = make_metadata().assign(**{column: ['a', 'b']})
    with pytest.raises(AlignmentError, match=column):
        tidy_table(table, metadata, taxonomy)
