"""Organelle removal, depth, prevalence annotation and prevalence filtering."""

import numpy as np
import pandas as pd
import pytest

from amplicon_eda.amplicon_data.filtering import (
    add_depth, add_prevalence, check_not_empty, filter_prevalence, filter_tidy, 
    prevalence_summary, remove_organelles
)
from amplicon_eda.amplicon_data.reshape import tidy_table
from amplicon_eda.errors import AlignmentError, EmptyResultError

from conftest import make_community, make_metadata, make_taxonomy


@pytest.fixture
def tidy(table, metadata, taxonomy):
    return tidy_table(table, metadata, taxonomy)


def wide_tidy(n_samples, detected_in, n_otus=2):
    """OTU1 present everywhere; OTU2 present in the first `detected_in` samples."""
    samples = [f'S{i}' for i in range(n_samples)]
    table = pd.DataFrame(
        [[5] * n_samples, [1] * detected_in + [0] * (n_samples - detected_in)],
        index=['OTU1', 'OTU2'],
        columns=samples,
    )
    return tidy_table(table, make_metadata(samples), make_taxonomy(('OTU1', 'OTU2')))


def test_example_depth_prevalence_and_status(tidy):
    annotated, filtered = filter_tidy(tidy)

    depth = annotated.groupby('SampleID')['Depth'].first()
    assert depth['Sample1'] == 15
    assert depth['Sample2'] == 10

    prev = annotated.groupby('variable')['prev'].first()
    assert prev['OTU1'] == pytest.approx(0.5)
    assert prev['OTU2'] == pytest.approx(0.5)
    assert prev['OTU3'] == pytest.approx(1.0)

    assert (annotated['Status'] == 'Keep').all()
    assert len(filtered) == 6


def test_depth_is_broadcast_within_sample(tidy):
    with_depth = add_depth(tidy)
    assert len(with_depth) == len(tidy)
    for _, group in with_depth.groupby('SampleID'):
        assert group['Depth'].nunique() == 1
        assert group['Depth'].iloc[0] == group['value'].sum()
    assert 'Depth' not in tidy.columns


def test_depth_does_not_depend_on_row_order(tidy):
    shuffled = tidy.sample(frac=1, random_state=3).reset_index(drop=True)
    depth = add_depth(tidy).groupby('SampleID')['Depth'].first()
    shuffled_depth = add_depth(shuffled).groupby('SampleID')['Depth'].first()
    pd.testing.assert_series_equal(depth, shuffled_depth)


def test_relative_abundance_sums_to_per_mille(tidy):
    annotated = add_prevalence(add_depth(tidy))
    totals = annotated.groupby('SampleID')['RA'].sum()
    np.testing.assert_allclose(totals.values, 1000.0)


def test_prevalence_is_a_count_fraction():
    tidy = tidy_table(make_community(), make_metadata([f'S{i}' for i in range(1, 7)]), 
                      make_taxonomy(('OTU1', 'OTU2', 'OTU3', 'OTU4', 'OTU5')))
    annotated = add_prevalence(add_depth(tidy))
    for _, group in annotated.groupby('variable'):
        prev = group['prev'].iloc[0]
        assert 0 <= prev <= 1
        assert prev * len(group) == pytest.approx(round(prev * len(group)))
        assert round(prev * len(group)) == (group['value'] > 0).sum()


def test_organelles_removed_case_sensitively(table, metadata):
    taxonomy = make_taxonomy(
        OTU1={'Family': 'mitochondria'},
        OTU2={'Class': 'Chloroplast'},
        OTU3={'Family': 'Mitochondria'},
    )
    cleaned = remove_organelles(tidy_table(table, metadata, taxonomy))
    assert set(cleaned['variable']) == {'OTU3'}


def test_organelle_filter_ignores_missing_ranks(tidy):
    taxonomy_nan = tidy.assign(Family=np.nan)
    assert len(remove_organelles(taxonomy_nan)) == len(tidy)


def test_organelle_filter_requires_rank_columns(tidy):
    with pytest.raises(AlignmentError, match="'Class'"):
        remove_organelles(tidy.drop(columns='Class'))


def test_depth_computed_after_organelle_removal(table, metadata):
    taxonomy = make_taxonomy(OTU1={'Family': 'mitochondria'})
    annotated, _ = filter_tidy(tidy_table(table, metadata, taxonomy))
    depth = annotated.groupby('SampleID')['Depth'].first()
    assert depth['Sample1'] == 5
    assert depth['Sample2'] == 10


def test_prevalence_boundary_is_kept():
    # 1 of 20 samples: prevalence exactly 0.05
    annotated, filtered = filter_tidy(wide_tidy(20, detected_in=1))
    summary = prevalence_summary(annotated).set_index('variable')
    assert summary.loc['OTU2', 'prev'] == 0.05
    assert summary.loc['OTU2', 'Status'] == 'Keep'
    assert set(filtered['variable']) == {'OTU1', 'OTU2'}


def test_low_prevalence_otu_discarded_and_depth_not_refreshed():
    annotated, filtered = filter_tidy(wide_tidy(25, detected_in=1))
    assert set(filtered['variable']) == {'OTU1'}
    assert list(filtered.columns) == list(annotated.columns)
    # S0 depth still counts the discarded OTU2 read
    assert filtered.loc[filtered['SampleID'] == 'S0', 'Depth'].iloc[0] == 6


def test_filter_is_stable_when_reapplied():
    _, filtered = filter_tidy(wide_tidy(25, detected_in=1))
    assert filter_prevalence(filtered).equals(filtered)

    # Recomputing prevalence on the filtered universe changes nothing either
    reannotated = add_prevalence(filtered)
    pd.testing.assert_series_equal(reannotated['prev'], filtered['prev'])
    assert filter_prevalence(reannotated).equals(reannotated)


def test_empty_result_is_silent_by_default(tidy):
    annotated, filtered = filter_tidy(tidy, threshold=1.01)
    assert filtered.empty
    assert list(filtered.columns) == list(annotated.columns)


def test_empty_result_can_raise(tidy):
    with pytest.raises(EmptyResultError):
        filter_tidy(tidy, threshold=1.01, raise_on_empty=True)
    with pytest.raises(EmptyResultError, match='ordination'):
        check_not_empty(tidy.iloc[0:0], 'ordination')


def test_prevalence_summary(tidy):
    annotated, _ = filter_tidy(tidy)
    summary = prevalence_summary(annotated).set_index('variable')
    assert list(summary.index) == ['OTU1', 'OTU2', 'OTU3']
    # OTU1: 10/15 and 0/10 per mille
    assert summary.loc['OTU1', 'mean_RA'] == pytest.approx((10 / 15 * 1000) / 2)
    assert summary.loc['OTU3', 'prev'] == 1.0


def test_zero_depth_sample_gives_nan_relative_abundance():
    table = pd.DataFrame({'S1': [3, 1], 'S2': [0, 0]}, index=['OTU1', 'OTU2'])
    tidy = tidy_table(table, make_metadata(['S1', 'S2']), make_taxonomy(('OTU1', 'OTU2')))
    annotated = add_prevalence(add_depth(tidy))
    assert annotated.loc[annotated['SampleID'] == 'S2', 'RA'].isna().all()
