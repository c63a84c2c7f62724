"""Log transform, pivot back to a matrix, distance matrix and PCoA."""

import numpy as np
import pandas as pd
import pytest

from amplicon_eda.amplicon_data.filtering import filter_tidy
from amplicon_eda.amplicon_data.reshape import tidy_table
from amplicon_eda.errors import DegenerateDistanceError
from amplicon_eda.stats.beta_diversity import (
    distance_matrix, log_transform, ordinate, pcoa, tidy_to_matrix, 
    validate_distance_matrix, validate_min_samples
)

from conftest import make_community, make_metadata, make_taxonomy

SAMPLES = [f'S{i}' for i in range(1, 7)]


@pytest.fixture
def filtered():
    tidy = tidy_table(
        make_community(), 
        make_metadata(SAMPLES), 
        make_taxonomy(('OTU1', 'OTU2', 'OTU3', 'OTU4', 'OTU5'))
    )
    return filter_tidy(tidy)[1]


@pytest.fixture
def matrix(filtered):
    return tidy_to_matrix(log_transform(filtered))


def test_log_transform():
    tidy = pd.DataFrame({'RA': [0.0, 1.0, 3.0, 1023.0]})
    result = log_transform(tidy)
    np.testing.assert_allclose(result['logRA'], [0.0, 1.0, 2.0, 10.0])
    assert 'logRA' not in tidy.columns


def test_tidy_to_matrix_fills_missing_with_zero():
    tidy = pd.DataFrame({
        'SampleID': ['A', 'A', 'B'],
        'variable': ['OTU1', 'OTU2', 'OTU2'],
        'logRA': [1.5, 2.0, 3.0],
    })
    matrix = tidy_to_matrix(tidy)
    assert list(matrix.index) == ['A', 'B']
    assert list(matrix.columns) == ['OTU1', 'OTU2']
    assert matrix.loc['B', 'OTU1'] == 0
    assert matrix.loc['B', 'OTU2'] == 3.0


def test_matrix_shape(matrix):
    assert matrix.shape == (6, 5)
    assert list(matrix.index) == SAMPLES


def test_distance_matrix(matrix):
    dm = distance_matrix(matrix, metric='euclidean')
    assert dm.shape == (6, 6)
    assert list(dm.ids) == SAMPLES
    np.testing.assert_allclose(np.diag(dm.data), 0)


def test_distance_matrix_rejects_nan():
    df = pd.DataFrame([[1.0, np.nan], [2.0, 3.0]], index=['A', 'B'])
    with pytest.raises(ValueError, match='NaN'):
        distance_matrix(df)


def test_degenerate_distance_matrix():
    with pytest.raises(DegenerateDistanceError, match='degenerate'):
        validate_distance_matrix(np.zeros((3, 3)), ids=['a', 'b', 'c'])


def test_nan_distances_are_imputed_symmetrically():
    data = np.array([
        [0.0, 1.0, 1.0],
        [1.0, 0.0, np.nan],
        [1.0, np.nan, 0.0],
    ])
    dm = validate_distance_matrix(data, ids=['a', 'b', 'c'])
    assert dm['b', 'c'] == dm['c', 'b'] == pytest.approx(4 / 7)


def test_all_zero_samples_get_a_distance():
    df = pd.DataFrame(
        [[1.0, 2.0], [2.0, 1.0], [0.0, 0.0], [0.0, 0.0]], 
        index=['A', 'B', 'C', 'D']
    )
    dm = distance_matrix(df)
    assert not np.isnan(dm.data).any()
    assert dm['A', 'C'] == pytest.approx(1.0)


def test_validate_min_samples():
    with pytest.raises(ValueError, match='At least 2'):
        validate_min_samples(pd.DataFrame({'OTU1': [1.0]}, index=['A']))


def test_pcoa_coordinates(matrix):
    result = pcoa(matrix, metric='euclidean')
    coords = result.samples
    assert list(coords.index) == SAMPLES
    assert list(coords.columns) == [f'PCo{i}' for i in range(1, 6)]
    assert list(result.proportion_explained.index) == list(coords.columns)
    assert result.proportion_explained.iloc[0] >= result.proportion_explained.iloc[1]
    assert list(result.feature_loadings.index) == list(matrix.columns)


def test_pcoa_n_dimensions(matrix):
    result = pcoa(matrix, metric='euclidean', n_dimensions=2)
    assert list(result.samples.columns) == ['PCo1', 'PCo2']


def test_pcoa_is_deterministic(matrix):
    first = pcoa(matrix).samples
    second = pcoa(matrix.copy()).samples
    pd.testing.assert_frame_equal(first, second)


def test_fsvd_pcoa_is_seeded(matrix):
    first = pcoa(matrix, n_dimensions=3, method='fsvd', random_state=1).samples
    second = pcoa(matrix, n_dimensions=3, method='fsvd', random_state=1).samples
    assert list(first.columns) == ['PCo1', 'PCo2', 'PCo3']
    pd.testing.assert_frame_equal(first, second)


def test_pcoa_requires_two_samples(matrix):
    with pytest.raises(ValueError):
        pcoa(matrix.iloc[:1])


def test_ordinate_matches_manual_steps(filtered, matrix):
    expected = pcoa(matrix, metric='euclidean').samples
    result = ordinate(log_transform(filtered), metric='euclidean').samples
    pd.testing.assert_frame_equal(result, expected)
