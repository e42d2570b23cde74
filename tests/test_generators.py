"""
Tests for the generators module.
"""
import numpy as np
import pytest

from eposyn.exceptions import GenerationError, InsufficientSamplesError
from eposyn.generators import (
    ADASYNGenerator,
    EPSOGenerator,
    ExecutionMode,
    FeatureMajorMatrix,
    run_chunked,
    split_count,
)
from eposyn.generators.adasyn import minority_neighbors, seed_weights
from eposyn.spectrum import estimate_spectrum

EXECUTION_MODES = [
    ExecutionMode(parallel=False, progress=False),
    ExecutionMode(parallel=False, progress=True),
    ExecutionMode(parallel=True, progress=False, n_jobs=2),
    ExecutionMode(parallel=True, progress=True, n_jobs=2),
]


# Local functions pickle by value for joblib workers
@pytest.fixture
def random_block():
    def block(size, rng):
        return rng.normal(size=(size, 3))
    return block


@pytest.fixture
def constant_block():
    def block(size, rng):
        return np.full((size, 2), float(size))
    return block


class TestExecution:
    """Test class for execution modes and the chunked runner."""

    @pytest.mark.parametrize("count, n_chunks", [(10, 3), (3, 5), (0, 4), (7, 1)])
    def test_split_count(self, count, n_chunks):
        """Test that chunk sizes add up and differ by at most one."""
        sizes = split_count(count, n_chunks)
        assert sum(sizes) == count
        assert len(sizes) == n_chunks
        assert max(sizes) - min(sizes) <= 1

    def test_resolve_chunks(self):
        """Test the chunk count chosen for each mode."""
        assert ExecutionMode().resolve_chunks(100) == 1
        assert ExecutionMode(progress=True).resolve_chunks(100) == 10
        assert ExecutionMode(progress=True).resolve_chunks(4) == 4
        assert ExecutionMode(parallel=True, n_jobs=3).resolve_chunks(100) == 3
        assert ExecutionMode(n_chunks=6).resolve_chunks(100) == 6
        assert ExecutionMode().resolve_chunks(0) == 0

    def test_feature_major_matrix(self):
        """Test the layout conversions of FeatureMajorMatrix."""
        rows = np.arange(12.0).reshape(4, 3)
        matrix = FeatureMajorMatrix.from_rows(rows)

        assert matrix.data.shape == (3, 4)
        assert matrix.n_features == 3
        assert matrix.n_samples == 4
        np.testing.assert_array_equal(matrix.to_rows(), rows)

    @pytest.mark.parametrize("mode", EXECUTION_MODES)
    def test_run_chunked_count(self, mode, random_block):
        """Test that every mode returns exactly the requested rows."""
        result = run_chunked(random_block, 23, 3, mode=mode, random_state=0)
        assert result.shape == (23, 3)

    def test_run_chunked_keeps_chunk_order(self, constant_block):
        """Test that blocks are stacked in chunk order."""
        result = run_chunked(
            constant_block, 10, 2,
            mode=ExecutionMode(parallel=True, n_jobs=2, n_chunks=3),
        )
        np.testing.assert_array_equal(result[:, 0], [4] * 4 + [3] * 3 + [3] * 3)

    def test_run_chunked_zero(self, random_block):
        """Test that a zero count gives an empty block."""
        assert run_chunked(random_block, 0, 3).shape == (0, 3)

    def test_run_chunked_reproducible(self, random_block):
        """Test that the same seed and chunking give the same samples."""
        mode = ExecutionMode(n_chunks=4)
        first = run_chunked(random_block, 12, 3, mode=mode, random_state=11)
        second = run_chunked(random_block, 12, 3, mode=mode, random_state=11)
        np.testing.assert_array_equal(first, second)


class TestEPSOGenerator:
    """Test class for EPSOGenerator."""

    @pytest.fixture
    def spectrum(self, separated_data):
        P, N = separated_data
        return estimate_spectrum(P, N)

    def _generate(self, spectrum, P, N, count, push_ratio=1.0, mode=None, random_state=0):
        return EPSOGenerator(random_state=random_state).generate(
            spectrum.mean, spectrum.eigenvectors, spectrum.regularized,
            P, N, push_ratio, spectrum.cutoff, count, mode=mode,
        )

    @pytest.mark.parametrize("mode", EXECUTION_MODES)
    def test_count_and_shape(self, spectrum, separated_data, mode):
        """Test the exact count in every execution mode."""
        P, N = separated_data
        samples = self._generate(spectrum, P, N, 17, mode=mode)
        assert samples.shape == (17, 4)
        assert np.all(np.isfinite(samples))

    def test_samples_closer_to_minority(self, spectrum, separated_data):
        """Test that every sample's nearest neighbour is a minority sample."""
        P, N = separated_data
        samples = self._generate(spectrum, P, N, 50)

        to_p = np.linalg.norm(samples[:, None, :] - P[None, :, :], axis=2).min(axis=1)
        to_n = np.linalg.norm(samples[:, None, :] - N[None, :, :], axis=2).min(axis=1)
        assert np.all(to_p < to_n)

    def test_push_ratio_moves_samples_outward(self, spectrum, separated_data):
        """Test that a larger push ratio keeps samples further from the mean."""
        P, N = separated_data
        plain = self._generate(spectrum, P, N, 200, push_ratio=1.0)
        pushed = self._generate(spectrum, P, N, 200, push_ratio=5.0)

        def spread(samples):
            return np.linalg.norm(samples - spectrum.mean, axis=1).mean()

        assert pushed.shape == (200, 4)
        assert spread(pushed) > spread(plain)

    def test_rank_deficient_samples_stay_in_subspace(self, rank_deficient_data):
        """Test that a zero regularized eigenvalue gives no spread on its axis."""
        P, N = rank_deficient_data
        spectrum = estimate_spectrum(P, N)
        samples = self._generate(spectrum, P, N, 20)

        residual = samples[:, 2] - samples[:, 0] - samples[:, 1]
        np.testing.assert_allclose(residual, 0.0, atol=1e-6)

    def test_reproducible(self, spectrum, separated_data):
        """Test that a fixed seed reproduces the samples."""
        P, N = separated_data
        np.testing.assert_array_equal(
            self._generate(spectrum, P, N, 10, random_state=5),
            self._generate(spectrum, P, N, 10, random_state=5),
        )

    def test_empty_majority(self, spectrum, separated_data):
        """Test that all candidates are kept without majority samples."""
        P, _ = separated_data
        samples = self._generate(spectrum, P, np.empty((0, 4)), 8)
        assert samples.shape == (8, 4)

    def test_invalid_arguments(self, spectrum, separated_data):
        """Test argument validation."""
        P, N = separated_data
        with pytest.raises(ValueError):
            self._generate(spectrum, P, N, 5, push_ratio=0.5)
        with pytest.raises(ValueError):
            self._generate(spectrum, P, N, -1)
        with pytest.raises(ValueError):
            EPSOGenerator(max_attempts_factor=0)

    def test_generation_error_when_no_candidate_is_accepted(self, spectrum, separated_data):
        """Test that a majority class covering the minority class stalls generation."""
        P, _ = separated_data
        generator = EPSOGenerator(max_attempts_factor=2, random_state=0)

        with pytest.raises(GenerationError):
            generator.generate(
                spectrum.mean, spectrum.eigenvectors, spectrum.regularized,
                P, P.copy(), 1.0, spectrum.cutoff, 5,
            )

    @pytest.mark.parametrize("seed", range(5))
    def test_overlapping_classes_at_high_imbalance(self, seed):
        """Test the default generator when about one draw in 500 is accepted."""
        rng = np.random.default_rng(seed)
        P = rng.normal(size=(10, 3))
        N = rng.normal(size=(5000, 3))
        spectrum = estimate_spectrum(P, N)

        samples = self._generate(spectrum, P, N, 16, random_state=seed)

        to_p = np.linalg.norm(samples[:, None, :] - P[None, :, :], axis=2).min(axis=1)
        to_n = np.linalg.norm(samples[:, None, :] - N[None, :, :], axis=2).min(axis=1)
        assert samples.shape == (16, 3)
        assert np.all(to_p < to_n)


class TestADASYNGenerator:
    """Test class for ADASYNGenerator."""

    def _generate(self, P, N, count, k=5, m=15, mode=None, random_state=0):
        return ADASYNGenerator(random_state=random_state).generate(
            FeatureMajorMatrix.from_rows(P),
            FeatureMajorMatrix.from_rows(N),
            count, k, m, mode=mode,
        )

    @pytest.mark.parametrize("mode", EXECUTION_MODES)
    def test_count_and_layout(self, separated_data, mode):
        """Test that the output is feature-major with count columns."""
        P, N = separated_data
        result = self._generate(P, N, 13, mode=mode)

        assert isinstance(result, FeatureMajorMatrix)
        assert result.data.shape == (4, 13)

    def test_samples_within_minority_hull_box(self, separated_data):
        """Test that interpolated samples stay inside the minority bounding box."""
        P, N = separated_data
        samples = self._generate(P, N, 100).to_rows()

        assert np.all(samples >= P.min(axis=0) - 1e-12)
        assert np.all(samples <= P.max(axis=0) + 1e-12)

    def test_seed_weights_favour_border_seeds(self):
        """Test that a seed among majority samples gets the largest weight."""
        P = np.array([[0.0, 0.0], [0.1, 0.0], [0.0, 0.1], [5.0, 5.0]])
        N = np.array([[5.1, 5.0], [5.0, 5.1], [4.9, 5.0], [5.0, 4.9]])

        weights = seed_weights(P, N, m=3)

        assert weights.sum() == pytest.approx(1.0)
        assert np.argmax(weights) == 3

    def test_seed_weights_with_duplicate_majority_sample(self):
        """Test that a majority duplicate of a seed counts as its neighbour."""
        P = np.array([[0.0, 0.0], [5.0, 5.0], [5.0, 6.0]])
        N = np.array([[0.0, 0.0], [50.0, 50.0]])

        weights = seed_weights(P, N, m=1)

        np.testing.assert_allclose(weights, [1.0, 0.0, 0.0])

    def test_minority_neighbors_with_duplicates(self):
        """Test that no sample is its own neighbour when rows repeat."""
        P = np.array([[0.0, 0.0], [0.0, 0.0], [3.0, 3.0], [9.0, 9.0]])

        neighbors = minority_neighbors(P, 1)

        assert neighbors.shape == (4, 1)
        np.testing.assert_array_equal(neighbors[:2, 0], [1, 0])
        assert np.all(neighbors[:, 0] != np.arange(4))

    def test_seed_weights_uniform_without_majority_neighbours(self, separated_data):
        """Test the uniform fallback when no seed borders the majority class."""
        P, N = separated_data
        weights = seed_weights(P, N + 1000.0, m=3)
        np.testing.assert_allclose(weights, np.full(len(P), 1 / len(P)))

    def test_k_and_m_are_clipped(self):
        """Test that neighbour counts larger than the data still work."""
        rng = np.random.default_rng(1)
        P = rng.normal(size=(3, 2))
        N = rng.normal(loc=3.0, size=(4, 2))

        assert minority_neighbors(P, 5).shape == (3, 2)
        assert self._generate(P, N, 6, k=5, m=15).n_samples == 6

    def test_invalid_arguments(self, separated_data):
        """Test argument validation."""
        P, N = separated_data
        with pytest.raises(ValueError):
            self._generate(P, N, 5, k=0)
        with pytest.raises(InsufficientSamplesError):
            self._generate(P[:1], N, 5)
