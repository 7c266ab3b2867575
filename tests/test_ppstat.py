"""
test_ppstat.py - Test suite for the ppstat package

How to run:
    pytest tests/ -v                          # run all tests
    pytest tests/ -v -k "Envelope"            # run only envelope tests
    pytest tests/test_ppstat.py::TestRipley -v

Reading test results:
    PASSED  → your code works as expected
    FAILED  → something is broken (look at the AssertionError message)
    ERROR   → test itself crashed before even reaching the assert
"""

import threading

import numpy as np
import pandas as pd
import pytest

from ppstat import (
    DegenerateWindow,
    EstimatorConfig,
    InsufficientSimulations,
    InvalidGeometry,
    PatternConfig,
    PointPattern,
    SimulationAborted,
    UndefinedEstimatorValue,
    Window,
    simulate_csr,
)
from ppstat.spatial import (
    Correction,
    close_pairs,
    envelope,
    ffunction,
    gfunction,
    isotropic_fraction,
    kfunction,
    lfunction,
    mark_correlation,
    nearest_neighbor_distances,
    nearest_point_distance,
    pair_correlation,
    pairwise_distances,
    radius_grid,
    resolve,
    translation_overlap,
)

SMALL_F = EstimatorConfig(f_grid_size=32)


# ===========================================================================
# SECTION 1 — Point Pattern Store
#
# We check:
#   (a) window validation and derived geometry
#   (b) pattern validation (outside points, boundary tolerance)
#   (c) intensity
#   (d) CSR simulation
#   (e) DataFrame round trip with East/North columns
# ===========================================================================


class TestWindow:
    """Rectangular observation window."""

    def test_area_and_sides(self, window):
        """A 10 x 10 window has area 100 and shorter side 10."""
        assert window.area == 100.0
        assert window.shorter_side == 10.0

    def test_degenerate_window_rejected(self):
        """Zero width is a degenerate window."""
        with pytest.raises(DegenerateWindow):
            Window(0, 0, 0, 10)

    def test_negative_extent_rejected(self):
        """xmax < xmin is a degenerate window too."""
        with pytest.raises(DegenerateWindow):
            Window(5, 1, 0, 10)

    def test_degenerate_is_invalid_geometry(self):
        """DegenerateWindow is reported as an InvalidGeometry failure."""
        with pytest.raises(InvalidGeometry):
            PointPattern.create([[0, 0]], (0, 0, 0, 1))

    def test_from_bounds_plot_mapping(self):
        """Plot boundaries come as Xmin/Xmax/Ymin/Ymax."""
        w = Window.from_bounds({"Xmin": 0, "Xmax": 20, "Ymin": -5, "Ymax": 5})
        assert (w.xmin, w.xmax, w.ymin, w.ymax) == (0, 20, -5, 5)

    def test_boundary_distance(self, window):
        """Distance to the nearest edge for a centre and an edge location."""
        b = window.boundary_distance(np.array([[5.0, 5.0], [1.0, 7.0]]))
        np.testing.assert_allclose(b, [5.0, 1.0])

    def test_eroded_area(self, window):
        """Eroding a 10 x 10 window by 1 leaves an 8 x 8 square."""
        assert window.eroded_area(1.0) == 64.0
        assert window.eroded_area(6.0) == 0.0


class TestPointPattern:
    """Validation and derived attributes of PointPattern."""

    def test_point_outside_window(self, window):
        """A point clearly outside the window is rejected."""
        with pytest.raises(InvalidGeometry):
            PointPattern.create([[1, 1], [11, 5]], window)

    def test_boundary_points_allowed(self, window):
        """Points exactly on the boundary are part of the pattern."""
        pp = PointPattern.create([[0, 0], [10, 10], [10, 3]], window)
        assert len(pp) == 3

    def test_tolerance(self, window):
        """Points just past the boundary are accepted within the tolerance."""
        pp = PointPattern.create([[10.0005, 5]], window, tolerance=1e-3)
        assert pp.n_points == 1
        with pytest.raises(InvalidGeometry):
            PointPattern.create([[10.0005, 5]], window, tolerance=1e-6)

    def test_intensity(self, csr_pattern):
        """50 points in area 100 → intensity 0.5."""
        assert csr_pattern.intensity() == pytest.approx(0.5)

    def test_immutable_coordinates(self, csr_pattern):
        """Coordinates cannot be modified in place."""
        with pytest.raises(ValueError):
            csr_pattern.coords[0, 0] = 1.0

    def test_marks_length_checked(self, window):
        """One mark per point."""
        with pytest.raises(ValueError):
            PointPattern.create([[1, 1], [2, 2]], window, marks=[1.0])

    def test_with_marks_and_unmark(self, csr_pattern):
        """Marks can be attached and removed without touching coordinates."""
        marked = csr_pattern.with_marks(np.arange(50))
        assert marked.is_marked
        assert not marked.unmark().is_marked
        assert np.array_equal(marked.coords, csr_pattern.coords)

    def test_from_dataframe(self, window):
        """Coordinates are read from East/North columns by default."""
        df = pd.DataFrame({"East": [1.0, 2.0], "North": [3.0, 4.0], "mark": [0.5, 1.5]})
        pp = PointPattern.from_dataframe(df, window, with_marks=True)
        np.testing.assert_array_equal(pp.coords, [[1, 3], [2, 4]])
        np.testing.assert_array_equal(pp.marks, [0.5, 1.5])

    def test_from_dataframe_missing_column(self, window):
        """A missing coordinate column is an error, not a silent default."""
        df = pd.DataFrame({"x": [1.0], "y": [2.0]})
        with pytest.raises(ValueError):
            PointPattern.from_dataframe(df, window)

    def test_custom_columns(self, window):
        """Column names come from PatternConfig."""
        df = pd.DataFrame({"x": [1.0], "y": [2.0]})
        pp = PointPattern.from_dataframe(df, window, config=PatternConfig(x_col="x", y_col="y"))
        assert pp.n_points == 1


class TestSimulateCSR:
    """Binomial process simulation."""

    def test_count_and_window(self, window):
        """The requested number of points, all inside the window."""
        pp = simulate_csr(window, 200, seed=1)
        assert pp.n_points == 200
        assert window.contains(pp.coords).all()

    def test_reproducible(self, window):
        """Same seed, same points."""
        a = simulate_csr(window, 30, seed=5)
        b = simulate_csr(window, 30, seed=5)
        assert np.array_equal(a.coords, b.coords)

    def test_different_seeds_differ(self, window):
        a = simulate_csr(window, 30, seed=5)
        b = simulate_csr(window, 30, seed=6)
        assert not np.array_equal(a.coords, b.coords)


# ===========================================================================
# SECTION 2 — Distance & Pairwise Geometry Engine
# ===========================================================================


class TestDistances:
    """Pairwise, nearest-neighbour and close-pair distances."""

    def test_pairwise_matrix(self, csr_pattern):
        """Symmetric with zero diagonal."""
        D = pairwise_distances(csr_pattern)
        assert D.shape == (50, 50)
        np.testing.assert_array_equal(D, D.T)
        np.testing.assert_array_equal(np.diag(D), 0.0)

    def test_nearest_neighbor_matches_matrix(self, csr_pattern):
        """Row minimum of the distance matrix, excluding self."""
        D = pairwise_distances(csr_pattern)
        np.fill_diagonal(D, np.inf)
        np.testing.assert_allclose(nearest_neighbor_distances(csr_pattern), D.min(axis=1))

    def test_nearest_neighbor_needs_two_points(self, window):
        with pytest.raises(UndefinedEstimatorValue):
            nearest_neighbor_distances(PointPattern.create([[1, 1]], window))

    def test_nearest_point_distance(self, window):
        """Arbitrary query locations, single or many."""
        pp = PointPattern.create([[1, 1], [5, 5]], window)
        assert nearest_point_distance([1, 4], pp) == pytest.approx(3.0)
        np.testing.assert_allclose(nearest_point_distance([[1, 4], [5, 6]], pp), [3.0, 1.0])

    def test_close_pairs_both_orders(self, window):
        """Each pair appears as (i, j) and (j, i)."""
        pp = PointPattern.create([[1, 1], [1, 2], [8, 8]], window)
        pairs = close_pairs(pp, 1.5)
        assert list(zip(pairs.i, pairs.j)) == [(0, 1), (1, 0)]
        np.testing.assert_allclose(pairs.d, [1.0, 1.0])

    def test_tree_path_matches_dense(self, csr_pattern):
        """The k-d tree path returns exactly the dense result."""
        dense = close_pairs(csr_pattern, 3.0)
        tree = close_pairs(csr_pattern, 3.0, config=EstimatorConfig(tree_threshold=0))
        for name in ("i", "j", "d", "dx", "dy"):
            assert np.array_equal(getattr(dense, name), getattr(tree, name))

    def test_periodic_wraps(self, window):
        """Points near opposite edges are close on the torus."""
        pp = PointPattern.create([[0.1, 5], [9.9, 5]], window)
        assert len(close_pairs(pp, 1.0)) == 0
        pairs = close_pairs(pp, 1.0, periodic=True)
        np.testing.assert_allclose(pairs.d, [0.2, 0.2])

    def test_periodic_tree_matches_dense(self, csr_pattern):
        dense = close_pairs(csr_pattern, 2.0, periodic=True)
        tree = close_pairs(csr_pattern, 2.0, periodic=True, config=EstimatorConfig(tree_threshold=0))
        assert np.array_equal(dense.i, tree.i)
        assert np.array_equal(dense.d, tree.d)

    def test_duplicates_warn(self, window):
        """Coincident points are dropped from pair statistics with a warning."""
        pp = PointPattern.create([[2, 2], [2, 2], [3, 3]], window)
        with pytest.warns(UserWarning):
            pairs = close_pairs(pp, 5.0)
        assert np.all(pairs.d > 0)


# ===========================================================================
# SECTION 3 — Edge Corrections
# ===========================================================================


class TestCorrections:
    """Correction parsing, 'best' decision rule and weights."""

    def test_aliases(self):
        assert Correction.parse("isotropic") is Correction.ISOTROPIC
        assert Correction.parse("Ripley") is Correction.ISOTROPIC
        assert Correction.parse("translation") is Correction.TRANSLATION
        assert Correction.parse("border") is Correction.BORDER
        assert Correction.parse("cs") is Correction.HANISCH

    def test_unknown_correction(self):
        with pytest.raises(ValueError):
            Correction.parse("magic")

    def test_best_decision_rule(self):
        """'best' is translation for K-type estimators, Hanisch for G and F."""
        assert resolve("best", "K") is Correction.TRANSLATION
        assert resolve("best", "L") is Correction.TRANSLATION
        assert resolve("best", "g") is Correction.TRANSLATION
        assert resolve("best", "G") is Correction.HANISCH
        assert resolve("best", "F") is Correction.HANISCH

    def test_unsupported_combination(self):
        """Border correction does not apply to g; isotropic not to G."""
        with pytest.raises(ValueError):
            resolve("rs", "g")
        with pytest.raises(ValueError):
            resolve("iso", "G")

    def test_isotropic_interior_edge_corner(self, window):
        """Whole circle, half circle and quarter circle."""
        centres = np.array([[5.0, 5.0], [0.0, 5.0], [0.0, 0.0]])
        fractions = isotropic_fraction(centres, np.full(3, 0.5), window)
        np.testing.assert_allclose(fractions, [1.0, 0.5, 0.25])

    def test_isotropic_matches_brute_force(self, window):
        """Circle reaching past a corner: compare with dense sampling of the circumference."""
        centre, radius = np.array([1.0, 1.5]), 2.5
        theta = np.linspace(0, 2 * np.pi, 400_000, endpoint=False)
        ring = centre + radius * np.column_stack([np.cos(theta), np.sin(theta)])
        expected = window.contains(ring).mean()
        got = isotropic_fraction(centre[np.newaxis, :], np.array([radius]), window)[0]
        assert got == pytest.approx(expected, abs=1e-4)

    def test_translation_overlap(self, window):
        """Shifting a 10 x 10 window by (2, 3) leaves an 8 x 7 overlap."""
        assert translation_overlap(np.array([2.0]), np.array([-3.0]), window)[0] == 56.0


# ===========================================================================
# SECTION 4 — Ripley's K, L and pair correlation g
# ===========================================================================


class TestRipley:
    """Second-order summary functions."""

    @pytest.mark.parametrize("correction", ["none", "iso", "trans", "rs", "periodic"])
    def test_k_at_zero(self, csr_pattern, correction):
        """No pairs at zero distance: K(0) = 0 for every correction."""
        K = kfunction(csr_pattern, correction=correction)
        assert K.r[0] == 0.0
        assert K.values[0] == 0.0

    @pytest.mark.parametrize("correction", ["none", "iso", "trans", "rs"])
    def test_l_identity(self, csr_pattern, correction):
        """L(r) = sqrt(K(r)/pi) exactly."""
        K = kfunction(csr_pattern, correction=correction)
        L = lfunction(csr_pattern, correction=correction)
        assert np.array_equal(L.values, np.sqrt(K.values / np.pi))
        np.testing.assert_array_equal(L.theoretical, L.r)

    def test_default_grid(self, csr_pattern):
        """Default grid runs from 0 to a quarter of the shorter side in 50 steps."""
        K = kfunction(csr_pattern)
        assert len(K) == 51
        assert K.r[-1] == pytest.approx(2.5)

    def test_isotropic_never_below_uncorrected(self, csr_pattern):
        """Isotropic weights are >= 1, so K_iso >= K_none at every r."""
        K_none = kfunction(csr_pattern, correction="none")
        K_iso = kfunction(csr_pattern, correction="iso")
        assert np.all(K_iso.values >= K_none.values)

    @pytest.mark.parametrize("correction", ["iso", "trans", "periodic"])
    def test_csr_convergence(self, dense_csr_pattern, correction):
        """For a large CSR pattern, K(r) is close to pi*r^2."""
        r = np.linspace(0.05, 0.1, 6)
        K = kfunction(dense_csr_pattern, r=r, correction=correction)
        np.testing.assert_allclose(K.values, np.pi * r**2, rtol=0.1)

    def test_uncorrected_edge_bias(self, dense_csr_pattern):
        """Without correction, K falls well below pi*r^2 near the half-width."""
        r = np.array([0.25])
        K = kfunction(dense_csr_pattern, r=r, correction="none")
        assert K.values[0] < 0.9 * np.pi * 0.25**2

    def test_k_needs_two_points(self, window):
        with pytest.raises(UndefinedEstimatorValue):
            kfunction(PointPattern.create([[1, 1]], window))

    def test_border_undefined_beyond_half_width(self, csr_pattern):
        """No point is 6 units from the boundary of a 10 x 10 window."""
        with pytest.raises(UndefinedEstimatorValue):
            kfunction(csr_pattern, r=[0, 1, 6], correction="rs")

    def test_curve_to_dataframe(self, csr_pattern):
        df = kfunction(csr_pattern).to_dataframe()
        assert list(df.columns) == ["r", "value", "theo"]
        assert len(df) == 51

    def test_g_excludes_zero(self, csr_pattern):
        """The default g grid starts after r = 0."""
        g = pair_correlation(csr_pattern)
        assert g.r[0] > 0
        assert np.all(np.isfinite(g.values))

    def test_g_undefined_at_zero(self, csr_pattern):
        with pytest.raises(UndefinedEstimatorValue):
            pair_correlation(csr_pattern, r=[0.0, 0.5, 1.0])

    def test_g_near_one_under_csr(self, dense_csr_pattern):
        """Averaged over a range of r, g of a CSR pattern is close to 1."""
        g = pair_correlation(dense_csr_pattern, r=np.linspace(0.05, 0.2, 16), correction="iso")
        assert 0.9 < g.values.mean() < 1.1

    def test_g_bandwidth_recorded(self, csr_pattern):
        g = pair_correlation(csr_pattern, bandwidth=0.4)
        assert g.params["bandwidth"] == 0.4

    def test_g_clustered_above_one(self, clustered_pattern):
        """A tight cluster has many more close pairs than CSR."""
        g = pair_correlation(clustered_pattern, r=[0.1, 0.2], bandwidth=0.05, correction="trans")
        assert np.all(g.values > 10)

    def test_radius_grid_validation(self, window):
        with pytest.raises(ValueError):
            radius_grid(window, rmax=-1)
        with pytest.raises(ValueError):
            kfunction(PointPattern.create([[1, 1], [2, 2]], window), r=[1.0, 0.5])


# ===========================================================================
# SECTION 5 — Nearest-neighbour G and empty-space F
# ===========================================================================


class TestDistanceDistributions:
    """Empirical distribution functions G and F."""

    @pytest.mark.parametrize("correction", ["none", "han"])
    def test_g_is_cdf(self, csr_pattern, correction):
        """Bounded in [0, 1], non-decreasing, zero at r = 0."""
        G = gfunction(csr_pattern, correction=correction)
        assert G.values[0] == 0.0
        assert np.all((G.values >= 0) & (G.values <= 1))
        assert np.all(np.diff(G.values) >= 0)

    def test_g_rs_bounded(self, csr_pattern):
        G = gfunction(csr_pattern, correction="rs")
        assert np.all((G.values >= 0) & (G.values <= 1))

    def test_g_uncorrected_reaches_one(self, csr_pattern):
        """Beyond the largest nearest-neighbour distance every point is counted."""
        nnd = nearest_neighbor_distances(csr_pattern)
        G = gfunction(csr_pattern, r=[nnd.max()], correction="none")
        assert G.values[0] == 1.0

    def test_g_clustered_rises_steeply(self, clustered_pattern):
        G = gfunction(clustered_pattern, r=[0.0, 0.3], correction="none")
        assert G.values[-1] == 1.0

    @pytest.mark.parametrize("correction", ["none", "rs", "han"])
    def test_f_is_bounded(self, csr_pattern, correction):
        F = ffunction(csr_pattern, correction=correction, config=SMALL_F)
        assert np.all((F.values >= 0) & (F.values <= 1))

    @pytest.mark.parametrize("correction", ["none", "han"])
    def test_f_non_decreasing(self, csr_pattern, correction):
        F = ffunction(csr_pattern, correction=correction, config=SMALL_F)
        assert np.all(np.diff(F.values) >= 0)

    def test_f_clustered_below_csr(self, clustered_pattern):
        """Large empty areas keep F far below its CSR expectation."""
        F = ffunction(clustered_pattern, r=[1.0, 2.0], correction="none", config=SMALL_F)
        assert np.all(F.values < F.theoretical)

    def test_f_random_sampling_reproducible(self, csr_pattern):
        cfg = EstimatorConfig(f_n_samples=500)
        a = ffunction(csr_pattern, sampling="random", seed=3, config=cfg)
        b = ffunction(csr_pattern, sampling="random", seed=3, config=cfg)
        assert np.array_equal(a.values, b.values)

    def test_f_without_locations(self, csr_pattern):
        with pytest.raises(UndefinedEstimatorValue):
            ffunction(csr_pattern, locations=np.empty((0, 2)))

    def test_theoretical_cdf(self, csr_pattern):
        """CSR expectation 1 - exp(-lambda*pi*r^2)."""
        G = gfunction(csr_pattern)
        np.testing.assert_allclose(G.theoretical, 1 - np.exp(-0.5 * np.pi * G.r**2))


# ===========================================================================
# SECTION 6 — Mark correlation
# ===========================================================================


class TestMarkCorrelation:
    """Mark correlation function kmm."""

    R_MARKS = np.linspace(1.0, 2.5, 7)

    def test_constant_marks(self, marked_pattern):
        """Identical marks carry no spatial information: kmm = 1."""
        pp = marked_pattern.with_marks(np.full(100, 2.0))
        kmm = mark_correlation(pp, r=self.R_MARKS, bandwidth=0.3, correction="trans")
        np.testing.assert_allclose(kmm.values, 1.0)

    def test_requires_marks(self, csr_pattern):
        with pytest.raises(ValueError):
            mark_correlation(csr_pattern, r=self.R_MARKS)

    def test_mean_test_function(self, marked_pattern):
        kmm = mark_correlation(marked_pattern, r=self.R_MARKS, bandwidth=0.3, test_function="mean")
        assert kmm.params["test_function"] == "mean"
        assert np.all(np.isfinite(kmm.values))

    def test_undefined_at_zero(self, marked_pattern):
        with pytest.raises(UndefinedEstimatorValue):
            mark_correlation(marked_pattern, r=[0.0, 1.0])


# ===========================================================================
# SECTION 7 — Simulation envelopes
# ===========================================================================


class TestEnvelope:
    """Monte Carlo envelopes under CSR and random labelling."""

    R = np.linspace(0, 2, 9)

    def test_rank_one_is_min_max(self, csr_pattern):
        """rank=1 with 99 simulations: bounds are the min and max of the simulated values."""
        env = envelope(csr_pattern, "K", "none", n_simulations=99, rank=1, r=self.R, seed=1)
        assert env.simulations.shape == (99, len(self.R))
        np.testing.assert_array_equal(env.lower, env.simulations.min(axis=0))
        np.testing.assert_array_equal(env.upper, env.simulations.max(axis=0))
        assert env.alpha == pytest.approx(0.02)

    def test_rank_two(self, csr_pattern):
        env = envelope(csr_pattern, "L", "iso", n_simulations=19, rank=2, r=self.R, seed=1)
        ordered = np.sort(env.simulations, axis=0)
        np.testing.assert_array_equal(env.lower, ordered[1])
        np.testing.assert_array_equal(env.upper, ordered[-2])

    def test_same_seed_bit_identical(self, csr_pattern):
        a = envelope(csr_pattern, "K", "trans", n_simulations=19, r=self.R, seed=123)
        b = envelope(csr_pattern, "K", "trans", n_simulations=19, r=self.R, seed=123)
        assert np.array_equal(a.lower, b.lower)
        assert np.array_equal(a.upper, b.upper)

    def test_batches_do_not_change_result(self, csr_pattern):
        a = envelope(csr_pattern, "K", "iso", n_simulations=10, r=self.R, seed=4)
        b = envelope(csr_pattern, "K", "iso", n_simulations=10, r=self.R, seed=4, batch_size=3)
        assert np.array_equal(a.simulations, b.simulations)

    def test_parallel_matches_serial(self, csr_pattern):
        a = envelope(csr_pattern, "G", "rs", n_simulations=8, r=self.R, seed=9, n_jobs=1)
        b = envelope(csr_pattern, "G", "rs", n_simulations=8, r=self.R, seed=9, n_jobs=2)
        assert np.array_equal(a.simulations, b.simulations)

    def test_insufficient_simulations(self, csr_pattern):
        with pytest.raises(InsufficientSimulations):
            envelope(csr_pattern, "K", n_simulations=3, rank=4, r=self.R)

    def test_rank_must_be_positive(self, csr_pattern):
        with pytest.raises(ValueError):
            envelope(csr_pattern, "K", n_simulations=9, rank=0, r=self.R)

    def test_global_band_has_constant_width(self, csr_pattern):
        """A global envelope is one scalar width applied at every r."""
        env = envelope(csr_pattern, "L", "iso", n_simulations=19, global_envelope=True, r=self.R[1:], seed=2)
        width = env.upper - env.lower
        np.testing.assert_allclose(width, width[0])
        np.testing.assert_allclose(env.centre, env.simulations.mean(axis=0))
        assert env.is_global

    def test_clustered_g_exceeds_envelope(self, clustered_pattern):
        """A tight cluster's G lies above every CSR simulation at small r."""
        r = np.array([0.25, 0.3, 0.4, 0.5])
        env = envelope(clustered_pattern, "G", "none", n_simulations=19, r=r, seed=8)
        assert env.above().all()

    def test_g_default_grid(self, csr_pattern):
        """The g envelope uses a grid without r = 0."""
        env = envelope(csr_pattern, "g", "iso", n_simulations=5, seed=1)
        assert env.r[0] > 0
        assert "bandwidth" in env.observed.params

    def test_f_envelope(self, csr_pattern):
        env = envelope(csr_pattern, "F", n_simulations=5, seed=1, config=SMALL_F)
        assert env.correction == "han"
        assert np.all(env.lower <= env.upper)

    def test_mark_envelope_random_labelling(self, marked_pattern):
        """Mark envelopes permute marks over the observed locations."""
        r = np.linspace(1.0, 2.5, 4)
        env = envelope(marked_pattern, "kmm", "trans", n_simulations=9, r=r, bandwidth=0.4, seed=1)
        assert env.null_model == "random_labelling"
        assert env.simulations.shape == (9, 4)

    def test_abort_between_batches(self, csr_pattern):
        stop = threading.Event()
        stop.set()
        with pytest.raises(SimulationAborted):
            envelope(csr_pattern, "K", n_simulations=10, batch_size=5, r=self.R, abort=stop)

    def test_unknown_estimator(self, csr_pattern):
        with pytest.raises(ValueError):
            envelope(csr_pattern, "J", n_simulations=5)

    def test_to_dataframe(self, csr_pattern):
        env = envelope(csr_pattern, "K", n_simulations=5, r=self.R, seed=1)
        df = env.to_dataframe()
        assert list(df.columns) == ["r", "obs", "theo", "centre", "lo", "hi"]
        assert np.all(df["lo"] <= df["hi"])
