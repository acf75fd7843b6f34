"""層断面積分 LayerIntegrator のテスト.

検証項目:
  1. 弾性曲げ: M = k·κ·w·Sum(z_i²·t) = k·κ·w·d³/12·(1 - 1/N²)
  2. 全層降伏（硬化ゼロ）: M = sigma_y·w·d²/4（全塑性モーメント）
  3. 層ごとの独立性と入力状態の不変性
  4. 入力検証
"""

from __future__ import annotations

import numpy as np
import pytest

from layered_beam.core.state import LayerState
from layered_beam.materials.hardening import ConstantHardening
from layered_beam.materials.plasticity_1d import LayerPlasticity
from layered_beam.sections.layer_integrator import LayerIntegrator
from layered_beam.sections.layered import LayeredSection

E_MAT = 200e9
SIGMA_Y = 250e6
WIDTH = 0.1
DEPTH = 0.2


def _make_integrator(n_layers: int = 4, hardening: float = 0.0) -> LayerIntegrator:
    sec = LayeredSection.rectangle(WIDTH, DEPTH, num_layers=n_layers)
    plas = LayerPlasticity(E_MAT, SIGMA_Y, ConstantHardening(constant=hardening))
    return LayerIntegrator(section=sec, plasticity=plas)


def _fresh_layers(n: int) -> list[LayerState]:
    return [LayerState() for _ in range(n)]


class TestElasticMoment:
    """弾性域の応力合力."""

    @pytest.mark.parametrize("n", [1, 2, 4, 10])
    def test_elastic_bending_moment(self, n):
        """層分割の中点則: Sum(z²·t) = d³/12·(1 - 1/N²)."""
        integ = _make_integrator(n)
        kappa = 1e-3
        result = integ.integrate(kappa, _fresh_layers(n))
        expected = E_MAT * kappa * WIDTH * DEPTH**3 / 12.0 * (1.0 - 1.0 / n**2)
        assert result.moment == pytest.approx(expected, rel=1e-12, abs=1e-9)
        assert result.plastic_layers == []

    def test_layer_stresses_linear_in_z(self):
        """弾性域では sigma_i = k·κ·z_i."""
        integ = _make_integrator(6)
        kappa = 2e-3
        result = integ.integrate(kappa, _fresh_layers(6))
        stresses = np.array([s.direct_stress for s in result.layers_new])
        np.testing.assert_allclose(stresses, E_MAT * kappa * integ.section.z_mid, rtol=1e-14)

    def test_resultant_matches_integrate(self):
        integ = _make_integrator(5)
        result = integ.integrate(1e-3, _fresh_layers(5))
        stresses = [s.direct_stress for s in result.layers_new]
        assert integ.resultant(stresses) == pytest.approx(result.moment, rel=1e-14)

    @pytest.mark.parametrize("n", [1, 2, 10, 100])
    def test_resultant_arbitrary_stresses(self, n):
        """任意の層応力: M = Sum(sigma_i·w·z_i·t) を層ごとの和で直接評価."""
        integ = _make_integrator(n)
        rng = np.random.default_rng(n)
        stresses = rng.uniform(-SIGMA_Y, SIGMA_Y, size=n)
        t = DEPTH / n
        expected = 0.0
        for i, sigma in enumerate(stresses):
            z = -DEPTH / 2 + t / 2 + i * t
            expected += sigma * WIDTH * z * t
        assert integ.resultant(stresses) == pytest.approx(expected, rel=1e-10, abs=1e-6)

    def test_resultant_uniform_stress_vanishes(self):
        """一様応力は中立軸まわりで打ち消し合う."""
        integ = _make_integrator(10)
        assert integ.resultant(np.full(10, SIGMA_Y)) == pytest.approx(0.0, abs=1e-6)


class TestPlasticMoment:
    """降伏後の応力合力."""

    def test_fully_plastic_moment(self):
        """全層降伏・硬化ゼロ → M = sigma_y·w·d²/4."""
        integ = _make_integrator(4)
        result = integ.integrate(1.0, _fresh_layers(4))
        assert result.plastic_layers == [0, 1, 2, 3]
        assert result.moment == pytest.approx(SIGMA_Y * WIDTH * DEPTH**2 / 4.0, rel=1e-10)
        stresses = np.array([s.direct_stress for s in result.layers_new])
        np.testing.assert_allclose(np.abs(stresses), SIGMA_Y, rtol=1e-10)
        np.testing.assert_array_equal(np.sign(stresses), np.sign(integ.section.z_mid))

    def test_outer_layers_yield_first(self):
        """外側の層から降伏する."""
        integ = _make_integrator(8)
        # |z| = 0.0875 → |trial| = 350 MPa, |z| = 0.0125 → |trial| = 50 MPa
        result = integ.integrate(0.02, _fresh_layers(8))
        assert 0 in result.plastic_layers
        assert 7 in result.plastic_layers
        assert 3 not in result.plastic_layers
        assert 4 not in result.plastic_layers

    def test_input_layers_unchanged(self):
        integ = _make_integrator(4)
        layers_old = _fresh_layers(4)
        snapshot = [s.copy() for s in layers_old]
        integ.integrate(1.0, layers_old)
        assert layers_old == snapshot


class TestValidation:
    def test_layer_count_mismatch(self):
        integ = _make_integrator(4)
        with pytest.raises(ValueError, match="層数"):
            integ.integrate(1e-3, _fresh_layers(3))

    def test_resultant_shape_mismatch(self):
        integ = _make_integrator(4)
        with pytest.raises(ValueError):
            integ.resultant(np.zeros(5))

    def test_verbose_output(self, capsys):
        sec = LayeredSection.rectangle(WIDTH, DEPTH, num_layers=2)
        plas = LayerPlasticity(E_MAT, SIGMA_Y, ConstantHardening(), verbose=True)
        LayerIntegrator(section=sec, plasticity=plas).integrate(1e-3, _fresh_layers(2))
        out = capsys.readouterr().out
        assert "layer 0" in out
        assert "moment" in out
