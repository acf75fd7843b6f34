"""層分割断面 LayeredSection のテスト.

検証項目:
  1. 層が [-depth/2, +depth/2] を隙間・重なりなく覆う（N = 1, 2, 10, 100）
  2. 層厚さの総和 = depth
  3. 図心位置の生成規則
  4. 矩形断面の断面定数
  5. 入力検証
  6. 積分点平均
"""

from __future__ import annotations

import numpy as np
import pytest

from layered_beam.sections.layered import LayeredSection, average_sections

WIDTH = 0.1
DEPTH = 0.3


class TestLayerGeometry:
    """層配置の不変条件."""

    @pytest.mark.parametrize("n", [1, 2, 10, 100])
    def test_layers_cover_depth(self, n):
        """下端 = -depth/2、上端 = +depth/2、層間に隙間なし."""
        sec = LayeredSection.rectangle(WIDTH, DEPTH, num_layers=n)
        bounds = sec.layer_bounds
        assert bounds.shape == (n, 2)
        assert bounds[0, 0] == pytest.approx(-DEPTH / 2, abs=1e-15)
        assert bounds[-1, 1] == pytest.approx(DEPTH / 2, abs=1e-14)
        np.testing.assert_allclose(bounds[1:, 0], bounds[:-1, 1], atol=1e-14)

    @pytest.mark.parametrize("n", [1, 2, 10, 100])
    def test_thickness_sum_equals_depth(self, n):
        """Sum(t) = depth."""
        sec = LayeredSection.rectangle(WIDTH, DEPTH, num_layers=n)
        assert n * sec.thickness == pytest.approx(DEPTH, rel=1e-14)
        assert np.sum(np.diff(sec.layer_bounds, axis=1)) == pytest.approx(DEPTH, rel=1e-12)

    def test_z_mid_sequence(self):
        """z_mid[0] = -depth/2 + t/2、以降 t ずつ増加."""
        sec = LayeredSection.rectangle(WIDTH, DEPTH, num_layers=4)
        t = DEPTH / 4
        np.testing.assert_allclose(sec.z_mid, [-0.1125, -0.0375, 0.0375, 0.1125], atol=1e-15)
        np.testing.assert_allclose(np.diff(sec.z_mid), t, rtol=1e-12)

    def test_single_layer_centroid_on_neutral_axis(self):
        """1層なら図心は中立軸上."""
        sec = LayeredSection.rectangle(WIDTH, DEPTH, num_layers=1)
        assert sec.z_mid[0] == pytest.approx(0.0, abs=1e-15)

    def test_z_mid_symmetric(self):
        """図心位置は中立軸に対して対称."""
        sec = LayeredSection.rectangle(WIDTH, DEPTH, num_layers=7)
        np.testing.assert_allclose(sec.z_mid, -sec.z_mid[::-1], atol=1e-15)


class TestSectionProperties:
    """断面定数."""

    def test_rectangle_constants(self):
        """矩形断面: A = b·h, Iy = b·h³/12, Iz = h·b³/12."""
        sec = LayeredSection.rectangle(WIDTH, DEPTH, num_layers=5)
        assert sec.A == pytest.approx(WIDTH * DEPTH)
        assert sec.Iy == pytest.approx(WIDTH * DEPTH**3 / 12.0)
        assert sec.Iz == pytest.approx(DEPTH * WIDTH**3 / 12.0)
        assert sec.is_symmetric

    def test_ix_defaults_to_iy_plus_iz(self):
        """Ix 未指定なら Iy + Iz."""
        sec = LayeredSection(A=0.01, Iy=2e-5, Iz=3e-5, width=0.1, depth=0.1, num_layers=3)
        assert sec.Ix_eff == pytest.approx(5e-5)

    def test_ix_explicit(self):
        sec = LayeredSection(
            A=0.01, Iy=2e-5, Iz=3e-5, width=0.1, depth=0.1, num_layers=3, Ix=1e-5
        )
        assert sec.Ix_eff == pytest.approx(1e-5)

    def test_asymmetric_flag(self):
        sec = LayeredSection(
            A=0.01, Iy=2e-5, Iz=3e-5, width=0.1, depth=0.1, num_layers=3, Ay=1e-4
        )
        assert not sec.is_symmetric


class TestSectionValidation:
    """入力検証."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"A": 0.0},
            {"Iy": -1.0},
            {"Iz": 0.0},
            {"Ix": 0.0},
            {"width": 0.0},
            {"depth": -0.1},
            {"num_layers": 0},
            {"num_layers": 2.5},
        ],
    )
    def test_invalid_values(self, kwargs):
        base = {"A": 0.01, "Iy": 1e-5, "Iz": 1e-5, "width": 0.1, "depth": 0.1, "num_layers": 3}
        base.update(kwargs)
        with pytest.raises(ValueError):
            LayeredSection(**base)

    def test_rectangle_invalid_dims(self):
        with pytest.raises(ValueError):
            LayeredSection.rectangle(0.0, 0.1, num_layers=2)


class TestAverageSections:
    """積分点0/1 の断面平均."""

    def test_average(self):
        s0 = LayeredSection(A=0.01, Iy=1e-5, Iz=2e-5, width=0.1, depth=0.1, num_layers=2)
        s1 = LayeredSection(A=0.03, Iy=3e-5, Iz=4e-5, width=0.1, depth=0.1, num_layers=2)
        avg = average_sections([s0, s1])
        assert avg.A == pytest.approx(0.02)
        assert avg.Iy == pytest.approx(2e-5)
        assert avg.Iz == pytest.approx(3e-5)
        assert avg.Ix is None
        assert avg.Ix_eff == pytest.approx(5e-5)

    def test_mixed_ix_keeps_explicit_value(self):
        """一方のみ Ix 指定: 各断面の Ix_eff を平均する."""
        s0 = LayeredSection(A=0.01, Iy=1e-5, Iz=1e-5, width=0.1, depth=0.1, num_layers=2, Ix=5e-5)
        s1 = LayeredSection(A=0.01, Iy=1e-5, Iz=1e-5, width=0.1, depth=0.1, num_layers=2)
        avg = average_sections([s0, s1])
        assert avg.Ix_eff == pytest.approx(3.5e-5)
        assert average_sections([s1, s0]).Ix_eff == pytest.approx(3.5e-5)

    def test_both_ix_averaged(self):
        s0 = LayeredSection(A=0.01, Iy=1e-5, Iz=1e-5, width=0.1, depth=0.1, num_layers=2, Ix=5e-5)
        s1 = LayeredSection(A=0.01, Iy=1e-5, Iz=1e-5, width=0.1, depth=0.1, num_layers=2, Ix=1e-5)
        assert average_sections([s0, s1]).Ix == pytest.approx(3e-5)

    def test_single_section_passthrough(self):
        s0 = LayeredSection.rectangle(WIDTH, DEPTH, num_layers=2)
        assert average_sections([s0]) is s0
