"""層別梁の運動学（ひずみ増分・全ひずみ・等価剛性）のテスト."""

from __future__ import annotations

import numpy as np
import pytest

from layered_beam.core.results import KinematicGradients, StrainIncrements
from layered_beam.elements.kinematics import (
    EigenstrainIncrement,
    effective_stiffness,
    local_gradients,
    mechanical_strain_increments,
    original_length,
    quadrature_points,
    remove_eigenstrains,
    update_total_strains,
)
from layered_beam.math.rotation import build_beam_frame
from layered_beam.sections.layered import LayeredSection

E_MAT = 200e9
G_MAT = 77e9
SEC = LayeredSection(A=0.01, Iy=2e-5, Iz=1e-5, width=0.1, depth=0.1, num_layers=4)
ZERO = np.zeros(3)


def _grad(gu=ZERO, gr=ZERO, ar=ZERO) -> KinematicGradients:
    return KinematicGradients(
        grad_disp=np.asarray(gu, dtype=float),
        grad_rot=np.asarray(gr, dtype=float),
        avg_rot=np.asarray(ar, dtype=float),
    )


class TestGeometry:
    def test_original_length(self):
        coords = np.array([[1.0, 2.0, 3.0], [4.0, 6.0, 3.0]])
        assert original_length(coords) == pytest.approx(5.0)

    def test_zero_length_raises(self):
        with pytest.raises(ValueError):
            original_length(np.array([[1.0, 0.0, 0.0], [1.0, 0.0, 0.0]]))

    def test_quadrature_points(self):
        coords = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
        points, weights = quadrature_points(coords, 2)
        g = 1.0 / np.sqrt(3.0)
        np.testing.assert_allclose(points[:, 0], [1.0 - g, 1.0 + g])
        np.testing.assert_allclose(weights, [1.0, 1.0])


class TestLocalGradients:
    def test_identity_frame(self):
        grad = local_gradients(
            np.eye(3),
            2.0,
            np.array([0.0, 0.0, 0.0]),
            np.array([1e-3, 0.0, 0.0]),
            np.array([0.0, 0.0, 0.1]),
            np.array([0.0, 0.0, 0.3]),
        )
        np.testing.assert_allclose(grad.grad_disp, [5e-4, 0.0, 0.0])
        np.testing.assert_allclose(grad.grad_rot, [0.0, 0.0, 0.1])
        np.testing.assert_allclose(grad.avg_rot, [0.0, 0.0, 0.2])

    def test_rotated_frame(self):
        """全体y軸方向の梁: 全体y変位は局所x（軸方向）."""
        R = build_beam_frame(np.array([0.0, 1.0, 0.0]), np.array([-1.0, 0.0, 0.0]))
        grad = local_gradients(R, 1.0, ZERO, np.array([0.0, 1e-3, 0.0]), ZERO, ZERO)
        np.testing.assert_allclose(grad.grad_disp, [1e-3, 0.0, 0.0], atol=1e-18)


class TestMechanicalStrainIncrements:
    """断面積分ひずみ."""

    def test_axial(self):
        inc = mechanical_strain_increments(_grad(gu=[1e-4, 0.0, 0.0]), SEC)
        np.testing.assert_allclose(inc.disp, [1e-4 * SEC.A, 0.0, 0.0])
        np.testing.assert_allclose(inc.rot, ZERO)

    def test_bending(self):
        """rot_2 = κ_y·Iz, rot_3 = κ_z·Iy."""
        inc = mechanical_strain_increments(_grad(gr=[0.0, 2e-3, 3e-3]), SEC)
        np.testing.assert_allclose(inc.rot, [0.0, 2e-3 * SEC.Iz, 3e-3 * SEC.Iy])
        np.testing.assert_allclose(inc.disp, ZERO)

    def test_torsion(self):
        inc = mechanical_strain_increments(_grad(gr=[1e-3, 0.0, 0.0]), SEC)
        np.testing.assert_allclose(inc.rot, [1e-3 * SEC.Ix_eff, 0.0, 0.0])

    def test_shear(self):
        """せん断: e_12 = u_2,1 - rot_3, e_13 = u_3,1 + rot_2."""
        inc = mechanical_strain_increments(_grad(gu=[0.0, 1e-3, 2e-3], ar=[0.0, 5e-4, 4e-4]), SEC)
        np.testing.assert_allclose(
            inc.disp, [0.0, (1e-3 - 4e-4) * SEC.A, (2e-3 + 5e-4) * SEC.A], rtol=1e-14
        )

    def test_first_moments_couple_axial_and_bending(self):
        sec = LayeredSection(
            A=0.01, Iy=2e-5, Iz=1e-5, width=0.1, depth=0.1, num_layers=4, Ay=1e-4, Az=2e-4
        )
        inc = mechanical_strain_increments(_grad(gu=[1e-3, 0.0, 0.0]), sec)
        np.testing.assert_allclose(inc.rot, [0.0, 1e-3 * 2e-4, -1e-3 * 1e-4])

    def test_large_strain_axial_quadratic_term(self):
        eps = 1e-2
        small = mechanical_strain_increments(_grad(gu=[eps, 0.0, 0.0]), SEC)
        large = mechanical_strain_increments(_grad(gu=[eps, 0.0, 0.0]), SEC, large_strain=True)
        assert large.disp[0] - small.disp[0] == pytest.approx(0.5 * eps**2 * SEC.A)

    def test_large_strain_zero_gradient(self):
        inc = mechanical_strain_increments(_grad(), SEC, large_strain=True)
        np.testing.assert_allclose(inc.disp, ZERO)
        np.testing.assert_allclose(inc.rot, ZERO)


class TestEigenstrains:
    def test_remove_disp_and_rot(self):
        inc = StrainIncrements(disp=np.array([1e-6, 0.0, 0.0]), rot=np.array([0.0, 0.0, 1e-8]))
        eig = EigenstrainIncrement(
            disp=np.array([3e-4, 0.0, 0.0]),
            disp_old=np.array([1e-4, 0.0, 0.0]),
            rot=np.array([0.0, 0.0, 5e-9]),
            rot_old=ZERO,
        )
        out = remove_eigenstrains(inc, np.eye(3), SEC.A, [eig])
        np.testing.assert_allclose(out.disp, [1e-6 - 2e-4 * SEC.A, 0.0, 0.0])
        np.testing.assert_allclose(out.rot, [0.0, 0.0, 5e-9])
        # 入力は変更しない
        assert inc.disp[0] == 1e-6

    def test_no_eigenstrains(self):
        inc = StrainIncrements(disp=np.ones(3), rot=np.ones(3))
        out = remove_eigenstrains(inc, np.eye(3), SEC.A, [])
        np.testing.assert_allclose(out.disp, inc.disp)
        np.testing.assert_allclose(out.rot, inc.rot)


class TestTotalStrains:
    def test_accumulate(self):
        inc = StrainIncrements(disp=np.array([1.0, 0.0, 0.0]), rot=np.array([0.0, 0.0, 2.0]))
        total_disp, total_rot = update_total_strains(
            np.eye(3),
            inc,
            np.array([0.5, 0.0, 0.0]),
            np.array([0.0, 0.0, 3.0]),
            legacy_rotation_total=False,
        )
        np.testing.assert_allclose(total_disp, [1.5, 0.0, 0.0])
        np.testing.assert_allclose(total_rot, [0.0, 0.0, 5.0])

    def test_legacy_rotation_total(self):
        """従来挙動: 回転ひずみの加算元は変位ひずみの前ステップ値."""
        inc = StrainIncrements(disp=np.array([1.0, 0.0, 0.0]), rot=np.array([0.0, 0.0, 2.0]))
        _, total_rot = update_total_strains(
            np.eye(3), inc, np.array([0.5, 0.0, 0.0]), np.array([0.0, 0.0, 3.0])
        )
        np.testing.assert_allclose(total_rot, [0.5, 0.0, 2.0])

    def test_global_frame(self):
        """全ひずみは全体座標系: R^T·increment."""
        R = build_beam_frame(np.array([0.0, 1.0, 0.0]), np.array([-1.0, 0.0, 0.0]))
        inc = StrainIncrements(disp=np.array([1.0, 0.0, 0.0]), rot=ZERO.copy())
        total_disp, _ = update_total_strains(R, inc, ZERO, ZERO)
        np.testing.assert_allclose(total_disp, [0.0, 1.0, 0.0], atol=1e-15)


class TestEffectiveStiffness:
    def test_formula(self):
        A, Iz, L = 0.01, 1e-5, 1.0
        s2 = 2.0 / (np.sqrt(G_MAT) * np.sqrt(A / Iz))
        expected = max(np.sqrt(E_MAT), np.sqrt(G_MAT), L / s2)
        assert effective_stiffness(E_MAT, G_MAT, A, Iz, L) == pytest.approx(expected)

    def test_short_element_uses_wave_speed(self):
        """L0 が小さいと max(sqrt(E), sqrt(G)) が支配."""
        value = effective_stiffness(E_MAT, G_MAT, 0.01, 1e-5, 1e-6)
        assert value == pytest.approx(np.sqrt(E_MAT))

    def test_prefactor(self):
        base = effective_stiffness(E_MAT, G_MAT, 0.01, 1e-5, 1.0)
        scaled = effective_stiffness(
            E_MAT, G_MAT, 0.01, 1e-5, 1.0, prefactor=lambda t, p: 4.0, time=1.0
        )
        assert scaled == pytest.approx(2.0 * base)
