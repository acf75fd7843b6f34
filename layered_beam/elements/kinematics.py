"""層別梁要素の運動学（ひずみ増分の計算）.

節点の変位・回転増分（全体座標系、現反復 - 前ステップ）から、局所座標系の
変位勾配・回転勾配・平均回転を求め、断面積分された機械的ひずみ増分を計算する。

断面内の変位（局所座標系、u_n は中立軸の変位）:
  u_1 = u_n1 - rot_3 * y + rot_2 * z
  u_2 = u_n2 - rot_1 * z
  u_3 = u_n3 + rot_1 * y

微小ひずみ:
  e_11 = u_n1,1 - rot_3,1 * y + rot_2,1 * z
  e_12 = 2 * 0.5 * (u_1,2 + u_2,1) = -rot_3 + u_n2,1 - rot_1,1 * z
  e_13 = 2 * 0.5 * (u_1,3 + u_3,1) =  rot_2 + u_n3,1 + rot_1,1 * y

回転ひずみ（断面積分）:
  rot_strain_1 = ∫(e_13 * y - e_12 * z) dA
  rot_strain_2 = ∫(e_11 * z) dA
  rot_strain_3 = ∫(e_11 * -y) dA
  断面相乗モーメント Iyz はゼロと仮定する。
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from layered_beam.core.constitutive import PrefactorFunction
from layered_beam.core.results import KinematicGradients, StrainIncrements
from layered_beam.sections.layered import LayeredSection


class EigenstrainIncrement(NamedTuple):
    """1積分点の固有ひずみ（現ステップ・前ステップ、全体座標系）.

    Attributes:
        disp: (3,) 変位チャネルの固有ひずみ（現ステップ）
        disp_old: (3,) 同（前ステップ）
        rot: (3,) 回転チャネルの固有ひずみ（現ステップ）
        rot_old: (3,) 同（前ステップ）
    """

    disp: np.ndarray
    disp_old: np.ndarray
    rot: np.ndarray
    rot_old: np.ndarray


def original_length(coords: np.ndarray) -> float:
    """初期要素長さ ||x1 - x0|| を返す.

    Args:
        coords: (2, ndim) 未変形の節点座標

    Returns:
        L0: 要素長さ
    """
    coords = np.asarray(coords, dtype=float)
    length = float(np.linalg.norm(coords[1] - coords[0]))
    if length < 1e-15:
        raise ValueError("要素長さがほぼゼロです。2節点が同一座標です。")
    return length


def quadrature_points(coords: np.ndarray, n_qp: int) -> tuple[np.ndarray, np.ndarray]:
    """要素軸上の Gauss 積分点の座標と重みを返す.

    Args:
        coords: (2, 3) 節点座標
        n_qp: 積分点数

    Returns:
        points: (n_qp, 3) 積分点座標
        weights: (n_qp,) 重み（[-1, 1] 基準）
    """
    xi, w = np.polynomial.legendre.leggauss(n_qp)
    coords = np.asarray(coords, dtype=float)
    s = 0.5 * (1.0 + xi)
    points = coords[0][None, :] + s[:, None] * (coords[1] - coords[0])[None, :]
    return points, w


def local_gradients(
    frame: np.ndarray,
    length: float,
    disp0: np.ndarray,
    disp1: np.ndarray,
    rot0: np.ndarray,
    rot1: np.ndarray,
) -> KinematicGradients:
    """局所座標系の変位勾配・回転勾配・平均回転を計算する.

    Args:
        frame: (3, 3) 回転行列（全体→局所）
        length: 初期要素長さ L0
        disp0, disp1: (3,) 節点0/1 の変位増分（全体座標系）
        rot0, rot1: (3,) 節点0/1 の回転増分（全体座標系）

    Returns:
        KinematicGradients: (grad_disp, grad_rot, avg_rot)
    """
    grad_disp = frame @ ((disp1 - disp0) / length)
    grad_rot = frame @ ((rot1 - rot0) / length)
    avg_rot = frame @ (0.5 * (rot0 + rot1))
    return KinematicGradients(grad_disp=grad_disp, grad_rot=grad_rot, avg_rot=avg_rot)


def mechanical_strain_increments(
    grad: KinematicGradients,
    section: LayeredSection,
    large_strain: bool = False,
) -> StrainIncrements:
    """断面積分された機械的ひずみ増分（固有ひずみ除去前）を計算する.

    Args:
        grad: 局所勾配
        section: 積分点の断面特性
        large_strain: 2次の項を加えるかどうか

    Returns:
        StrainIncrements: (disp, rot) 各 (3,)
    """
    gu = grad.grad_disp
    gr = grad.grad_rot
    ar = grad.avg_rot
    A = section.A
    Ay = section.Ay
    Az = section.Az
    Iy = section.Iy
    Iz = section.Iz
    Ix = section.Ix_eff
    Iyz = 0.0

    # 軸ひずみ + せん断ひずみ 2成分
    disp = np.array(
        [
            gu[0] * A - gr[2] * Ay + gr[1] * Az,
            -ar[2] * A + gu[1] * A - gr[0] * Az,
            ar[1] * A + gu[2] * A + gr[0] * Ay,
        ]
    )
    # ねじり + 曲げ 2成分
    rot = np.array(
        [
            ar[1] * Ay + gu[2] * Ay + gr[0] * Ix + ar[2] * Az - gu[1] * Az,
            gu[0] * Az - gr[2] * Iyz + gr[1] * Iz,
            -gu[0] * Ay + gr[2] * Iy - gr[1] * Iyz,
        ]
    )

    if large_strain:
        disp[0] += 0.5 * (
            (gu[0] ** 2 + gu[1] ** 2 + gu[2] ** 2) * A
            + gr[2] ** 2 * Iy
            + gr[1] ** 2 * Iz
            + gr[0] ** 2 * Ix
        )
        disp[1] += (-ar[2] * gu[0] + ar[0] * gu[2]) * A
        disp[2] += (ar[1] * gu[0] - ar[0] * gu[1]) * A

        rot[0] += -ar[1] * gr[2] * Iy + ar[2] * gr[1] * Iz
        rot[1] += (gu[0] * gr[1] - gu[1] * gr[0]) * Iz
        rot[2] += -(gu[2] * gr[0] - gu[0] * gr[2]) * Iy

    return StrainIncrements(disp=disp, rot=rot)


def remove_eigenstrains(
    increments: StrainIncrements,
    frame: np.ndarray,
    area: float,
    eigenstrains: list[EigenstrainIncrement],
) -> StrainIncrements:
    """固有ひずみ増分を局所座標系に変換して機械的ひずみ増分から除去する.

    変位チャネルは断面積 A を掛け、回転チャネルはそのまま差し引く。
    """
    disp = increments.disp.copy()
    rot = increments.rot.copy()
    for eig in eigenstrains:
        disp -= frame @ (np.asarray(eig.disp) - np.asarray(eig.disp_old)) * area
        rot -= frame @ (np.asarray(eig.rot) - np.asarray(eig.rot_old))
    return StrainIncrements(disp=disp, rot=rot)


def update_total_strains(
    frame: np.ndarray,
    increments: StrainIncrements,
    total_disp_old: np.ndarray,
    total_rot_old: np.ndarray,
    legacy_rotation_total: bool = True,
) -> tuple[np.ndarray, np.ndarray]:
    """全ひずみ（全体座標系）を更新する.

    total = R^T @ increment + total_old

    legacy_rotation_total=True の場合、回転ひずみの加算元に
    変位ひずみの前ステップ値を使う（従来の挙動）。

    Returns:
        (total_disp, total_rot)
    """
    total_disp = frame.T @ increments.disp + total_disp_old
    rot_base = total_disp_old if legacy_rotation_total else total_rot_old
    total_rot = frame.T @ increments.rot + rot_base
    return total_disp, total_rot


def effective_stiffness(
    youngs_modulus: float,
    shear_modulus: float,
    area: float,
    Iz: float,
    length: float,
    prefactor: PrefactorFunction | None = None,
    time: float = 0.0,
    point: np.ndarray | None = None,
) -> float:
    """安定時間増分の推定に使う等価剛性を返す.

    c1 = sqrt(E), c2 = sqrt(G)
    s1 = max(c1, c2)
    s2 = 2 / (c2 * sqrt(A / Iz))
    s  = max(s1, L0 / s2)   （prefactor 指定時は sqrt(f(t, x)) 倍）

    Args:
        youngs_modulus: E
        shear_modulus: G
        area: 断面積（積分点0/1 の平均）
        Iz: 断面二次モーメント（積分点0/1 の平均）
        length: 初期要素長さ
        prefactor: 弾性係数の倍率関数 f(t, x)
        time: 現在時刻
        point: 積分点座標

    Returns:
        等価剛性
    """
    c1 = np.sqrt(youngs_modulus)
    c2 = np.sqrt(shear_modulus)
    stiff_1 = max(c1, c2)
    stiff_2 = 2.0 / (c2 * np.sqrt(area / Iz))
    stiffness = max(stiff_1, length / stiff_2)
    if prefactor is not None:
        if point is None:
            point = np.zeros(3)
        stiffness *= np.sqrt(prefactor(time, point))
    return float(stiffness)
