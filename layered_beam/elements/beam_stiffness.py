"""層別梁要素の 3x3 剛性ブロック.

K = |K11 K12|
    |K21 K22|

各ブロックは局所座標系で組み立てた後、全体座標系へ回転する:
  K_global = R^T @ K_local @ R

線形（微小ひずみ）ブロック:
  K11       = diag(EA/L, GA/L, GA/L)
  K21       : K21[2,1] = GA/2, K21[1,2] = -GA/2
  K22       = diag(GIx/L, EIz/L + GAL/4, EIy/L + GAL/4)
  K22_cross = -K22,  [1,1], [2,2] に GAL/2 を加算
  K21_cross = -K21

大ひずみ時の幾何剛性:
  k1_*  : sigma_xx * d(epsilon_xx) による項（× 1/(4L²)）
  k2_*  : tau_xy * d(gamma_xy), tau_xz * d(gamma_xz) による項（× 1/(4L²)）。
          節点1 は節点0 の符号反転。
  k3_22 : 節点0/1 で共通の項（× 1/16）+ k4 の対称和（× 1/(8L)）
  k3_21 : 変位-回転の節点共通項（× 1/(8L)）

  K11       += k1_11 + k2_11
  K22       += k1_22 + k2_22 + k3_22
  K21       += k1_21 + k3_21
  K21_cross += -k1_21 + k3_21
  K22_cross += -k1_22 - k2_22 + k3_22

大ひずみ時は K21_cross は -K21 にならない。
"""

from __future__ import annotations

import numpy as np

from layered_beam.core.results import KinematicGradients, StiffnessBlocks
from layered_beam.sections.layered import LayeredSection


def linear_stiffness_blocks(
    E: float,
    G: float,
    A: float,
    Iy: float,
    Iz: float,
    Ix: float,
    L: float,
) -> StiffnessBlocks:
    """微小ひずみの剛性ブロック（局所座標系）を返す.

    Args:
        E: ヤング率
        G: せん断弾性率
        A: 断面積
        Iy, Iz, Ix: 断面二次モーメント
        L: 初期要素長さ

    Returns:
        StiffnessBlocks（局所座標系）
    """
    # 節点0 の並進変位と並進力
    K11 = np.zeros((3, 3))
    K11[0, 0] = E * A / L
    K11[1, 1] = G * A / L
    K11[2, 2] = G * A / L

    # 節点0 の変位と回転モーメント
    K21 = np.zeros((3, 3))
    K21[2, 1] = G * A * 0.5
    K21[1, 2] = -G * A * 0.5

    # 節点0 の回転と回転モーメント
    K22 = np.zeros((3, 3))
    K22[0, 0] = G * Ix / L
    K22[1, 1] = E * Iz / L + G * A * L / 4.0
    K22[2, 2] = E * Iy / L + G * A * L / 4.0

    # 節点0 の回転と節点1 の回転モーメント
    K22_cross = -K22
    K22_cross[1, 1] += 2.0 * G * A * L / 4.0
    K22_cross[2, 2] += 2.0 * G * A * L / 4.0

    return StiffnessBlocks(
        K11=K11,
        K21=K21,
        K21_cross=-K21,
        K22=K22,
        K22_cross=K22_cross,
    )


def large_strain_blocks(
    grad: KinematicGradients,
    Iy: float,
    Iz: float,
    Ix: float,
    L: float,
) -> dict[str, np.ndarray]:
    """大ひずみの幾何剛性補正テンソル（局所座標系）を返す.

    Returns:
        {"k1_11", "k1_21", "k1_22", "k2_11", "k2_22", "k3_21", "k3_22"} の辞書
    """
    gu = grad.grad_disp
    gr = grad.grad_rot
    ar = grad.avg_rot
    scale = 1.0 / 4.0 / L**2

    # --- k1: sigma_xx * d(epsilon_xx) ---
    k1_11 = np.zeros((3, 3))
    k1_11[0, 0] = (
        gu[0] ** 2
        + 1.5 * gr[2] ** 2 * Iy
        + 1.5 * gr[1] ** 2 * Iz
        + 0.5 * gu[1] ** 2
        + 0.5 * gu[2] ** 2
        + 0.5 * gr[0] ** 2 * Ix
    )
    k1_11[1, 0] = 0.5 * gu[0] * gu[1] - 1.0 / 3.0 * gr[0] * gr[1] * Iz
    k1_11[2, 0] = 0.5 * gu[0] * gu[2] - 1.0 / 3.0 * gr[0] * gr[2] * Iy
    k1_11[0, 1] = k1_11[1, 0]
    k1_11[1, 1] = (
        gu[1] ** 2
        + 1.5 * gr[0] ** 2 * Iz
        + 0.5 * gu[0] ** 2
        + 0.5 * gu[2] ** 2
        + 0.5 * gr[2] ** 2 * Iy
        + 0.5 * gr[1] ** 2 * Iz
        + 0.5 * gr[0] ** 2 * Iy
    )
    k1_11[2, 1] = 0.5 * gu[1] * gu[2]
    k1_11[0, 2] = k1_11[2, 0]
    k1_11[1, 2] = k1_11[2, 1]
    k1_11[2, 2] = (
        gu[2] ** 2
        + 1.5 * gr[0] ** 2 * Iy
        + 0.5 * gu[0] ** 2
        + 0.5 * gu[1] ** 2
        + 0.5 * gr[0] ** 2 * Iz
        + 0.5 * gr[2] ** 2 * Iy
        + 0.5 * gr[2] ** 2 * Iz
    )
    k1_11 *= scale

    k1_21 = np.zeros((3, 3))
    k1_21[0, 0] = (
        0.5 * gu[0] * gr[0] * Ix
        - 1.0 / 3.0 * gu[1] * gr[1] * Iz
        - 1.0 / 3.0 * gu[2] * gr[2]
    )
    k1_21[1, 0] = 1.5 * gu[0] * gr[1] * Iz - 1.0 / 3.0 * gu[1] * gr[0] * Iz
    k1_21[2, 0] = 1.5 * gu[0] * gr[2] * Iy - 1.0 / 3.0 * gu[2] * gr[0] * Iy
    k1_21[0, 1] = k1_21[1, 0]
    k1_21[1, 1] = 0.5 * gu[1] * gr[1] * Iz - 1.0 / 3.0 * gu[0] * gr[0] * Iz
    k1_21[2, 1] = 0.5 * gu[1] * gr[2] * Iy
    k1_21[0, 2] = k1_21[2, 0]
    k1_21[1, 2] = k1_21[2, 1]
    k1_21[2, 2] = 0.5 * gu[2] * gr[2] * Iy - 1.0 / 3.0 * gu[0] * gr[0] * Iy
    k1_21 *= scale

    k1_22 = np.zeros((3, 3))
    k1_22[0, 0] = (
        gr[0] ** 2 * Ix**2
        + 1.5 * gu[1] ** 2 * Iz
        + 1.5 * gu[2] ** 2 * Iy
        + 0.5 * gu[0] ** 2 * Ix
        + 0.5 * gu[2] ** 2 * Iz
        + 0.5 * gu[1] ** 2 * Iy
        + 0.5 * gr[2] ** 2 * Iy * Ix
        + 0.5 * gr[1] ** 2 * Iz * Ix
    )
    k1_22[1, 0] = 0.5 * gr[0] * gr[1] * Iz * Ix - 1.0 / 3.0 * gu[0] * gu[1] * Iz
    k1_22[2, 0] = 0.5 * gr[0] * gr[2] * Iy * Ix - 1.0 / 3.0 * gu[0] * gu[2] * Iy
    k1_22[0, 1] = k1_22[1, 0]
    k1_22[1, 1] = (
        gr[1] ** 2 * Iz * Iz
        + 1.5 * gu[0] ** 2 * Iz
        + 1.5 * gr[2] ** 2 * Iy * Iz
        + 0.5 * gu[1] ** 2 * Iz
        + 0.5 * gu[2] ** 2 * Iz
        + 0.5 * gr[0] ** 2 * Iz * Ix
    )
    k1_22[2, 1] = 1.5 * gr[1] * gr[2] * Iy * Iz
    k1_22[0, 2] = k1_22[2, 0]
    k1_22[1, 2] = k1_22[2, 1]
    k1_22[2, 2] = (
        gr[2] ** 2 * Iy * Iy
        + 1.5 * gu[0] ** 2 * Iy
        + 1.5 * gr[1] ** 2 * Iy * Iz
        + 0.5 * gu[1] ** 2 * Iy
        + 0.5 * gu[2] ** 2 * Iy
        + 0.5 * gr[0] ** 2 * Iz * Ix
    )
    k1_22 *= scale

    # --- k2: tau_xy * d(gamma_xy), tau_xz * d(gamma_xz) ---
    k2_11 = np.zeros((3, 3))
    k2_11[0, 0] = 0.25 * ar[2] ** 2 + 0.25 * ar[1] ** 2
    k2_11[1, 0] = -1.0 / 6.0 * ar[0] * ar[1]
    k2_11[2, 0] = -1.0 / 6.0 * ar[0] * ar[2]
    k2_11[0, 1] = k2_11[1, 0]
    k2_11[1, 1] = 0.25 * ar[0]
    k2_11[0, 2] = k2_11[2, 0]
    k2_11[2, 2] = 0.25 * ar[0] ** 2
    k2_11 *= scale

    k2_22 = np.zeros((3, 3))
    k2_22[0, 0] = 0.25 * ar[0] ** 2 * Ix
    k2_22[1, 0] = 1.0 / 6.0 * ar[0] * ar[1] * Iz
    k2_22[2, 0] = 1.0 / 6.0 * ar[0] * ar[2] * Iy
    k2_22[0, 1] = k2_22[1, 0]
    k2_22[1, 1] = 0.25 * ar[2] ** 2 * Iz + 0.25 * ar[1] ** 2 * Iz
    k2_22[0, 2] = k2_22[2, 0]
    k2_22[2, 2] = 0.25 * ar[2] ** 2 * Iy + 0.25 * ar[1] ** 2 * Iy
    k2_22 *= scale

    # --- k3: 節点0/1 で共通の項 ---
    k3_22 = np.zeros((3, 3))
    k3_22[0, 0] = 0.25 * gu[2] ** 2 + 0.25 * gr[0] * Ix + 0.25 * gu[1] ** 2
    k3_22[1, 0] = -1.0 / 6.0 * gu[0] * gu[1] + 1.0 / 6.0 * gr[0] * gr[1] * Iz
    k3_22[2, 0] = -1.0 / 6.0 * gu[0] * gu[2] + 1.0 / 6.0 * gr[0] * gr[2] * Iy
    k3_22[0, 1] = k3_22[1, 0]
    k3_22[0, 2] = k3_22[2, 0]
    k3_22[2, 2] = 0.25 * gu[0] ** 2 + 0.25 * gr[2] * Iy + 0.25 * gr[1] * Iz
    k3_22 *= 1.0 / 16.0

    k3_21 = np.zeros((3, 3))
    k3_21[0, 0] = -1.0 / 6.0 * (gu[2] * ar[2] + gu[1] * ar[1])
    k3_21[1, 0] = 0.25 * gu[0] * ar[1] - 1.0 / 6.0 * gu[1] * ar[0]
    k3_21[2, 0] = 0.25 * gu[0] * ar[2] - 1.0 / 6.0 * gu[2] * ar[0]
    k3_21[0, 1] = 0.25 * gu[1] * ar[0] - 1.0 / 6.0 * gu[0] * ar[1]
    k3_21[1, 1] = -1.0 / 6.0 * gu[0] * ar[0]
    k3_21[0, 2] = 0.25 * gu[2] * ar[0] - 1.0 / 6.0 * gu[0] * ar[2]
    k3_21[2, 2] = -1.0 / 6.0 * gu[0] * ar[0]
    k3_21 *= 1.0 / 8.0 / L

    k4_22 = np.zeros((3, 3))
    k4_22[0, 0] = (
        0.25 * gr[0] * ar[0] * Ix
        + 1.0 / 6.0 * gr[2] * ar[2] * Iy
        + 1.0 / 6.0 * gr[1] * ar[1] * Iz
    )
    k4_22[1, 0] = 1.0 / 6.0 * gr[1] * ar[0] * Iz
    k4_22[2, 0] = 1.0 / 6.0 * gr[2] * ar[0] * Iy
    k4_22[0, 1] = 1.0 / 6.0 * gr[0] * ar[1] * Iz
    k4_22[1, 1] = 0.25 * gr[1] * ar[1] * Iz + 1.0 / 6.0 * gr[0] * ar[0] * Iz
    k4_22[2, 1] = 0.25 * gr[1] * ar[2] * Iz
    k4_22[0, 2] = 1.0 / 6.0 * gr[0] * ar[2] * Iy
    k4_22[1, 2] = 0.25 * gr[2] * ar[1] * Iy
    k4_22[2, 2] = 0.25 * gr[2] * ar[2] * Iy + 1.0 / 6.0 * gr[0] * ar[0] * Iy

    k3_22 += 1.0 / 8.0 / L * (k4_22 + k4_22.T)

    return {
        "k1_11": k1_11,
        "k1_21": k1_21,
        "k1_22": k1_22,
        "k2_11": k2_11,
        "k2_22": k2_22,
        "k3_21": k3_21,
        "k3_22": k3_22,
    }


def compute_stiffness_blocks(
    frame: np.ndarray,
    youngs_modulus: float,
    shear_modulus: float,
    section: LayeredSection,
    length: float,
    grad: KinematicGradients,
    large_strain: bool = False,
) -> StiffnessBlocks:
    """全体座標系の剛性ブロックを返す.

    Args:
        frame: (3, 3) 回転行列（全体→局所）
        youngs_modulus: E
        shear_modulus: G
        section: 積分点0/1 で平均した断面特性
        length: 初期要素長さ
        grad: 局所勾配（大ひずみ項に使用）
        large_strain: 幾何剛性補正を加えるかどうか

    Returns:
        StiffnessBlocks（全体座標系）
    """
    Ix = section.Ix_eff
    local = linear_stiffness_blocks(
        youngs_modulus,
        shear_modulus,
        section.A,
        section.Iy,
        section.Iz,
        Ix,
        length,
    )
    K11 = local.K11
    K21 = local.K21
    K21_cross = local.K21_cross
    K22 = local.K22
    K22_cross = local.K22_cross

    if large_strain:
        k = large_strain_blocks(grad, section.Iy, section.Iz, Ix, length)
        K11 = K11 + k["k1_11"] + k["k2_11"]
        K22 = K22 + k["k1_22"] + k["k2_22"] + k["k3_22"]
        K21 = K21 + k["k1_21"] + k["k3_21"]
        K21_cross = K21_cross - k["k1_21"] + k["k3_21"]
        K22_cross = K22_cross - k["k1_22"] - k["k2_22"] + k["k3_22"]

    R = frame
    return StiffnessBlocks(
        K11=R.T @ K11 @ R,
        K21=R.T @ K21 @ R,
        K21_cross=R.T @ K21_cross @ R,
        K22=R.T @ K22 @ R,
        K22_cross=R.T @ K22_cross @ R,
    )
