"""梁局所座標系の回転行列と回転更新ストラテジ.

規約:
  R (3x3) の行ベクトルが局所 x, y, z 軸を全体座標系で表したもの:
    R[0,:] = e_x  （梁軸方向、節点0→節点1）
    R[1,:] = e_y  （ユーザー指定の y_orientation）
    R[2,:] = e_z  （e_x × e_y）
  v_local = R @ v_global,  K_global = R^T @ K_local @ R

回転更新:
  SmallRotation: 初期回転行列を常に使う（微小回転）。
  LargeRotation: 平均回転増分 θ̄ の指数写像で前ステップの座標系を回す:
    R_new = R_old @ exp(skew(θ̄))^T
"""

from __future__ import annotations

import numpy as np


def skew(v: np.ndarray) -> np.ndarray:
    """ベクトルの歪対称行列（hat map）.

    skew(v) · u = v × u

    Args:
        v: (3,) ベクトル

    Returns:
        S: (3, 3) 歪対称行列
    """
    return np.array(
        [
            [0.0, -v[2], v[1]],
            [v[2], 0.0, -v[0]],
            [-v[1], v[0], 0.0],
        ]
    )


def rotvec_to_matrix(rotvec: np.ndarray) -> np.ndarray:
    """回転ベクトルから回転行列を計算する（Rodrigues の公式）.

    R = I + sin(θ)/θ · S + (1 - cos(θ))/θ² · S²,  S = skew(rotvec)

    θ が小さいときは Taylor 展開で評価する。

    Args:
        rotvec: (3,) 回転ベクトル（軸 × 角度）

    Returns:
        R: (3, 3) 回転行列
    """
    rotvec = np.asarray(rotvec, dtype=float)
    theta = float(np.linalg.norm(rotvec))
    S = skew(rotvec)
    if theta < 1e-8:
        a = 1.0 - theta**2 / 6.0
        b = 0.5 - theta**2 / 24.0
    else:
        a = np.sin(theta) / theta
        b = (1.0 - np.cos(theta)) / theta**2
    return np.eye(3) + a * S + b * (S @ S)


def is_rotation(R: np.ndarray, tol: float = 1e-10) -> bool:
    """R が右手系の正規直交行列かどうか."""
    R = np.asarray(R, dtype=float)
    if R.shape != (3, 3):
        return False
    orthonormal = np.allclose(R @ R.T, np.eye(3), atol=tol)
    return bool(orthonormal and abs(np.linalg.det(R) - 1.0) < tol)


def build_beam_frame(
    axis: np.ndarray,
    y_orientation: np.ndarray,
    tol: float = 1e-4,
) -> np.ndarray:
    """梁軸と y_orientation から回転行列（全体→局所）を構築する.

    梁軸との内積が tol を超える場合はエラー。許容範囲内のずれは
    Gram-Schmidt で除去し、行ベクトルを厳密に正規直交にする。

    Args:
        axis: (3,) 梁軸方向ベクトル（節点0→節点1、正規化前でよい）
        y_orientation: (3,) 局所y軸方向
        tol: 直交判定の許容値

    Returns:
        R: (3, 3) 回転行列

    Raises:
        ValueError: ベクトル長がゼロ、または y_orientation が梁軸に直交しない場合
    """
    e_x = np.asarray(axis, dtype=float)
    norm_x = np.linalg.norm(e_x)
    if norm_x < 1e-15:
        raise ValueError("梁軸ベクトルの長さがほぼゼロです。")
    e_x = e_x / norm_x

    e_y = np.asarray(y_orientation, dtype=float)
    norm_y = np.linalg.norm(e_y)
    if norm_y < 1e-15:
        raise ValueError(f"y_orientation の長さがほぼゼロです: {y_orientation}")
    e_y = e_y / norm_y

    dot = float(np.dot(e_x, e_y))
    if abs(dot) > tol:
        raise ValueError(
            f"y_orientation は梁軸に直交していなければなりません: "
            f"e_x={e_x}, y_orientation={e_y}, dot={dot:.3e}"
        )

    e_y = e_y - dot * e_x
    e_y = e_y / np.linalg.norm(e_y)
    e_z = np.cross(e_x, e_y)

    R = np.zeros((3, 3), dtype=float)
    R[0, :] = e_x
    R[1, :] = e_y
    R[2, :] = e_z
    return R


class SmallRotation:
    """微小回転: 回転行列は初期配置のまま更新しない."""

    def update(
        self,
        frame_initial: np.ndarray,
        frame_old: np.ndarray,
        avg_rot_global: np.ndarray,
    ) -> np.ndarray:
        """現時刻の回転行列を返す（初期回転行列のコピー）."""
        return frame_initial.copy()


class LargeRotation:
    """有限回転: 節点回転増分の平均で前ステップの座標系を回転させる.

    R_new = R_old @ Q^T,  Q = exp(skew(θ̄_global))

    局所軸ベクトル e_i は全体座標系で e_i' = Q e_i と回転する。
    Q は正規直交なので R_new の行も正規直交のまま保たれる。
    """

    def update(
        self,
        frame_initial: np.ndarray,
        frame_old: np.ndarray,
        avg_rot_global: np.ndarray,
    ) -> np.ndarray:
        """現時刻の回転行列を返す."""
        Q = rotvec_to_matrix(avg_rot_global)
        return frame_old @ Q.T
