"""メソッド戻り値の型定義.

各モジュールの公開メソッドが返すデータ構造を NamedTuple で定義する。
フィールド名でのアクセス（result.state, blocks.K11）とタプルアンパッキング
（grad_disp, grad_rot, avg_rot = local_gradients(...)）の両方が使える。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import numpy as np

if TYPE_CHECKING:
    from layered_beam.core.state import BeamQpState, LayerState


class LayerUpdateResult(NamedTuple):
    """1層の return mapping の結果.

    Attributes:
        state: 更新後の層状態
        plastic_strain_increment: 符号付き塑性ひずみ増分（弾性なら 0）
        iterations: Newton 反復回数（弾性なら 0）
        yielded: 塑性修正を行ったかどうか
    """

    state: LayerState
    plastic_strain_increment: float
    iterations: int
    yielded: bool


class LayerSectionResult(NamedTuple):
    """層積分の結果.

    Attributes:
        moment: 断面の応力合力（Sum(sigma_i * width * z_i * t)）
        layers_new: 更新後の各層状態
        plastic_layers: 塑性修正を行った層インデックス
    """

    moment: float
    layers_new: list[LayerState]
    plastic_layers: list[int]


class KinematicGradients(NamedTuple):
    """局所座標系での変位・回転勾配と平均回転.

    Attributes:
        grad_disp: (3,) 変位勾配 R·(du1 - du0)/L0
        grad_rot: (3,) 回転勾配 R·(dθ1 - dθ0)/L0
        avg_rot: (3,) 平均回転 R·(dθ0 + dθ1)/2
    """

    grad_disp: np.ndarray
    grad_rot: np.ndarray
    avg_rot: np.ndarray


class StrainIncrements(NamedTuple):
    """断面積分された機械的ひずみ増分（局所座標系）.

    Attributes:
        disp: (3,) 軸 + せん断2成分
        rot: (3,) ねじり + 曲げ2成分
    """

    disp: np.ndarray
    rot: np.ndarray


class StiffnessBlocks(NamedTuple):
    """梁要素の 3x3 剛性ブロック（全体座標系）.

    Attributes:
        K11: 変位-変位（同一節点; 節点間は符号反転）
        K21: 変位-回転（同一節点）
        K21_cross: 変位-回転（節点間）
        K22: 回転-回転（同一節点）
        K22_cross: 回転-回転（節点間）
    """

    K11: np.ndarray
    K21: np.ndarray
    K21_cross: np.ndarray
    K22: np.ndarray
    K22_cross: np.ndarray


class LayeredBeamResult(NamedTuple):
    """LayeredBeam.compute_properties() の結果.

    Attributes:
        states: 更新後の積分点状態（未コミット）
        frame: 現時刻の回転行列（全体→局所）
        gradients: 局所勾配（剛性計算と共有）
        stiffness: 剛性ブロック。Jacobian 不要の評価では None。
        effective_stiffness: (n_qp,) 等価剛性
    """

    states: list[BeamQpState]
    frame: np.ndarray
    gradients: KinematicGradients
    stiffness: StiffnessBlocks | None
    effective_stiffness: np.ndarray
