"""層別弾塑性の硬化則と硬化曲線.

硬化則（HardeningLaw）:
  ConstantHardening（定数勾配）: H(dp) = h_old + c·dp,  H'(dp) = c
  CurveHardening（硬化曲線）: H(dp) = curve(|eps_p_old| + dp) - sigma_y,
      H'(dp) = curve'(|eps_p_old|)
  CurveHardening の勾配は前ステップの塑性ひずみで評価し、反復中は固定する。

硬化曲線（HardeningCurve）:
  TabularHardeningCurve: 区分線形テーブル（Abaqus *PLASTIC 形式）
  SplineHardeningCurve: 単調三次補間（scipy PchipInterpolator）
  LinearHardeningCurve: sigma_y + slope * eps_p
  FunctionHardeningCurve: 任意の value/derivative 関数の組
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np
from scipy.interpolate import PchipInterpolator

from layered_beam.core.constitutive import HardeningCurve
from layered_beam.core.state import LayerState


@dataclass
class ConstantHardening:
    """定数勾配の硬化則.

    Attributes:
        constant: 硬化勾配 c
    """

    constant: float = 0.0

    def value(self, dp: float, layer_old: LayerState) -> float:
        """H(dp) = h_old + c·dp."""
        return layer_old.hardening_variable + self.constant * dp

    def derivative(self, dp: float, layer_old: LayerState) -> float:
        """H'(dp) = c."""
        return self.constant


@dataclass
class CurveHardening:
    """硬化曲線に基づく硬化則.

    硬化変数は曲線値から初期降伏応力を引いたもの。

    Attributes:
        curve: 硬化曲線（工学応力 vs 塑性ひずみ）
        yield_stress: 初期降伏応力
    """

    curve: HardeningCurve
    yield_stress: float

    def value(self, dp: float, layer_old: LayerState) -> float:
        """H(dp) = curve(|eps_p_old| + dp) - sigma_y."""
        strain_old = abs(layer_old.plastic_strain)
        return self.curve.value(strain_old + dp) - self.yield_stress

    def derivative(self, dp: float, layer_old: LayerState) -> float:
        """H'(dp) = curve'(|eps_p_old|)（dp には依存しない）."""
        strain_old = abs(layer_old.plastic_strain)
        return self.curve.derivative(strain_old)


# ====================================================================
# 硬化曲線
# ====================================================================


@dataclass
class LinearHardeningCurve:
    """線形硬化曲線 sigma = sigma_y + slope * eps_p."""

    yield_stress: float
    slope: float = 0.0

    def value(self, strain: float, point: np.ndarray | None = None) -> float:
        return self.yield_stress + self.slope * strain

    def derivative(self, strain: float, point: np.ndarray | None = None) -> float:
        return self.slope


@dataclass
class TabularHardeningCurve:
    """テーブル補間型の硬化曲線（区分線形）.

    降伏応力-塑性ひずみの表データを np.interp で区分線形補間する。
    テーブル範囲外では端点の値で一定（勾配ゼロ、完全塑性）。

    Attributes:
        table: [(sigma, eps_p), ...] の表データ。eps_p は単調増加であること。
    """

    table: list[tuple[float, float]]
    _stresses: np.ndarray = field(init=False, repr=False, compare=False)
    _strains: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        data = np.asarray(self.table, dtype=float).reshape(-1, 2)
        if len(data) < 1:
            raise ValueError("テーブルは最低1点必要")
        steps = np.diff(data[:, 1])
        if np.any(steps < 0):
            i = int(np.argmax(steps < 0))
            raise ValueError(
                f"eps_p は単調増加: table[{i}]={data[i, 1]}, table[{i + 1}]={data[i + 1, 1]}"
            )
        self._stresses = data[:, 0]
        self._strains = data[:, 1]

    @property
    def yield_stress(self) -> float:
        """初期降伏応力（テーブル先頭の値）."""
        return float(self._stresses[0])

    def value(self, strain: float, point: np.ndarray | None = None) -> float:
        """区分線形補間で応力を返す."""
        return float(np.interp(strain, self._strains, self._stresses))

    def derivative(self, strain: float, point: np.ndarray | None = None) -> float:
        """区間の傾きを返す（範囲外・長さゼロの区間はゼロ）."""
        i = int(np.searchsorted(self._strains, strain, side="right"))
        if i == 0 or i == len(self._strains):
            return 0.0
        d_strain = self._strains[i] - self._strains[i - 1]
        if d_strain <= 0.0:
            return 0.0
        return float((self._stresses[i] - self._stresses[i - 1]) / d_strain)


class SplineHardeningCurve:
    """単調三次補間（PCHIP）による滑らかな硬化曲線.

    勾配は区間内で連続。範囲外は端点の値で一定とする。

    Args:
        strains: (n,) 塑性ひずみ（狭義単調増加、n >= 2）
        stresses: (n,) 応力
    """

    def __init__(self, strains: np.ndarray, stresses: np.ndarray) -> None:
        strains = np.asarray(strains, dtype=float)
        stresses = np.asarray(stresses, dtype=float)
        if strains.ndim != 1 or strains.shape != stresses.shape:
            raise ValueError(
                f"strains と stresses は同じ長さの1次元配列: {strains.shape}, {stresses.shape}"
            )
        if len(strains) < 2:
            raise ValueError("スプライン補間には最低2点必要")
        if np.any(np.diff(strains) <= 0):
            raise ValueError("strains は狭義単調増加でなければなりません")
        self.strains = strains
        self.stresses = stresses
        self._spline = PchipInterpolator(strains, stresses, extrapolate=False)
        self._dspline = self._spline.derivative()

    @property
    def yield_stress(self) -> float:
        """初期降伏応力."""
        return float(self.stresses[0])

    def value(self, strain: float, point: np.ndarray | None = None) -> float:
        if strain <= self.strains[0]:
            return float(self.stresses[0])
        if strain >= self.strains[-1]:
            return float(self.stresses[-1])
        return float(self._spline(strain))

    def derivative(self, strain: float, point: np.ndarray | None = None) -> float:
        if strain < self.strains[0] or strain >= self.strains[-1]:
            return 0.0
        return float(self._dspline(strain))


class FunctionHardeningCurve:
    """任意の関数組による硬化曲線.

    Args:
        value: eps_p -> sigma
        derivative: eps_p -> d(sigma)/d(eps_p)
    """

    def __init__(
        self,
        value: Callable[[float], float],
        derivative: Callable[[float], float],
    ) -> None:
        self._value = value
        self._derivative = derivative

    def value(self, strain: float, point: np.ndarray | None = None) -> float:
        return float(self._value(strain))

    def derivative(self, strain: float, point: np.ndarray | None = None) -> float:
        return float(self._derivative(strain))
