"""層別弾塑性で使う硬化則・外部関数の抽象インタフェース定義.

Protocol 定義:
  HardeningCurve: 応力-塑性ひずみ曲線（value / derivative）。
  HardeningLaw: return mapping が呼ぶ硬化則（定数勾配 or 曲線）。
  PrefactorFunction: 弾性係数に掛けるスカラー関数 f(t, point)。

HardeningLaw は層の前ステップ状態を引数に取る。
定数勾配では前ステップの硬化変数、曲線硬化では前ステップの塑性ひずみが必要になるため。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from layered_beam.core.state import LayerState


@runtime_checkable
class HardeningCurve(Protocol):
    """硬化曲線（工学応力 vs 塑性ひずみ）のインタフェース.

    適合クラス例:
      - TabularHardeningCurve   区分線形テーブル
      - SplineHardeningCurve    単調三次補間（PCHIP）
      - LinearHardeningCurve    sigma_y + slope * eps_p
    """

    def value(self, strain: float, point: np.ndarray | None = None) -> float:
        """塑性ひずみ strain における応力を返す."""
        ...

    def derivative(self, strain: float, point: np.ndarray | None = None) -> float:
        """塑性ひずみ strain における曲線の勾配 d(sigma)/d(eps_p) を返す."""
        ...


@runtime_checkable
class HardeningLaw(Protocol):
    """Return mapping 用の硬化則.

    Newton 反復の残差:
      r(dp) = |sigma_trial| - H(dp) - sigma_y - k * dp

    適合クラス例:
      - ConstantHardening   H = h_old + c * dp
      - CurveHardening      H = curve(|eps_p_old| + dp) - sigma_y
    """

    def value(self, dp: float, layer_old: LayerState) -> float:
        """塑性ひずみ増分 dp に対する硬化変数 H(dp) を返す."""
        ...

    def derivative(self, dp: float, layer_old: LayerState) -> float:
        """硬化勾配 H'(dp) を返す."""
        ...


@runtime_checkable
class PrefactorFunction(Protocol):
    """弾性係数のスカラー倍率関数 f(t, point)."""

    def __call__(self, t: float, point: np.ndarray) -> float: ...
