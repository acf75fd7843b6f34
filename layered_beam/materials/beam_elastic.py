"""層別梁に弾性定数を供給する構成則."""

from __future__ import annotations

import numpy as np


class BeamElasticity:
    """梁要素用の弾性定数（材料剛性ベクトルと曲げ剛性係数）.

    material_stiffness は (E, G) の2成分ベクトル。
    flexural_stiffness は層の応力更新 sigma = sigma_old + k * d_eps で使う係数 k。
    省略時は k = E（一軸応力状態）。

    Args:
        E: ヤング率
        G: せん断弾性率。None の場合は nu から E / (2(1+nu))。
        nu: ポアソン比（G 省略時のみ使用）
        flexural_stiffness: 曲げ剛性係数 k。None の場合は E。
    """

    def __init__(
        self,
        E: float,
        G: float | None = None,
        nu: float = 0.3,
        flexural_stiffness: float | None = None,
    ) -> None:
        if E <= 0:
            raise ValueError(f"ヤング率 E は正値でなければなりません: {E}")
        if G is None:
            G = E / (2.0 * (1.0 + nu))
        if G <= 0:
            raise ValueError(f"せん断弾性率 G は正値でなければなりません: {G}")
        if flexural_stiffness is None:
            flexural_stiffness = E
        if flexural_stiffness <= 0:
            raise ValueError(f"曲げ剛性係数は正値でなければなりません: {flexural_stiffness}")
        self.E = float(E)
        self.G = float(G)
        self.nu = nu
        self.flexural_stiffness = float(flexural_stiffness)

    @property
    def material_stiffness(self) -> np.ndarray:
        """(2,) 材料剛性ベクトル [E, G]."""
        return np.array([self.E, self.G])
