"""状態変数（履歴変数）の管理.

層別弾塑性梁の積分点ごとの状態を保持する。
要素ごと・積分点ごとに独立のインスタンスを持ち、要素間で共有しない。

前ステップ（収束済み）の状態は読み取り専用とし、現ステップの計算は
copy() した状態に対して行う。収束後に LayeredBeam.commit() で置き換える。
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


@dataclass
class LayerState:
    """1層の弾塑性状態.

    Attributes:
        direct_stress: 層の軸方向（直）応力
        plastic_strain: 塑性ひずみ（符号付き）
        hardening_variable: 硬化変数（降伏応力の増分）
    """

    direct_stress: float = 0.0
    plastic_strain: float = 0.0
    hardening_variable: float = 0.0

    def copy(self) -> LayerState:
        """深いコピーを返す."""
        return LayerState(
            direct_stress=self.direct_stress,
            plastic_strain=self.plastic_strain,
            hardening_variable=self.hardening_variable,
        )


def _zero3() -> np.ndarray:
    return np.zeros(3, dtype=float)


@dataclass
class BeamQpState:
    """層別梁 1積分点の状態.

    Attributes:
        total_disp_strain: 全変位ひずみ（断面積分、全体座標系）
        total_rot_strain: 全回転ひずみ（断面積分、全体座標系）
        mech_disp_strain_increment: 機械的変位ひずみ増分（局所座標系、固有ひずみ除去後）
        mech_rot_strain_increment: 機械的回転ひずみ増分（局所座標系、固有ひずみ除去後）
        total_stretch: 全層に与える駆動ひずみ（局所回転勾配の第3成分）
        stress_resultant: 層応力の断面積分（モーメント）
        effective_stiffness: 安定時間増分推定用の等価剛性（非履歴）
        layers: 各層の弾塑性状態
    """

    total_disp_strain: np.ndarray = field(default_factory=_zero3)
    total_rot_strain: np.ndarray = field(default_factory=_zero3)
    mech_disp_strain_increment: np.ndarray = field(default_factory=_zero3)
    mech_rot_strain_increment: np.ndarray = field(default_factory=_zero3)
    total_stretch: float = 0.0
    stress_resultant: float = 0.0
    effective_stiffness: float = 0.0
    layers: list[LayerState] = field(default_factory=list)

    @classmethod
    def create(cls, num_layers: int) -> BeamQpState:
        """指定層数のゼロ初期状態を生成する."""
        if num_layers < 1:
            raise ValueError(f"層数は1以上でなければなりません: {num_layers}")
        return cls(layers=[LayerState() for _ in range(num_layers)])

    @property
    def num_layers(self) -> int:
        """層数."""
        return len(self.layers)

    @property
    def direct_stress(self) -> np.ndarray:
        """(num_layers,) 各層の直応力."""
        return np.array([s.direct_stress for s in self.layers])

    @property
    def plastic_strain(self) -> np.ndarray:
        """(num_layers,) 各層の塑性ひずみ."""
        return np.array([s.plastic_strain for s in self.layers])

    @property
    def hardening_variable(self) -> np.ndarray:
        """(num_layers,) 各層の硬化変数."""
        return np.array([s.hardening_variable for s in self.layers])

    def copy(self) -> BeamQpState:
        """深いコピーを返す."""
        return BeamQpState(
            total_disp_strain=self.total_disp_strain.copy(),
            total_rot_strain=self.total_rot_strain.copy(),
            mech_disp_strain_increment=self.mech_disp_strain_increment.copy(),
            mech_rot_strain_increment=self.mech_rot_strain_increment.copy(),
            total_stretch=self.total_stretch,
            stress_resultant=self.stress_resultant,
            effective_stiffness=self.effective_stiffness,
            layers=[s.copy() for s in self.layers],
        )
