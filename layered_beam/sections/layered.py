"""層分割された梁の断面特性モデル.

断面を深さ方向（局所 z）に等厚の N 層へ分割する。各層は図心位置 z_mid と
厚さ t = depth / N を持ち、層ごとに独立した 1D 弾塑性状態を保持する。

層配置:
  z_mid[i] = -depth/2 + t/2 + i * t,   i = 0..N-1
  Sum(t) = depth で、[-depth/2, +depth/2] を隙間・重なりなく覆う。

断面定数（断面積分ひずみの計算に使用）:
  A:  断面積
  Ay: y方向一次モーメント ∫y dA
  Az: z方向一次モーメント ∫z dA
  Iy: ∫z² dA,  Iz: ∫y² dA,  Ix: ∫(y²+z²) dA（省略時 Iy + Iz）
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class LayeredSection:
    """層分割梁の断面特性.

    Attributes:
        A:  断面積
        Iy: 断面二次モーメント ∫z² dA
        Iz: 断面二次モーメント ∫y² dA
        width: 断面幅（層応力の積分に使用）
        depth: 断面高さ（層分割の方向）
        num_layers: 層数
        Ix: ねじり用二次モーメント。None の場合は Iy + Iz。
        Ay: 一次モーメント ∫y dA（非対称断面のみ非ゼロ）
        Az: 一次モーメント ∫z dA（非対称断面のみ非ゼロ）
    """

    A: float
    Iy: float
    Iz: float
    width: float
    depth: float
    num_layers: int
    Ix: float | None = None
    Ay: float = 0.0
    Az: float = 0.0

    def __post_init__(self) -> None:
        if self.A <= 0:
            raise ValueError(f"断面積 A は正値でなければなりません: {self.A}")
        if self.Iy <= 0:
            raise ValueError(f"断面二次モーメント Iy は正値でなければなりません: {self.Iy}")
        if self.Iz <= 0:
            raise ValueError(f"断面二次モーメント Iz は正値でなければなりません: {self.Iz}")
        if self.Ix is not None and self.Ix <= 0:
            raise ValueError(f"断面二次モーメント Ix は正値でなければなりません: {self.Ix}")
        if self.width <= 0:
            raise ValueError(f"断面幅 width は正値でなければなりません: {self.width}")
        if self.depth <= 0:
            raise ValueError(f"断面高さ depth は正値でなければなりません: {self.depth}")
        if int(self.num_layers) != self.num_layers or self.num_layers < 1:
            raise ValueError(f"層数 num_layers は1以上の整数でなければなりません: {self.num_layers}")

    @property
    def thickness(self) -> float:
        """1層の厚さ."""
        return self.depth / self.num_layers

    @property
    def z_mid(self) -> np.ndarray:
        """(num_layers,) 各層の図心位置（中立軸から）.

        -depth/2 + t/2 から t ずつ増加させる。
        """
        t = self.thickness
        return -0.5 * self.depth + 0.5 * t + t * np.arange(self.num_layers)

    @property
    def layer_bounds(self) -> np.ndarray:
        """(num_layers, 2) 各層の下端・上端 z 座標."""
        t = self.thickness
        z = self.z_mid
        return np.column_stack([z - 0.5 * t, z + 0.5 * t])

    @property
    def Ix_eff(self) -> float:
        """ねじり用二次モーメント（Ix 未指定なら Iy + Iz）."""
        if self.Ix is None:
            return self.Iy + self.Iz
        return self.Ix

    @property
    def is_symmetric(self) -> bool:
        """一次モーメントがゼロ（対称断面）かどうか."""
        return self.Ay == 0.0 and self.Az == 0.0

    @classmethod
    def rectangle(cls, b: float, h: float, num_layers: int) -> LayeredSection:
        """矩形断面を生成する.

        Args:
            b: 幅（y方向）
            h: 高さ（z方向、層分割方向）
            num_layers: 層数

        Returns:
            LayeredSection インスタンス

        断面二次モーメント:
            Iy = b·h³/12
            Iz = h·b³/12
        """
        if b <= 0 or h <= 0:
            raise ValueError(f"b, h は正値: b={b}, h={h}")
        return cls(
            A=b * h,
            Iy=b * h**3 / 12.0,
            Iz=h * b**3 / 12.0,
            width=b,
            depth=h,
            num_layers=num_layers,
        )


def average_sections(sections: list[LayeredSection]) -> LayeredSection:
    """積分点 0, 1 の断面定数を平均した断面を返す（剛性計算用）.

    積分点が1つしかない場合はそのまま返す。
    Ix は一方でも指定されていれば各断面の Ix_eff を平均する。
    両方とも未指定なら None（平均した Iy + Iz）とする。
    """
    if len(sections) == 1:
        return sections[0]
    s0, s1 = sections[0], sections[1]
    if s0.Ix is None and s1.Ix is None:
        Ix: float | None = None
    else:
        Ix = 0.5 * (s0.Ix_eff + s1.Ix_eff)
    return LayeredSection(
        A=0.5 * (s0.A + s1.A),
        Iy=0.5 * (s0.Iy + s1.Iy),
        Iz=0.5 * (s0.Iz + s1.Iz),
        width=s0.width,
        depth=s0.depth,
        num_layers=s0.num_layers,
        Ix=Ix,
        Ay=0.5 * (s0.Ay + s1.Ay),
        Az=0.5 * (s0.Az + s1.Az),
    )
