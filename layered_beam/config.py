"""層別弾塑性梁の設定.

LayeredBeamConfig は要素に与えるオプション一式を保持し、
構築時に値の妥当性を検査する（不正値は ValueError）。
要素の幾何に依存する検査（y_orientation の直交性、DOF 数の整合）は
LayeredBeam の構築時に行う。
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from layered_beam.core.constitutive import HardeningCurve, HardeningLaw, PrefactorFunction
from layered_beam.materials.hardening import ConstantHardening, CurveHardening
from layered_beam.materials.plasticity_1d import DEFAULT_MAX_ITERATIONS
from layered_beam.math.rotation import LargeRotation, SmallRotation
from layered_beam.sections.layered import LayeredSection


@dataclass
class LayeredBeamConfig:
    """層別弾塑性梁の設定.

    Attributes:
        y_orientation: 局所y軸方向（梁軸に直交、許容 1e-4）
        section: 断面特性。積分点ごとに異なる場合はシーケンスで与える。
        yield_stress: 降伏応力
        hardening_constant: 定数硬化勾配（hardening_function 未指定時）
        hardening_function: 硬化曲線。指定すると曲線硬化を使う。
        large_strain: 大ひずみ（2次項 + 幾何剛性）を有効化
        large_rotation: 有限回転の座標系更新を有効化
        absolute_tolerance: Newton 反復の絶対許容値
        relative_tolerance: Newton 反復の相対許容値
        max_iterations: Newton 反復の上限
        elasticity_prefactor: 等価剛性に掛ける倍率関数 f(t, x)
        eigenstrain_names: 除去する固有ひずみの名前
        legacy_rotation_total: 回転ひずみの全量更新に変位ひずみの前ステップ値を使う
        verbose: 層ごとの計算過程を表示
    """

    y_orientation: np.ndarray
    section: LayeredSection | Sequence[LayeredSection]
    yield_stress: float
    hardening_constant: float = 0.0
    hardening_function: HardeningCurve | None = None
    large_strain: bool = False
    large_rotation: bool = False
    absolute_tolerance: float = 1e-10
    relative_tolerance: float = 1e-8
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    elasticity_prefactor: PrefactorFunction | None = None
    eigenstrain_names: tuple[str, ...] = field(default_factory=tuple)
    legacy_rotation_total: bool = True
    verbose: bool = False

    def __post_init__(self) -> None:
        self.y_orientation = np.asarray(self.y_orientation, dtype=float)
        if self.y_orientation.shape != (3,):
            raise ValueError(
                f"y_orientation は3成分ベクトルでなければなりません: shape={self.y_orientation.shape}"
            )
        if np.linalg.norm(self.y_orientation) < 1e-15:
            raise ValueError(f"y_orientation の長さがほぼゼロです: {self.y_orientation}")

        sections = self.sections
        if len(sections) == 0:
            raise ValueError("section が空です")
        n0 = sections[0].num_layers
        for s in sections[1:]:
            if s.num_layers != n0 or s.width != sections[0].width or s.depth != sections[0].depth:
                raise ValueError(
                    "積分点ごとの断面で num_layers / width / depth は一致していなければなりません"
                )

        if self.yield_stress <= 0:
            raise ValueError(f"降伏応力 yield_stress は正値でなければなりません: {self.yield_stress}")
        if self.absolute_tolerance < 0:
            raise ValueError(f"absolute_tolerance は非負: {self.absolute_tolerance}")
        if self.relative_tolerance < 0:
            raise ValueError(f"relative_tolerance は非負: {self.relative_tolerance}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations は1以上: {self.max_iterations}")

        if self.large_strain and any(not s.is_symmetric for s in sections):
            raise ValueError(
                "大ひずみ計算は一次モーメント（Ay, Az）が非ゼロの非対称断面に対応していません"
            )
        self.eigenstrain_names = tuple(self.eigenstrain_names)

    @property
    def sections(self) -> list[LayeredSection]:
        """断面特性のリスト（単一指定なら長さ1）."""
        if isinstance(self.section, LayeredSection):
            return [self.section]
        return list(self.section)

    @property
    def num_layers(self) -> int:
        """層数."""
        return self.sections[0].num_layers

    def hardening_law(self) -> HardeningLaw:
        """設定から硬化則を選択する（曲線指定があれば曲線硬化）."""
        if self.hardening_function is not None:
            return CurveHardening(curve=self.hardening_function, yield_stress=self.yield_stress)
        return ConstantHardening(constant=self.hardening_constant)

    def rotation_strategy(self) -> SmallRotation | LargeRotation:
        """回転行列の更新ストラテジを選択する."""
        if self.large_rotation:
            return LargeRotation()
        return SmallRotation()
