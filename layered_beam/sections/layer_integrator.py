"""層断面積分モジュール.

LayeredSection と LayerPlasticity を統合し、層ごとの return mapping と
断面の応力合力（モーメント）を計算する。

層ひずみ増分:
  d_eps_i = d_kappa * z_i     （d_kappa は全層共通の駆動ひずみ増分）

応力合力（層積分、図心の小さい順に加算）:
  M = Sum(sigma_i * width * z_i * t)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from layered_beam.core.results import LayerSectionResult
from layered_beam.core.state import LayerState
from layered_beam.materials.plasticity_1d import LayerPlasticity
from layered_beam.sections.layered import LayeredSection


@dataclass
class LayerIntegrator:
    """層断面積分器.

    Attributes:
        section: 層分割断面
        plasticity: 層の1D弾塑性構成則
    """

    section: LayeredSection
    plasticity: LayerPlasticity

    def integrate(
        self,
        strain_increment: float,
        layers_old: list[LayerState],
    ) -> LayerSectionResult:
        """全層の return mapping を行い、応力合力を計算する.

        Args:
            strain_increment: 駆動ひずみ増分（全層共通）
            layers_old: 前ステップの層状態（変更されない）

        Returns:
            LayerSectionResult: (moment, layers_new, plastic_layers)

        Raises:
            ReturnMappingConvergenceError: いずれかの層が収束しない場合
        """
        sec = self.section
        if len(layers_old) != sec.num_layers:
            raise ValueError(
                f"層状態の数が層数と不一致: {len(layers_old)} != {sec.num_layers}"
            )
        t = sec.thickness
        width = sec.width

        moment = 0.0
        layers_new: list[LayerState] = []
        plastic_layers: list[int] = []

        for i, z in enumerate(sec.z_mid):
            result = self.plasticity.return_mapping(
                strain_increment, float(z), layers_old[i], layer=i
            )
            layers_new.append(result.state)
            if result.yielded:
                plastic_layers.append(i)
            moment += result.state.direct_stress * width * z * t

        if self.plasticity.verbose:
            print(f"  moment = {moment:.6e}, plastic layers = {plastic_layers}")

        return LayerSectionResult(
            moment=float(moment),
            layers_new=layers_new,
            plastic_layers=plastic_layers,
        )

    def resultant(self, stresses: np.ndarray) -> float:
        """任意の層応力配列から応力合力を計算する.

        Args:
            stresses: (num_layers,) 層応力

        Returns:
            M = Sum(sigma_i * width * z_i * t)
        """
        stresses = np.asarray(stresses, dtype=float)
        sec = self.section
        if stresses.shape != (sec.num_layers,):
            raise ValueError(
                f"stresses の形状が層数と不一致: {stresses.shape} != ({sec.num_layers},)"
            )
        return float(np.sum(stresses * sec.width * sec.z_mid * sec.thickness))
