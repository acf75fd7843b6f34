"""layered_beam.core - 硬化則・外部関数の抽象インタフェース、状態変数、戻り値型.

Protocol 階層:
  HardeningCurve: 応力-塑性ひずみ曲線
  HardeningLaw: return mapping の硬化則
  PrefactorFunction: 弾性係数のスカラー倍率 f(t, point)
"""

from layered_beam.core.constitutive import HardeningCurve, HardeningLaw, PrefactorFunction
from layered_beam.core.results import (
    KinematicGradients,
    LayeredBeamResult,
    LayerSectionResult,
    LayerUpdateResult,
    StiffnessBlocks,
    StrainIncrements,
)
from layered_beam.core.state import BeamQpState, LayerState

__all__ = [
    "HardeningCurve",
    "HardeningLaw",
    "PrefactorFunction",
    "LayerState",
    "BeamQpState",
    "LayerUpdateResult",
    "LayerSectionResult",
    "KinematicGradients",
    "StrainIncrements",
    "StiffnessBlocks",
    "LayeredBeamResult",
]
