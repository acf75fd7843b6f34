"""層ごとの1次元弾塑性 return mapping.

各層は駆動ひずみ増分 d_eps と層図心位置 z から一軸応力を更新する。

アルゴリズム:
  1. 弾性試行: sigma_trial = sigma_old + k * d_eps * z
  2. 降伏判定: f = |sigma_trial| - h_old - sigma_y。f <= 0 なら弾性。
  3. 塑性修正: r(dp) = |sigma_trial| - H(dp) - sigma_y - k * dp = 0 を Newton 法で解く
       dp <- dp + r / (k + H'(dp))
     収束判定: |r| <= abs_tol または |r / ref| <= rel_tol,  ref = |sigma_trial| - k * dp
  4. 状態更新: dp <- sign(sigma_trial) * dp
       eps_p += dp,  sigma = sigma_old + (d_eps * z - dp) * k

k は曲げ剛性係数（BeamElasticity.flexural_stiffness）。
反復上限を超えて収束しない場合は ReturnMappingConvergenceError を送出する。
ソルバー側は時間増分を縮小して再試行することを想定している。

参考文献:
  - Simo & Hughes (1998) "Computational Inelasticity", Ch.1-2
"""

from __future__ import annotations

import math

from layered_beam.core.constitutive import HardeningLaw
from layered_beam.core.results import LayerUpdateResult
from layered_beam.core.state import LayerState

DEFAULT_MAX_ITERATIONS = 1000


class ReturnMappingConvergenceError(RuntimeError):
    """層の return mapping が反復上限内に収束しなかった.

    致命的エラーではなく、現在の荷重/時間増分の失敗を表す。
    呼び出し側は増分を縮小して再計算できる。

    Attributes:
        layer: 失敗した層インデックス（不明なら None）
        iterations: 実行した反復回数
        residual: 最後の残差
    """

    def __init__(
        self,
        message: str,
        *,
        layer: int | None = None,
        iterations: int = 0,
        residual: float = math.nan,
    ) -> None:
        super().__init__(message)
        self.layer = layer
        self.iterations = iterations
        self.residual = residual


class LayerPlasticity:
    """層の1D弾塑性構成則.

    Args:
        flexural_stiffness: 曲げ剛性係数 k
        yield_stress: 降伏応力
        hardening: 硬化則（ConstantHardening / CurveHardening）
        absolute_tolerance: Newton 反復の絶対許容値
        relative_tolerance: Newton 反復の相対許容値
        max_iterations: Newton 反復の上限
        verbose: 層ごとの計算過程を表示
    """

    def __init__(
        self,
        flexural_stiffness: float,
        yield_stress: float,
        hardening: HardeningLaw,
        *,
        absolute_tolerance: float = 1e-10,
        relative_tolerance: float = 1e-8,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        verbose: bool = False,
    ) -> None:
        if flexural_stiffness <= 0:
            raise ValueError(f"曲げ剛性係数 k は正値: {flexural_stiffness}")
        if yield_stress <= 0:
            raise ValueError(f"降伏応力は正値: {yield_stress}")
        if absolute_tolerance < 0 or relative_tolerance < 0:
            raise ValueError(
                f"許容値は非負: abs={absolute_tolerance}, rel={relative_tolerance}"
            )
        if max_iterations < 1:
            raise ValueError(f"max_iterations は1以上: {max_iterations}")
        self.k = float(flexural_stiffness)
        self.yield_stress = float(yield_stress)
        self.hardening = hardening
        self.absolute_tolerance = absolute_tolerance
        self.relative_tolerance = relative_tolerance
        self.max_iterations = max_iterations
        self.verbose = verbose

    def _converged(self, residual: float, reference: float) -> bool:
        """収束判定. 参照残差がゼロ/非有限のとき相対判定は成立しない."""
        if not math.isfinite(residual):
            return False
        if abs(residual) <= self.absolute_tolerance:
            return True
        if reference == 0.0 or not math.isfinite(reference):
            return False
        return abs(residual / reference) <= self.relative_tolerance

    def return_mapping(
        self,
        strain_increment: float,
        z_mid: float,
        layer_old: LayerState,
        layer: int | None = None,
    ) -> LayerUpdateResult:
        """1層の応力・塑性ひずみ・硬化変数を更新する.

        Args:
            strain_increment: 駆動ひずみ増分（全層共通）
            z_mid: 層図心の中立軸からの距離
            layer_old: 前ステップの層状態（変更されない）
            layer: 層インデックス（エラーメッセージ・表示用）

        Returns:
            LayerUpdateResult: (state, plastic_strain_increment, iterations, yielded)

        Raises:
            ReturnMappingConvergenceError: Newton 反復が収束しない場合
        """
        k = self.k
        sigma_y = self.yield_stress
        sigma_old = layer_old.direct_stress
        elastic_strain_increment = strain_increment * z_mid

        # --- 弾性試行 ---
        trial_stress = sigma_old + k * strain_increment * z_mid
        yield_condition = abs(trial_stress) - layer_old.hardening_variable - sigma_y

        if self.verbose:
            print(
                f"  layer {layer}: z={z_mid:.4e}, sigma_old={sigma_old:.6e}, "
                f"trial={trial_stress:.6e}, f={yield_condition:.6e}"
            )

        if yield_condition <= 0.0:
            state = LayerState(
                direct_stress=sigma_old + elastic_strain_increment * k,
                plastic_strain=layer_old.plastic_strain,
                hardening_variable=layer_old.hardening_variable,
            )
            return LayerUpdateResult(
                state=state,
                plastic_strain_increment=0.0,
                iterations=0,
                yielded=False,
            )

        # --- 塑性修正（Newton 反復） ---
        abs_trial = abs(trial_stress)
        dp = 0.0
        hardening = self.hardening.value(dp, layer_old)
        residual = abs_trial - hardening - sigma_y - k * dp
        reference = abs_trial - k * dp
        iteration = 0

        while not self._converged(residual, reference):
            if iteration >= self.max_iterations:
                raise ReturnMappingConvergenceError(
                    f"層 {layer} の return mapping が {self.max_iterations} 回で収束しません: "
                    f"residual={residual:.3e}",
                    layer=layer,
                    iterations=iteration,
                    residual=residual,
                )
            slope = self.hardening.derivative(dp, layer_old)
            denom = k + slope
            if denom == 0.0 or not math.isfinite(denom):
                raise ReturnMappingConvergenceError(
                    f"層 {layer} の Newton 反復で接線がゼロ/非有限: k + H' = {denom}",
                    layer=layer,
                    iterations=iteration,
                    residual=residual,
                )
            dp += residual / denom

            hardening = self.hardening.value(dp, layer_old)
            residual = abs_trial - hardening - sigma_y - k * dp
            reference = abs_trial - k * dp
            iteration += 1

        sign = 1.0 if trial_stress >= 0.0 else -1.0
        plastic_strain_increment = sign * dp
        elastic_strain_increment = strain_increment * z_mid - plastic_strain_increment

        state = LayerState(
            direct_stress=sigma_old + elastic_strain_increment * k,
            plastic_strain=layer_old.plastic_strain + plastic_strain_increment,
            hardening_variable=hardening,
        )

        if self.verbose:
            print(
                f"  layer {layer}: iterations={iteration}, dp={plastic_strain_increment:.6e}, "
                f"sigma={state.direct_stress:.6e}"
            )

        return LayerUpdateResult(
            state=state,
            plastic_strain_increment=plastic_strain_increment,
            iterations=iteration,
            yielded=True,
        )
