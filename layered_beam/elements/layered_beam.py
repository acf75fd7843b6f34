"""層別弾塑性 Timoshenko 梁要素（2節点、3D）.

各節点の自由度: (ux, uy, uz, θx, θy, θz)。DOF 番号は
  dof = ndof_per_node * node + var
で、disp_vars / rot_vars によって変数番号を指定する。

1回の評価（compute_properties）の流れ:
  1. 現反復と前ステップの解から節点の変位・回転増分を取り出す
  2. 回転ストラテジで現時刻の回転行列を求める
  3. 局所勾配 → 各積分点で
       - 駆動ひずみ（局所回転勾配の第3成分）で全層の return mapping
       - 応力合力（層積分）
       - 機械的ひずみ増分、固有ひずみ除去、全ひずみ更新
       - 等価剛性
  4. Jacobian が必要な場合のみ剛性ブロックを計算

状態は前ステップ（states_old）をコピーして計算するため、同じステップ内で
何度評価してもよい。ソルバーが収束を確認したら commit() で確定する。
ReturnMappingConvergenceError が送出された場合、確定済みの状態は変化しない。

注意:
  全層が同じ駆動ひずみ（曲率）を共有し、層ひずみは d_kappa * z_i となる。
  軸ひずみ増分は層応力に寄与しない。
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np

from layered_beam.config import LayeredBeamConfig
from layered_beam.core.results import LayeredBeamResult, StiffnessBlocks
from layered_beam.core.state import BeamQpState
from layered_beam.elements.beam_stiffness import compute_stiffness_blocks
from layered_beam.elements.kinematics import (
    EigenstrainIncrement,
    effective_stiffness,
    local_gradients,
    mechanical_strain_increments,
    original_length,
    quadrature_points,
    remove_eigenstrains,
    update_total_strains,
)
from layered_beam.materials.beam_elastic import BeamElasticity
from layered_beam.materials.plasticity_1d import LayerPlasticity
from layered_beam.math.rotation import build_beam_frame
from layered_beam.sections.layer_integrator import LayerIntegrator
from layered_beam.sections.layered import LayeredSection, average_sections


def _pad3(v: np.ndarray) -> np.ndarray:
    """2成分以下のベクトルを3成分にゼロ埋めする."""
    out = np.zeros(3, dtype=float)
    v = np.asarray(v, dtype=float)
    out[: len(v)] = v
    return out


def _qp_value(arr: np.ndarray, qp: int) -> np.ndarray:
    """(3,) ならそのまま、(n_qp, 3) なら qp 行を返す."""
    arr = np.asarray(arr, dtype=float)
    if arr.ndim == 1:
        return arr
    return arr[qp]


class LayeredBeam:
    """層別弾塑性梁要素.

    Args:
        config: 要素設定
        coords: (2, ndim) 未変形の節点座標（ndim <= 3）
        elasticity: 弾性定数（E, G, 曲げ剛性係数）
        node_indices: (2,) グローバル節点インデックス
        disp_vars: 変位の変数番号
        rot_vars: 回転の変数番号（disp_vars と同数）
        ndof_per_node: 節点あたりの DOF 数
        n_qp: 積分点数。None の場合は断面数（1つなら 2点）。

    Raises:
        ValueError: 変位・回転の変数数が不一致、y_orientation が梁軸に
            直交しない、積分点数と断面数が不一致の場合
    """

    nnodes: int = 2

    def __init__(
        self,
        config: LayeredBeamConfig,
        coords: np.ndarray,
        elasticity: BeamElasticity,
        *,
        node_indices: Sequence[int] = (0, 1),
        disp_vars: Sequence[int] = (0, 1, 2),
        rot_vars: Sequence[int] = (3, 4, 5),
        ndof_per_node: int = 6,
        n_qp: int | None = None,
    ) -> None:
        if len(disp_vars) != len(rot_vars):
            raise ValueError(
                f"変位と回転の変数数は一致していなければなりません: "
                f"displacements={len(disp_vars)}, rotations={len(rot_vars)}"
            )
        if not 1 <= len(disp_vars) <= 3:
            raise ValueError(f"変位の変数数は1〜3: {len(disp_vars)}")
        if len(node_indices) != self.nnodes:
            raise ValueError(f"節点数は2: {len(node_indices)}")

        coords = np.asarray(coords, dtype=float)
        if coords.ndim != 2 or coords.shape[0] != 2 or coords.shape[1] > 3:
            raise ValueError(f"coords は (2, ndim<=3) の配列: shape={coords.shape}")
        self.coords = np.zeros((2, 3), dtype=float)
        self.coords[:, : coords.shape[1]] = coords

        sections = config.sections
        if n_qp is None:
            n_qp = len(sections) if len(sections) > 1 else 2
        if len(sections) > 1 and len(sections) != n_qp:
            raise ValueError(f"断面数と積分点数が不一致: {len(sections)} != {n_qp}")
        if n_qp < 1:
            raise ValueError(f"積分点数は1以上: {n_qp}")

        self.config = config
        self.elasticity = elasticity
        self.node_indices = np.asarray(node_indices, dtype=np.int64)
        self.disp_vars = tuple(disp_vars)
        self.rot_vars = tuple(rot_vars)
        self.ndof_per_node = ndof_per_node
        self.n_qp = n_qp
        self.qp_sections: list[LayeredSection] = [
            sections[qp] if len(sections) > 1 else sections[0] for qp in range(n_qp)
        ]
        self.avg_section = average_sections(self.qp_sections[:2])
        self.qp_points, _ = quadrature_points(self.coords, n_qp)

        # 初期長さと初期回転行列（要素の寿命中は不変）
        self.original_length = original_length(self.coords)
        self.initial_frame = build_beam_frame(
            self.coords[1] - self.coords[0], config.y_orientation
        )
        self.frame_old = self.initial_frame.copy()
        self.frame = self.initial_frame.copy()
        self.rotation = config.rotation_strategy()

        self.plasticity = LayerPlasticity(
            elasticity.flexural_stiffness,
            config.yield_stress,
            config.hardening_law(),
            absolute_tolerance=config.absolute_tolerance,
            relative_tolerance=config.relative_tolerance,
            max_iterations=config.max_iterations,
            verbose=config.verbose,
        )
        self.integrator = LayerIntegrator(section=self.qp_sections[0], plasticity=self.plasticity)

        self.states_old: list[BeamQpState] = [
            BeamQpState.create(config.num_layers) for _ in range(n_qp)
        ]
        self.states: list[BeamQpState] = [s.copy() for s in self.states_old]

    def dof_indices(self) -> tuple[np.ndarray, np.ndarray]:
        """変位・回転のグローバル DOF インデックスを返す.

        Returns:
            disp_dofs: (2, ndisp) 節点ごとの変位 DOF
            rot_dofs: (2, nrot) 節点ごとの回転 DOF
        """
        n = self.node_indices[:, None]
        disp_dofs = self.ndof_per_node * n + np.asarray(self.disp_vars)[None, :]
        rot_dofs = self.ndof_per_node * n + np.asarray(self.rot_vars)[None, :]
        return disp_dofs, rot_dofs

    def _increments(
        self,
        sol: np.ndarray,
        sol_old: np.ndarray,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """節点0/1 の変位・回転増分（現反復 - 前ステップ）を返す."""
        sol = np.asarray(sol, dtype=float)
        sol_old = np.asarray(sol_old, dtype=float)
        disp_dofs, rot_dofs = self.dof_indices()
        disp0 = _pad3(sol[disp_dofs[0]] - sol_old[disp_dofs[0]])
        disp1 = _pad3(sol[disp_dofs[1]] - sol_old[disp_dofs[1]])
        rot0 = _pad3(sol[rot_dofs[0]] - sol_old[rot_dofs[0]])
        rot1 = _pad3(sol[rot_dofs[1]] - sol_old[rot_dofs[1]])
        return disp0, disp1, rot0, rot1

    def _eigenstrains_at(
        self,
        eigenstrains: Mapping[str, EigenstrainIncrement] | None,
        qp: int,
    ) -> list[EigenstrainIncrement]:
        """設定された固有ひずみを積分点 qp の値で返す."""
        names = self.config.eigenstrain_names
        if not names:
            return []
        if eigenstrains is None:
            raise ValueError(f"固有ひずみ {list(names)} が設定されていますが入力がありません")
        out: list[EigenstrainIncrement] = []
        for name in names:
            if name not in eigenstrains:
                raise ValueError(f"固有ひずみ '{name}' の入力がありません")
            eig = eigenstrains[name]
            out.append(
                EigenstrainIncrement(
                    disp=_qp_value(eig.disp, qp),
                    disp_old=_qp_value(eig.disp_old, qp),
                    rot=_qp_value(eig.rot, qp),
                    rot_old=_qp_value(eig.rot_old, qp),
                )
            )
        return out

    def compute_properties(
        self,
        sol: np.ndarray,
        sol_old: np.ndarray,
        *,
        time: float = 0.0,
        compute_jacobian: bool = True,
        eigenstrains: Mapping[str, EigenstrainIncrement] | None = None,
    ) -> LayeredBeamResult:
        """現反復の解から積分点の状態と剛性ブロックを計算する.

        Args:
            sol: (ndof,) 現反復の解ベクトル
            sol_old: (ndof,) 前ステップ（収束済み）の解ベクトル
            time: 現在時刻（倍率関数の評価に使用）
            compute_jacobian: 剛性ブロックを計算するかどうか
            eigenstrains: {名前: EigenstrainIncrement}。
                各成分は (3,) または (n_qp, 3)。

        Returns:
            LayeredBeamResult

        Raises:
            ReturnMappingConvergenceError: 層の return mapping が収束しない場合
        """
        cfg = self.config
        L0 = self.original_length
        disp0, disp1, rot0, rot1 = self._increments(sol, sol_old)

        # 微小回転では初期回転行列のまま
        frame = self.rotation.update(self.initial_frame, self.frame_old, 0.5 * (rot0 + rot1))
        grad = local_gradients(frame, L0, disp0, disp1, rot0, rot1)

        E = self.elasticity.E
        G = self.elasticity.G
        avg = self.avg_section

        states: list[BeamQpState] = []
        eff = np.zeros(self.n_qp, dtype=float)
        for qp in range(self.n_qp):
            section = self.qp_sections[qp]
            state_old = self.states_old[qp]
            state = state_old.copy()

            if cfg.verbose:
                p = self.qp_points[qp]
                print(f"QP {qp} = ({p[0]:.4e}, {p[1]:.4e}, {p[2]:.4e})")

            # 全層共通の駆動ひずみ
            state.total_stretch = float(grad.grad_rot[2])
            layer_result = self.integrator.integrate(state.total_stretch, state_old.layers)
            state.layers = layer_result.layers_new
            state.stress_resultant = layer_result.moment

            increments = mechanical_strain_increments(grad, section, cfg.large_strain)
            increments = remove_eigenstrains(
                increments, frame, section.A, self._eigenstrains_at(eigenstrains, qp)
            )
            state.mech_disp_strain_increment = increments.disp
            state.mech_rot_strain_increment = increments.rot
            state.total_disp_strain, state.total_rot_strain = update_total_strains(
                frame,
                increments,
                state_old.total_disp_strain,
                state_old.total_rot_strain,
                legacy_rotation_total=cfg.legacy_rotation_total,
            )

            state.effective_stiffness = effective_stiffness(
                E,
                G,
                avg.A,
                avg.Iz,
                L0,
                prefactor=cfg.elasticity_prefactor,
                time=time,
                point=self.qp_points[qp],
            )
            eff[qp] = state.effective_stiffness
            states.append(state)

        stiffness: StiffnessBlocks | None = None
        if compute_jacobian:
            stiffness = compute_stiffness_blocks(
                frame, E, G, avg, L0, grad, large_strain=cfg.large_strain
            )

        self.frame = frame
        self.states = states
        return LayeredBeamResult(
            states=states,
            frame=frame,
            gradients=grad,
            stiffness=stiffness,
            effective_stiffness=eff,
        )

    def commit(self, result: LayeredBeamResult | None = None) -> None:
        """収束後に状態を確定する（現ステップ → 前ステップ）.

        Args:
            result: 確定する評価結果。None の場合は直近の評価結果。
        """
        if result is None:
            states = self.states
            frame = self.frame
        else:
            states = result.states
            frame = result.frame
        self.states_old = [s.copy() for s in states]
        self.frame_old = frame.copy()
