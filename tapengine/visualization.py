from __future__ import annotations

from tapengine.content import MACHINES
from tapengine.formulas import (
    boss_hp,
    data_reward,
    machine_cost,
    prestige_core_fragments,
    scrap_reward,
)


def plot_economy_curves(
    max_stage: int = 200,
    max_machine_level: int = 30,
    output_path: str | None = None,
) -> None:
    """Generate a 4-panel matplotlib view of the balance curves.

    Requires matplotlib (optional dependency).
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError(
            "matplotlib is required for visualization. "
            "Install with: pip install tapengine[viz]"
        )

    stages = list(range(1, max_stage + 1))
    fig, axes = plt.subplots(2, 2, figsize=(14, 10))
    fig.suptitle(f"Economy curves, stages 1-{max_stage}", fontsize=14)

    # 1. Boss HP (log scale); tier spikes every 10/50/100 stages
    ax1 = axes[0][0]
    ax1.plot(stages, [boss_hp(s) for s in stages])
    ax1.set_yscale("log")
    ax1.set_xlabel("Stage")
    ax1.set_ylabel("HP")
    ax1.set_title("Boss HP")
    ax1.grid(True, alpha=0.3)

    # 2. Rewards per boss
    ax2 = axes[0][1]
    ax2.plot(stages, [scrap_reward(s) for s in stages], label="scrap")
    ax2.plot(stages, [data_reward(s) for s in stages], label="data")
    ax2.set_yscale("log")
    ax2.set_xlabel("Stage")
    ax2.set_ylabel("Reward")
    ax2.set_title("Boss Rewards")
    ax2.legend(fontsize=8)
    ax2.grid(True, alpha=0.3)

    # 3. Machine cost of the next level
    ax3 = axes[1][0]
    levels = list(range(max_machine_level))
    for mdef in MACHINES.values():
        ax3.plot(levels, [machine_cost(mdef, lv) for lv in levels], label=mdef.type)
    ax3.set_yscale("log")
    ax3.set_xlabel("Owned level")
    ax3.set_ylabel("Cost")
    ax3.set_title("Machine Costs")
    ax3.legend(fontsize=8)
    ax3.grid(True, alpha=0.3)

    # 4. Core fragments for a reboot at each stage
    ax4 = axes[1][1]
    ax4.step(stages, [prestige_core_fragments(s) for s in stages], where="post")
    ax4.set_xlabel("Highest stage")
    ax4.set_ylabel("Core fragments")
    ax4.set_title("Reboot Reward")
    ax4.grid(True, alpha=0.3)

    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, dpi=150)
    else:
        plt.show()
