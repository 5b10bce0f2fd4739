"""
quantgrid -- Leaderboard report generation.

Produces a human-readable text summary of an optimizer run: the best
agent's metrics followed by the top-K leaderboard.  Designed for
terminal output; can also be written to a file.
"""

from __future__ import annotations

import math
from typing import Sequence

from quantgrid.models import Agent, InvalidArgumentError, Metrics


def _fmt_profit_factor(value: float) -> str:
    return "inf" if math.isinf(value) else f"{value:.2f}"


def _best_agent_lines(agent: Agent, w: int) -> list:
    m: Metrics = agent.metrics
    return [
        "-" * w,
        "BEST AGENT",
        "-" * w,
        f"Strategy:         {agent.name:>14}",
        f"Score:            {m.score:>14.3f}",
        f"Total return:     {m.total_return * 100:>13.2f}%",
        f"CAGR:             {m.cagr * 100:>13.2f}%",
        f"Max drawdown:     {m.max_drawdown * 100:>13.2f}%",
        f"Sharpe ratio:     {m.sharpe:>14.3f}",
        f"Trades:           {m.num_trades:>14}",
        f"Win rate:         {m.win_rate * 100:>13.1f}%",
        f"Profit factor:    {_fmt_profit_factor(m.profit_factor):>14}",
        "",
    ]


def generate_report(agents: Sequence[Agent], top_k: int = 10) -> str:
    """Generate a text report from ranked agents.

    Args:
        agents: Agents sorted best first (as returned by the optimizer).
        top_k: Number of leaderboard rows to show.

    Returns:
        A formatted multi-line string.

    Raises:
        InvalidArgumentError: If ``top_k`` is not positive.
    """
    if top_k <= 0:
        raise InvalidArgumentError("top_k", f"must be positive, got {top_k}")

    lines: list[str] = []
    w = 78  # column width for the divider

    lines.append("=" * w)
    lines.append("QUANTGRID -- OPTIMIZER REPORT")
    lines.append("=" * w)
    lines.append(f"Agents evaluated: {len(agents):>6}")
    lines.append("")

    if agents:
        lines.extend(_best_agent_lines(agents[0], w))

        lines.append("-" * w)
        lines.append(f"LEADERBOARD (TOP {min(top_k, len(agents))})")
        lines.append("-" * w)
        lines.append(
            f"{'#':>3}  {'Agent':<24}{'Score':>8}{'Return':>9}{'MaxDD':>8}"
            f"{'Sharpe':>8}{'Trades':>7}{'Win%':>6}{'PF':>6}"
        )
        for rank, agent in enumerate(agents[:top_k], start=1):
            m = agent.metrics
            lines.append(
                f"{rank:>3}  {agent.name:<24}{m.score:>8.3f}"
                f"{m.total_return * 100:>8.2f}%{m.max_drawdown * 100:>7.2f}%"
                f"{m.sharpe:>8.2f}{m.num_trades:>7}{m.win_rate * 100:>6.1f}"
                f"{_fmt_profit_factor(m.profit_factor):>6}"
            )
        lines.append("")
    else:
        lines.append("No agents to report.")
        lines.append("")

    lines.append("=" * w)
    lines.append("END OF REPORT")
    lines.append("=" * w)

    return "\n".join(lines)
