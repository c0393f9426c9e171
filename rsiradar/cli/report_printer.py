"""CLI report — prints the scan result to the console."""

from rsiradar.analysis.models import AnalysisResult, LeaderAnalysis, ReportEntity

_RULE = "──────────────────────────────────────────────────"


def _entity_lines(entity: ReportEntity) -> list[str]:
    header = f"  {entity.rank:02d}. {entity.symbol}"
    if entity.indicator:
        header += f" [{entity.indicator}]"
    if entity.badge:
        header += f" {entity.badge}"
    header += f"  {entity.position_change}"
    lines = [
        header,
        f"      📊 {entity.timeframe_breakdown} = {entity.count} times",
        f"      💡 {entity.warning}",
    ]
    if entity.price_change:
        lines.append(f"      💰 {entity.price_change}")
    return lines


def _leader_lines(title: str, leader: LeaderAnalysis | None) -> list[str]:
    if leader is None:
        return []
    lines = [f"  {title}: {leader.symbol}", f"    - {leader.count} timeframes in extreme zone"]
    if leader.entry_text:
        lines.append(f"    - {leader.entry_text}")
    lines.append(f"    - Comment: {leader.comment}")
    if leader.price_comment:
        lines.append(f"    - 💰 {leader.price_comment}")
    if leader.others:
        others = ", ".join(f"{o.badge} {o.symbol} ({o.count} TF)" for o in leader.others)
        lines.append(f"    - Other notable coins: {others}")
    return lines


def format_report(result: AnalysisResult) -> str:
    """Format both reports of a scan as plain text.

    Args:
        result: The ``AnalysisResult`` of one scan.

    Returns:
        The formatted multi-line string.
    """
    report = result.report
    lines = [
        "──────────── RSI Frequency Analysis ─────────────",
        f"  Last updated: {report.last_updated}",
        "",
        "🔴 Overbought (RSI ≥ 70) - TOP 20",
    ]
    for entity in report.overbought:
        lines.extend(_entity_lines(entity))
    if not report.overbought:
        lines.append("  (none)")

    lines += ["", "🔵 Oversold (RSI ≤ 30) - TOP 20"]
    for entity in report.oversold:
        lines.extend(_entity_lines(entity))
    if not report.oversold:
        lines.append("  (none)")

    lines += ["", "💬 Automatic Analysis"]
    lines.extend(_leader_lines("🔴 Overbought Leader", report.overbought_leader))
    lines.extend(_leader_lines("🔵 Oversold Leader", report.oversold_leader))

    lines += [
        "",
        f"  Total Tracked:     {report.stats.total_tracked}",
        f"  In Extreme Zones:  {report.stats.total_extreme}",
        f"  Market State:      {report.market_commentary.level}",
        f"  {report.market_commentary.details}",
        f"  Next update around {report.next_update} UTC",
        "",
        "──────────────── Breakout Hunter ─────────────────",
    ]
    for o in result.opportunities:
        lines.append(
            f"  {o.symbol:<14} score {o.display_score:>3}  {o.tag}  {o.recommendation}"
        )
        lines.append(
            f"      price {o.price:.6f} | RSI 1h {o.rsi_1h:.1f} 4h {o.rsi_4h:.1f} | "
            f"4h {o.price_change_4h:+.2f}% 12h {o.price_change_12h:+.2f}% | "
            f"vol ×{o.volume_multiplier:.2f}"
        )
    if not result.opportunities:
        lines.append("  No breakout opportunities found.")
    lines.append(_RULE)
    return "\n".join(lines)


def print_report(result: AnalysisResult) -> str:
    """Print :func:`format_report` output and return it."""
    output = format_report(result)
    print(output)
    return output
