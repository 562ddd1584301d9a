"""Prose summary of a holdings analysis."""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Sequence

from token_cluster_tracker.detector.models import (
    Confidence,
    FundingMatch,
    HiddenHoldingWallet,
    PassThroughLink,
)
from token_cluster_tracker.formatting import format_amount, format_date, format_percent, truncate_address
from token_cluster_tracker.profiler.models import ZERO, OutboundSummary, WalletHistory

MAX_NAMED_CHAINS = 3


def _total(wallets: Sequence[HiddenHoldingWallet]) -> Decimal:
    return sum((w.held for w in wallets), ZERO)


def _target_section(balance: Decimal, history: WalletHistory | None, symbol: str) -> str:
    text = f"Target wallet holds {format_amount(balance)} {symbol} directly."
    if history is not None and history.peak_balance > balance:
        text += (
            f" It peaked at {format_amount(history.peak_balance)} {symbol} on "
            f"{format_date(history.peak_date)} and has since moved out "
            f"{format_amount(history.net_disposed)} {symbol}."
        )
    return text


def _outbound_section(outbound: OutboundSummary, symbol: str) -> str | None:
    if outbound.total <= 0:
        return None
    text = (
        f"Of {format_amount(outbound.total)} {symbol} sent out by the target, "
        f"{format_percent(outbound.to_dex.percentage)} went to DEX routers or contracts and "
        f"{format_percent(outbound.to_wallets.percentage)} to wallets"
    )
    recipients = len(outbound.top_recipients)
    if recipients:
        text += f" (top {recipients} recipient(s) listed)"
    return text + "."


def _ghost_section(ghosts: Sequence[WalletHistory], symbol: str) -> str | None:
    if not ghosts:
        return None
    peak = sum((h.peak_balance for h in ghosts), ZERO)
    disposed = sum((h.net_disposed for h in ghosts), ZERO)
    return (
        f"{len(ghosts)} ghost wallet(s) once held a combined {format_amount(peak)} {symbol} "
        f"and have since emptied, moving out {format_amount(disposed)} {symbol}."
    )


def _pass_through_section(links: Sequence[PassThroughLink], symbol: str) -> str | None:
    if not links:
        return None
    named = [
        f"{truncate_address(link.ghost_display)} -> {truncate_address(link.final_holder_display)} "
        f"(still holds {format_amount(link.holder_balance)} {symbol})"
        for link in links[:MAX_NAMED_CHAINS]
    ]
    text = f"Pass-through chains: {'; '.join(named)}"
    if len(links) > MAX_NAMED_CHAINS:
        text += f"; and {len(links) - MAX_NAMED_CHAINS} more"
    return text + "."


def _tier_sections(
    high: Sequence[HiddenHoldingWallet],
    medium: Sequence[HiddenHoldingWallet],
    low: Sequence[HiddenHoldingWallet],
    symbol: str,
) -> list[str]:
    sections: list[str] = []
    if high:
        text = (
            f"Analysis identified {len(high)} additional wallet(s) likely belonging to the "
            f"same person, holding a combined {format_amount(_total(high))} {symbol}."
        )
        signals: list[str] = []
        funded = [w for w in high if w.funding_match is not FundingMatch.NONE and w.funding_source]
        if funded:
            signals.append(f"shared funding source from {truncate_address(funded[0].funding_source or '')}")
        if any(w.is_bidirectional for w in high):
            signals.append("bidirectional transfers")
        if signals:
            text += f" {len(high)} wallet(s) are HIGH confidence ({', '.join(signals)})."
        sections.append(text)
    if medium:
        sections.append(
            f"{len(medium)} additional wallet(s) (MEDIUM confidence) hold "
            f"{format_amount(_total(medium))} {symbol} and may also belong to this person."
        )
    if low:
        sections.append(
            f"{len(low)} wallet(s) (LOW confidence) hold {format_amount(_total(low))} {symbol} "
            "with weaker signals."
        )
    return sections


def summary_sections(
    *,
    target_balance: Decimal,
    target_history: WalletHistory | None,
    wallets: Sequence[HiddenHoldingWallet],
    histories: Mapping[str, WalletHistory],
    pass_throughs: Mapping[str, PassThroughLink],
    outbound: OutboundSummary,
    target: str,
    token_symbol: str,
) -> list[str]:
    """Narrative sections in reading order; empty sections are left out."""
    target = target.lower()
    high = [w for w in wallets if w.confidence is Confidence.HIGH]
    medium = [w for w in wallets if w.confidence is Confidence.MEDIUM]
    low = [w for w in wallets if w.confidence is Confidence.LOW]
    ghosts = [h for key, h in histories.items() if h.is_ghost and key != target]

    sections = [_target_section(target_balance, target_history, token_symbol)]
    for section in (
        _outbound_section(outbound, token_symbol),
        _ghost_section(ghosts, token_symbol),
        _pass_through_section(list(pass_throughs.values()), token_symbol),
    ):
        if section:
            sections.append(section)
    sections.extend(_tier_sections(high, medium, low, token_symbol))

    if high or medium:
        estimate = target_balance + _total(high) + _total(medium)
        sections.append(
            f"Combined same-owner estimate: {format_amount(estimate)} {token_symbol} "
            f"across {len(high) + len(medium) + 1} wallets (target + HIGH + MEDIUM)."
        )
    else:
        sections.append("No strong same-owner signals were detected among connected wallets.")
    return sections


def generate_summary(
    *,
    target_balance: Decimal,
    target_history: WalletHistory | None,
    wallets: Sequence[HiddenHoldingWallet],
    histories: Mapping[str, WalletHistory],
    pass_throughs: Mapping[str, PassThroughLink],
    outbound: OutboundSummary,
    target: str,
    token_symbol: str,
) -> str:
    """Join the narrative sections into one paragraph."""
    sections = summary_sections(
        target_balance=target_balance,
        target_history=target_history,
        wallets=wallets,
        histories=histories,
        pass_throughs=pass_throughs,
        outbound=outbound,
        target=target,
        token_symbol=token_symbol,
    )
    return " ".join(sections)
