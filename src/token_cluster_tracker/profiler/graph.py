"""Transfer-graph aggregation.

Collapses the raw transfer set into one node per address and one link per
directed (from, to) pair. Nodes keep the first-seen spelling of the address
for display; lookups use the lower-cased id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from token_cluster_tracker.ingestor.models import TransferEvent
from token_cluster_tracker.profiler.entities import EntityRegistry
from token_cluster_tracker.profiler.models import WalletHistory, WalletLink, WalletNode


@dataclass
class WalletGraph:
    nodes: dict[str, WalletNode]
    links: dict[tuple[str, str], WalletLink]

    def wallet_nodes(self) -> list[WalletNode]:
        """Non-contract, non-target nodes in first-seen order."""
        return [n for n in self.nodes.values() if not n.is_contract and not n.is_target]

    def attach_histories(self, histories: Mapping[str, WalletHistory]) -> None:
        """Copy balance, peak, ghost flag and disposition onto matching nodes."""
        for key, history in histories.items():
            node = self.nodes.get(key)
            if node is not None:
                node.attach_history(history)


def build_wallet_graph(
    transfers: Iterable[TransferEvent],
    target: str,
    registry: EntityRegistry,
    decimals: int,
) -> WalletGraph:
    target = target.lower()
    nodes: dict[str, WalletNode] = {}
    links: dict[tuple[str, str], WalletLink] = {}

    def node_for(key: str, display: str) -> WalletNode:
        node = nodes.get(key)
        if node is None:
            node = WalletNode(
                id=key,
                address=display,
                is_target=key == target,
                is_contract=registry.is_contract(key),
                label=registry.label(key),
            )
            nodes[key] = node
        return node

    for tx in transfers:
        sender, recipient = tx.sender, tx.recipient
        if not sender or not recipient:
            continue
        value = tx.amount(decimals)

        from_node = node_for(sender, tx.from_address)
        from_node.observe(tx.timestamp)
        from_node.vol_out += value

        to_node = node_for(recipient, tx.to_address)
        to_node.observe(tx.timestamp)
        to_node.vol_in += value

        link = links.get((sender, recipient))
        if link is None:
            link = WalletLink(
                source=sender,
                target=recipient,
                direction="sent" if sender == target else "received",
            )
            links[(sender, recipient)] = link
        link.value += value
        link.tx_count += 1

    return WalletGraph(nodes=nodes, links=links)
