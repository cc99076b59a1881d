"""In-memory record sets that the aggregation functions read from."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from networth.domain.entities import Account, Asset, BalanceType, Snapshot, Transaction
from networth.domain.snapshots import group_by_owner

UNKNOWN_BALANCE_TYPE = "(Unknown)"


@dataclass
class Ledger:
    """All records needed to compute totals, cash flow and performance.

    Snapshot lists are keyed by owner id. The ledger is a plain container:
    whoever owns it decides when it changes.
    """

    accounts: dict[int, Account] = field(default_factory=dict)
    assets: dict[int, Asset] = field(default_factory=dict)
    account_snapshots: dict[int, list[Snapshot]] = field(default_factory=dict)
    asset_snapshots: dict[int, list[Snapshot]] = field(default_factory=dict)
    transactions: dict[int, Transaction] = field(default_factory=dict)
    balance_types: dict[int, BalanceType] = field(default_factory=dict)

    @classmethod
    def from_records(
        cls,
        accounts: Iterable[Account] = (),
        assets: Iterable[Asset] = (),
        account_snapshots: Iterable[Snapshot] = (),
        asset_snapshots: Iterable[Snapshot] = (),
        transactions: Iterable[Transaction] = (),
        balance_types: Iterable[BalanceType] = (),
    ) -> "Ledger":
        return cls(
            accounts={a.id: a for a in accounts},
            assets={a.id: a for a in assets},
            account_snapshots=group_by_owner(account_snapshots),
            asset_snapshots=group_by_owner(asset_snapshots),
            transactions={t.id: t for t in transactions},
            balance_types={bt.id: bt for bt in balance_types},
        )

    def balance_type_name(self, balance_type_id: Optional[int]) -> Optional[str]:
        if balance_type_id is None:
            return None
        balance_type = self.balance_types.get(balance_type_id)
        return balance_type.name if balance_type is not None else None

    def display_balance_type(self, balance_type_id: Optional[int]) -> str:
        return self.balance_type_name(balance_type_id) or UNKNOWN_BALANCE_TYPE

    def snapshots_for_account(self, account_id: int) -> list[Snapshot]:
        return self.account_snapshots.get(account_id, [])

    def snapshots_for_asset(self, asset_id: int) -> list[Snapshot]:
        return self.asset_snapshots.get(asset_id, [])

    def transactions_for_account(self, account_id: int) -> list[Transaction]:
        return [t for t in self.transactions.values() if t.account_id == account_id]

    def transactions_by_account(self) -> dict[int, list[Transaction]]:
        grouped: dict[int, list[Transaction]] = {}
        for txn in self.transactions.values():
            grouped.setdefault(txn.account_id, []).append(txn)
        return grouped

    def all_snapshots(self) -> list[Snapshot]:
        snapshots: list[Snapshot] = []
        for owned in self.account_snapshots.values():
            snapshots.extend(owned)
        for owned in self.asset_snapshots.values():
            snapshots.extend(owned)
        return snapshots
