import json
from collections import OrderedDict, defaultdict
from pathlib import Path
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from dkg_deploy.constants import STANDARD_LEDGER_JSON_FORMAT
from dkg_deploy.units import UnitName

ChainId = int


class LedgerEntry(NamedTuple):
    """Represents a single deployed unit on a single chain."""

    chain_id: ChainId
    name: UnitName
    address: ChecksumAddress
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    deployer: Optional[str] = None


def _load_ledger_data(filepath: Path) -> Dict[str, Dict[str, Dict]]:
    if not filepath.exists():
        return dict()
    with open(filepath, "r") as file:
        return json.load(file)


def read_ledger(filepath: Path) -> List[LedgerEntry]:
    ledger_entries = list()
    for chain_id, entries in _load_ledger_data(filepath).items():
        for unit_name, record in entries.items():
            ledger_entry = LedgerEntry(
                chain_id=int(chain_id),
                name=unit_name,
                address=record["address"],
                tx_hash=record.get("tx_hash"),
                block_number=record.get("block_number"),
                deployer=record.get("deployer"),
            )
            ledger_entries.append(ledger_entry)
    return ledger_entries


def write_ledger(entries: List[LedgerEntry], filepath: Path) -> Path:
    """
    Writes entries to a ledger file. Chains that have no entry in `entries`
    keep whatever the file already holds for them.
    """
    entries = sorted(entries, key=lambda entry: (str(entry.chain_id), entry.name))

    data = defaultdict(dict)
    for entry in entries:
        data[str(entry.chain_id)][entry.name] = {
            "address": entry.address,
            "tx_hash": entry.tx_hash,
            "block_number": None if entry.block_number is None else int(entry.block_number),
            "deployer": entry.deployer,
        }

    existing_data = _load_ledger_data(filepath)
    existing_data.update(data)

    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as file:
        json.dump(existing_data, file, **STANDARD_LEDGER_JSON_FORMAT)

    return filepath


def entry_from_handle(chain_id: ChainId, name: UnitName, handle: Any) -> LedgerEntry:
    """Builds a ledger entry from an address, a ledger entry or an ape contract instance."""
    if isinstance(handle, LedgerEntry):
        return handle._replace(chain_id=chain_id, name=name)

    if isinstance(handle, str):
        return LedgerEntry(chain_id=chain_id, name=name, address=to_checksum_address(handle))

    receipt = getattr(handle, "receipt", None)
    if receipt is None:
        return LedgerEntry(
            chain_id=chain_id, name=name, address=to_checksum_address(handle.address)
        )

    return LedgerEntry(
        chain_id=chain_id,
        name=name,
        address=to_checksum_address(handle.address),
        tx_hash=receipt.txn_hash,
        block_number=receipt.block_number,
        deployer=receipt.transaction.sender,
    )


class DeploymentLedger:
    """
    Persisted record of deployed units (unit name -> deployment) for one chain.

    `loader` turns a stored entry back into a handle; by default the handle
    is the deployed address.
    """

    def __init__(
        self,
        filepath: Path,
        chain_id: ChainId,
        loader: Optional[Callable[[LedgerEntry], Any]] = None,
    ):
        self.filepath = Path(filepath)
        self.chain_id = int(chain_id)
        self._loader = loader or (lambda entry: entry.address)
        self._entries = OrderedDict(
            (entry.name, entry)
            for entry in read_ledger(self.filepath)
            if entry.chain_id == self.chain_id
        )

    @property
    def entries(self) -> List[LedgerEntry]:
        return list(self._entries.values())

    def __contains__(self, name: UnitName) -> bool:
        return name in self._entries

    def get(self, name: UnitName) -> Optional[LedgerEntry]:
        return self._entries.get(name)

    def lookup(self, name: UnitName) -> Any:
        """Returns the handle of a recorded unit, or None if it was never deployed."""
        entry = self._entries.get(name)
        if entry is None:
            return None
        return self._loader(entry)

    def record(self, name: UnitName, handle: Any) -> LedgerEntry:
        entry = entry_from_handle(chain_id=self.chain_id, name=name, handle=handle)
        self._entries[name] = entry
        self.save()
        return entry

    def save(self) -> Path:
        if not self._entries:
            return self.filepath
        return write_ledger(entries=self.entries, filepath=self.filepath)
