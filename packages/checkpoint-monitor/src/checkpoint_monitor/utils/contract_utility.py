import json
from functools import lru_cache
from pathlib import Path


ABI_DIR = Path(__file__).parent.parent / "abis"


@lru_cache(maxsize=None)
def _load_abi_file(contract_name: str) -> tuple:
    contract_path = (ABI_DIR / f"{contract_name}.json").resolve()

    with contract_path.open() as file:
        contract_data = json.load(file)

    return tuple(contract_data["abi"])


def get_contract_abi(contract_name: str) -> list:
    """Fetches ABI of the given contract from the abis folder"""
    return list(_load_abi_file(contract_name))


def has_event(abi: list, event_name: str) -> bool:
    """Whether the ABI declares an event with the given name"""
    return any(
        entry.get("type") == "event" and entry.get("name") == event_name
        for entry in abi
    )
