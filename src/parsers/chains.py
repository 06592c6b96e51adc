"""Supported EVM chains — explorer chain id, display name, DexScreener slug."""

from __future__ import annotations

from dataclasses import dataclass

from src.parsers.exceptions import UnsupportedChainError

DEFAULT_CHAIN_ID = 1


@dataclass(frozen=True)
class ChainInfo:
    chain_id: int
    name: str
    dexscreener_slug: str
    native_symbol: str


CHAINS: dict[int, ChainInfo] = {
    1: ChainInfo(chain_id=1, name="Ethereum Mainnet", dexscreener_slug="ethereum", native_symbol="ETH"),
    56: ChainInfo(chain_id=56, name="BNB Smart Chain", dexscreener_slug="bsc", native_symbol="BNB"),
    137: ChainInfo(chain_id=137, name="Polygon", dexscreener_slug="polygon", native_symbol="MATIC"),
}

SUPPORTED_CHAIN_IDS: tuple[int, ...] = tuple(CHAINS)


def get_chain(chain_id: object) -> ChainInfo:
    """Look up a supported chain. Accepts ints and decimal strings ("56")."""
    key = chain_id
    if isinstance(key, str) and key.isdecimal():
        key = int(key)
    chain = CHAINS.get(key) if type(key) is int else None
    if chain is None:
        raise UnsupportedChainError(chain_id)
    return chain


def dexscreener_slug(chain_id: int) -> str:
    """DexScreener chain slug; unknown ids fall back to ethereum."""
    chain = CHAINS.get(chain_id)
    return chain.dexscreener_slug if chain else CHAINS[DEFAULT_CHAIN_ID].dexscreener_slug
