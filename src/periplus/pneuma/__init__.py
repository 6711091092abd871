"""
Pneuma - Chain interaction layer for Periplus.

Provides the network registry, JSON-RPC connections and their pool, ABI
helpers, transaction building, ENS lookups and the query / contract
façades.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
