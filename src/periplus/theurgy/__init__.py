"""
Theurgy - Command implementations for the Periplus CLI.

Each module groups related top-level commands:
- divine:  Read-only queries (networks, balance, block, tx, gas, ens)
- invoke:  Transfers, gas estimates and contract calls (send, estimate, call)
- seal:    Wallets and message signatures (wallets, sign, verify)
- conjure: Agent tools (tools, tool)
- context: Shared CLI state and error reporting
"""
