"""EVM specific parts: JSON-RPC reads and calldata encoding."""
