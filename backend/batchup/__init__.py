"""Batchup: destination routing and upload element production for batch uploads."""
