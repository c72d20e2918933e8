"""
Chain Access Module
RPC clients, ABIs and transaction signing
"""
from .chain_client import ChainClient, ensure_success, get_katana_chain, get_source_chain
from .signer import LocalAccountSender, TransactionSender

__all__ = [
    'ChainClient',
    'ensure_success',
    'get_katana_chain',
    'get_source_chain',
    'LocalAccountSender',
    'TransactionSender',
]
