"""
Claim Service Module
"""
from .claim_service import ClaimService, MerkleProof, compute_global_index

__all__ = [
    'ClaimService',
    'MerkleProof',
    'compute_global_index',
]
