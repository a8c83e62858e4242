"""
Programs - instruction builders for on-chain programs.

Builders are pure: they take account roles and return a
``TransactionInstruction``.  Program ids are keyword arguments defaulting to
the well-known mainnet ids, so callers targeting other deployments pass
their own.
"""
