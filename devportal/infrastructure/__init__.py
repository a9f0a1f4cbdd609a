"""
Infrastructure adapters: stores, identity providers and credential issuers.
"""
