"""Credential cache.

Provides the in-memory CredentialStore owned by the CredentialProvider.
Bounded Context: Credential Management
"""
