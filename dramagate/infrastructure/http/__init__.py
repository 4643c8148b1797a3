"""HTTP adapters built on httpx: request executor, credential source, headers.
Bounded Context: Upstream Access
"""
