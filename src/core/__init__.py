"""Core domain package for commitrelay.

Core contains the commit model, deduplication, and the relay cycle without
any HTTP, Discord or file-format specific code, keeping the business logic
portable.
"""
