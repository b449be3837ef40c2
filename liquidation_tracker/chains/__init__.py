"""Blockchain RPC clients."""
