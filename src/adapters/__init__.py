"""Adapters: everything that talks to the network or the filesystem."""
