"""Core: domain, contracts, codecs and services. No network code lives here."""
