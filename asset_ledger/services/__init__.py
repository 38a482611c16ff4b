"""Movement ledger consistency engine"""
