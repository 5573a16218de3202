"""
Sales app for the restaurant POS.

Carts, settlement and the immutable transaction ledger for outlet terminals.
"""
