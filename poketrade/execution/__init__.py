"""
Order and position ledger.

Implements order placement, immediate fills for market orders,
mark-to-market valuation and position closing for the demo exchange.
"""
