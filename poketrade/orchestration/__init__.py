"""
Orchestration: the repeating simulation clock and the TradingSimulation
owner object that wires price feed, orderbook and ledger together.
"""
