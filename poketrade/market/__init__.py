"""
Simulated market data: a randomly drifting price feed and a synthetic
orderbook derived from its mid price.
"""
