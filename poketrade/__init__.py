"""
poketrade – headless simulation core for a synthetic collectibles exchange.

Packages:
  - config: strongly-typed simulation settings loaded from the environment.
  - market: simulated price feed and synthetic orderbook.
  - execution: order/position ledger with mark-to-market PnL.
  - orchestration: simulation clock and the owner object that wires it all up.
  - utils: clock abstraction, random sources, errors, logging, formatting.
"""
