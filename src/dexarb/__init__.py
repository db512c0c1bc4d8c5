"""
Cardano DEX Arbitrage Scanner.

Pulls prices from Cardano DEX and aggregator APIs, compares them across
venues and ranks fee-adjusted arbitrage opportunities.
"""

__version__ = "1.0.0"
__author__ = "Tim"
