"""
Wealth projection and plan-vs-actual reconciliation engine.

The package projects a client's liquid wealth from current age to life
expectancy, derives retirement KPIs and succession costs, and reconciles a
plan with actually-reported monthly results.
"""

__version__ = "0.1.0"
