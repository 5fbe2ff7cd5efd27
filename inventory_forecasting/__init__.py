"""Inventory forecasting and replenishment decision engine."""

__version__ = '0.1.0'
