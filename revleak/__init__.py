"""
RevLeak: Stripe revenue monitoring.

Connects a merchant's Stripe account over OAuth, summarizes recent balance
transactions (gross, fees, net, effective fee rate) and emails alerts when
fees run high.
"""

__version__ = "0.1.0"
