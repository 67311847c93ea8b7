"""
fundtrade: off-chain pre-flight validation and exchange call construction
for trades placed by an on-chain managed fund.
"""

__version__ = "0.1.0"
