"""Conversion layer -- direct/inverse rate resolution and transfer fees."""

from fxrates.conversion.engine import ConversionEngine
from fxrates.conversion.fees import TransferFeeCalculator

__all__ = ["ConversionEngine", "TransferFeeCalculator"]
