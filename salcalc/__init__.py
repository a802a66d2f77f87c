"""SALCalc - progressive works accounting and SAL payment certificates."""

__version__ = "0.1.0"
