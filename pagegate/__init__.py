"""PageGate: per-page shared-secret access gate for hosted storefronts."""

__version__ = "1.0.0"
