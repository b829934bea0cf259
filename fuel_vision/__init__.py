"""
Fuel photo-to-nutrition analysis.

Turns a food photo into a validated nutrition estimate using a hosted
vision model, gated by a weekly free-tier scan quota.

Structure:
- domain/: Models, prompts, parsing, entitlement rules, ports
- infrastructure/: Vision API client, retry policy, entitlement storage
- application/: Analysis orchestration (quota check, analysis, consumption)
- tests/: Test suite
"""

__version__ = "1.0.0"
