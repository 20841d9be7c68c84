"""
Test suite for stepped-token-sale

Contains:
- tests/unit/          : Unit tests for individual modules and the TokenSale flow
"""
