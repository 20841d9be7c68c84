"""
Core domain models, fixed-point primitives, contracts and error taxonomy.

This module contains the foundational building blocks that are independent
of external systems (token ledgers, oracle transports, etc.).
"""
