"""
Discount Application Layer

Ports, services and use cases for discount rules.
"""
