"""
TestCraft Reporting Service
Blueprint registry.
"""
