"""
Portico - HTTP front door for Reliquary.
"""
