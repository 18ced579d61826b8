"""Database adapters, one package per driver.

Each package is imported on demand so only the selected driver needs to be installed.
"""
