"""Receptionist web app that opens TrueConf video rooms for patients."""

__version__ = "0.1.0"
