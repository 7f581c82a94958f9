"""
pushdeploy - push a Dockerized app to a single remote Linux host.
"""

__version__ = "1.0.0"
