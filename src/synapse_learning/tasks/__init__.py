"""
synapse_learning.tasks

Background task package (dramatiq).

Responsibilities:
- Broker setup per environment.
- Actors that run agent tasks outside the request path.
"""

# Package marker.
