"""
Motor pool workflow and resource allocation core.

Trip requests, maintenance work and inventory add/delete approvals all
contend for the same vehicles; the services in this package make sure a
vehicle is only ever claimed by one active workflow at a time.
"""

__version__ = "0.1.0"
