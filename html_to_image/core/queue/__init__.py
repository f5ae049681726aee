"""
Render Queue
============

Bounded worker pool bridging async request handling and CPU-bound rendering.
"""
