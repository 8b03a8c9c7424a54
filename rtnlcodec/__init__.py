"""Encoder and decoder for rtnetlink route, neighbour, neighbour table, rule, nsid and traffic-control message payloads."""

__version__ = "0.1.0"